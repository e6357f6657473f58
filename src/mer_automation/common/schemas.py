"""Shared Pydantic schemas for MER automation."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "mer-automation"


class ActionResponse(BaseModel):
    """Success/failure signal returned by every action endpoint."""

    success: bool
    message: str
    errors: list[str] = Field(default_factory=list)
