"""Pydantic schemas for exemption endpoints."""

from pydantic import BaseModel, Field


class ExemptionCreate(BaseModel):
    user_name: str = Field(..., min_length=1, max_length=255)
    exemption_reason: str = ""


class ExemptionResponse(BaseModel):
    user_name: str
    exemption_reason: str
