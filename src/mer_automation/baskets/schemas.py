"""Pydantic schemas for basket endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from mer_automation.common.schemas import ActionResponse


class BasketRequestCreate(BaseModel):
    eid: str = Field(..., min_length=1, max_length=64)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)
    cleanroom: str = Field(..., min_length=1, max_length=64)
    phone: str = ""
    basket_id: Optional[str] = None
    timestamp: Optional[datetime] = None
    record_row: Optional[int] = Field(default=None, ge=2)


class BasketCreate(BaseModel):
    basket_id: str = Field(..., pattern=r"^[SN][0-9]{3}$")
    cleanroom: str = Field(..., min_length=1, max_length=64)


class BasketReturn(BaseModel):
    basket_ids: list[str] = Field(..., min_length=1)


class BasketResponse(BaseModel):
    basket_id: str
    cleanroom: str
    available: bool
    active: bool
    record_row: Optional[int] = None
    eid: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    assigned_at: Optional[datetime] = None


class AssignmentResponse(ActionResponse):
    basket_id: Optional[str] = None
    cleanroom: str = ""
    reassigned: bool = False


class ReconcileResponse(ActionResponse):
    changes: list[str] = []


class ReturnResponse(ActionResponse):
    returned: list[str] = []


class PurgeResponse(ActionResponse):
    candidates: list[str] = []
    sent: int = 0
    failed: int = 0
