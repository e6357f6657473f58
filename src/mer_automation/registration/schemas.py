"""Pydantic schemas for registration, badge and onboarding endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from mer_automation.common.schemas import ActionResponse


class BadgeResponse(BaseModel):
    name: str
    vcard: str


class RegistrationCreate(BaseModel):
    eid: str = Field(..., min_length=1, max_length=64)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)
    phone: str = ""
    affiliation: str = ""
    supervisor: str = ""
    department: str = ""
    create_lab_access: bool = False
    timestamp: Optional[datetime] = None

    def to_record(self) -> dict:
        return {
            "Timestamp": self.timestamp,
            "Email Address": self.email,
            "UT EID": self.eid,
            "First Name": self.first_name,
            "Last Name": self.last_name,
            "Phone Number": self.phone,
            "UT Affiliation": self.affiliation,
            "Professor or Supervisor": self.supervisor,
            "Department or Company": self.department,
            "Create Lab Access & Sedona Accounts": "Yes" if self.create_lab_access else "No",
        }


class RegistrationResponse(ActionResponse):
    row_number: int = 0
    lab_access_submitted: bool = False
    access_request_sent: bool = False
    supplies_sent: bool = False


class OnboardingRequest(BaseModel):
    emails: str = Field(..., min_length=1)


class OnboardingResponse(ActionResponse):
    sent: list[str] = []
    failed: list[str] = []
