"""Pydantic schemas for training and quiz endpoints."""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

from mer_automation.common.schemas import ActionResponse


class TraineeFields(BaseModel):
    eid: str = Field(..., min_length=1, max_length=64)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)


class TrainingRequestCreate(TraineeFields):
    training_session: str = Field(..., min_length=1)


class QuizSubmissionCreate(TraineeFields):
    score: Union[float, str]
    total_points: Optional[float] = Field(default=None, gt=0)
    timestamp: Optional[datetime] = None


class QuizInviteRequest(BaseModel):
    rows: str = Field(..., min_length=1)


class QuizResultResponse(ActionResponse):
    passed: bool = False
    emailed: bool = False


class QuizDispatchResponse(ActionResponse):
    event_id: Optional[str] = None
    sent: list[str] = []
    skipped: list[str] = []
    failed: list[str] = []


class TrainingSessionsResponse(BaseModel):
    sessions: list[str]
