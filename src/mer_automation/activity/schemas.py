"""Pydantic schemas for active-user endpoints."""

from mer_automation.common.schemas import ActionResponse


class ActiveUsersResponse(ActionResponse):
    users: int = 0
    months: list[str] = []
