"""Calendar collaborator interface used by training scheduling."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

GUEST_DECLINED = "declined"


@dataclass
class CalendarGuest:
    email: str
    status: str = "needsAction"


@dataclass
class CalendarEvent:
    id: str
    summary: str
    start: datetime
    end: datetime
    attendees: list[CalendarGuest] = field(default_factory=list)


class CalendarClient(Protocol):
    async def list_events(
        self, start: datetime, end: datetime, search: str,
    ) -> list[CalendarEvent]: ...

    async def set_attendees(self, event_id: str, emails: list[str]) -> None: ...
