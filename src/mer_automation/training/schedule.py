"""Training session strings and guest lists."""

import re
from datetime import datetime

from mer_automation.common.exceptions import ValidationError
from mer_automation.training.calendar import CalendarGuest

_SESSION_PARTS = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}|[0-9]{2}:[0-9]{2}")


def parse_training_session(value: str) -> tuple[datetime, datetime]:
    """``"2024-05-01 | 13:00 to 14:00"`` -> (start, end)."""
    parts = _SESSION_PARTS.findall(value or "")
    if len(parts) < 3:
        raise ValidationError(f"Invalid training session: {value!r}")
    day, start, end = parts[:3]
    return (
        datetime.fromisoformat(f"{day}T{start}:00"),
        datetime.fromisoformat(f"{day}T{end}:00"),
    )


def format_event_period(start: datetime, end: datetime) -> str:
    return f"{start:%Y-%m-%d} | {start:%H:%M} to {end:%H:%M}"


def merge_guest(attendees: list[CalendarGuest], email: str) -> list[str] | None:
    """Guest emails with ``email`` added, or None if already invited."""
    if any(guest.email == email for guest in attendees):
        return None
    return [guest.email for guest in attendees] + [email]
