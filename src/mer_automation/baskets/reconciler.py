"""Basket activity reconciliation and purge candidate selection."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from mer_automation.baskets.records import BasketIndexEntry

SECONDS_PER_DAY = 60 * 60 * 24


@dataclass(frozen=True)
class StatusChange:
    basket_id: str
    row_number: int
    user_name: str
    old_active: bool
    new_active: bool

    @property
    def description(self) -> str:
        return (
            f"{self.user_name} went from {_label(self.old_active)} "
            f"to {_label(self.new_active)}"
        )


def _label(active: bool) -> str:
    return "Active" if active else "Inactive"


def days_since(timestamp: datetime | None, now: datetime) -> float | None:
    if timestamp is None:
        return None
    return (now - timestamp).total_seconds() / SECONDS_PER_DAY


def reconcile(
    grace_period_days: float,
    entries: Iterable[BasketIndexEntry],
    active_names: Iterable[str],
    exemptions: Iterable[str],
    now: datetime | None = None,
) -> list[StatusChange]:
    """Status changes for assigned baskets held longer than the grace period.

    Exempt users count as active whatever the usage logs say.
    """
    now = now or datetime.now(timezone.utc)
    membership = set(active_names) | set(exemptions)

    changes = []
    for entry in entries:
        if entry.available:
            continue
        new_active = entry.assignee_name in membership
        if new_active == entry.active:
            continue
        held_for = days_since(entry.assigned_at, now)
        if held_for is None or held_for <= grace_period_days:
            continue
        changes.append(StatusChange(
            basket_id=entry.basket_id,
            row_number=entry.row_number,
            user_name=entry.assignee_name,
            old_active=entry.active,
            new_active=new_active,
        ))
    return changes


def find_purge_candidates(entries: Iterable[BasketIndexEntry]) -> list[BasketIndexEntry]:
    """Assigned baskets whose holder is inactive."""
    return [e for e in entries if not e.available and not e.active]
