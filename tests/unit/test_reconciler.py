"""Tests for basket activity reconciliation and purge candidates."""

from datetime import datetime, timedelta, timezone

from mer_automation.baskets.reconciler import (
    StatusChange,
    days_since,
    find_purge_candidates,
    reconcile,
)
from mer_automation.baskets.records import BasketIndexEntry

NOW = datetime(2024, 7, 1, 12, 0, tzinfo=timezone.utc)


def assigned(basket_id="S001", first="Jane", last="Doe", active=True, days_ago=90, row=2):
    return BasketIndexEntry(
        basket_id=basket_id,
        zone="CleanroomA",
        available=False,
        active=active,
        row_number=row,
        first_name=first,
        last_name=last,
        assigned_at=NOW - timedelta(days=days_ago) if days_ago is not None else None,
    )


class TestReconcile:
    def test_inactive_user_flagged(self):
        changes = reconcile(60, [assigned()], set(), set(), now=NOW)
        assert changes == [StatusChange("S001", 2, "Jane Doe", True, False)]
        assert changes[0].description == "Jane Doe went from Active to Inactive"

    def test_reactivated_user(self):
        changes = reconcile(60, [assigned(active=False)], {"Jane Doe"}, set(), now=NOW)
        assert changes[0].new_active is True
        assert changes[0].description == "Jane Doe went from Inactive to Active"

    def test_matching_status_no_change(self):
        assert reconcile(60, [assigned()], {"Jane Doe"}, set(), now=NOW) == []

    def test_grace_boundary_is_strict(self):
        at_boundary = assigned(days_ago=60)
        past_boundary = assigned(basket_id="S002", days_ago=61, row=3)
        changes = reconcile(60, [at_boundary, past_boundary], set(), set(), now=NOW)
        assert [c.basket_id for c in changes] == ["S002"]

    def test_exemption_overrides_missing_activity(self):
        assert reconcile(60, [assigned()], set(), {"Jane Doe"}, now=NOW) == []

    def test_exemption_reactivates(self):
        changes = reconcile(60, [assigned(active=False)], set(), {"Jane Doe"}, now=NOW)
        assert changes[0].new_active is True

    def test_available_baskets_ignored(self):
        free = BasketIndexEntry(basket_id="S009", zone="CleanroomA", available=True, active=True)
        assert reconcile(60, [free], set(), set(), now=NOW) == []

    def test_missing_timestamp_never_changes(self):
        assert reconcile(60, [assigned(days_ago=None)], set(), set(), now=NOW) == []

    def test_rerun_after_apply_is_empty(self):
        entry = assigned()
        change = reconcile(60, [entry], set(), set(), now=NOW)[0]
        entry.active = change.new_active
        assert reconcile(60, [entry], set(), set(), now=NOW) == []


class TestDaysSince:
    def test_fractional_days(self):
        assert days_since(NOW - timedelta(hours=36), NOW) == 1.5

    def test_none(self):
        assert days_since(None, NOW) is None


class TestPurgeCandidates:
    def test_assigned_and_inactive_only(self):
        entries = [
            assigned("S001", active=False),
            assigned("S002", active=True),
            BasketIndexEntry(basket_id="S003", zone="CleanroomA", available=True, active=False),
        ]
        assert [e.basket_id for e in find_purge_candidates(entries)] == ["S001"]
