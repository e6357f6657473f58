"""Tests for input parsing, badges, building access and onboarding emails."""

import asyncio
from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from mer_automation.common.config import MerSettings
from mer_automation.common.exceptions import ValidationError
from mer_automation.notifications.email_delivery import EmailSender
from mer_automation.registration.access import (
    access_request_payload,
    lab_access_form_fields,
    next_business_day,
    submit_lab_access_form,
)
from mer_automation.registration.badges import BLANK_BADGE, badge_rows, make_badges, make_vcard
from mer_automation.registration.inputs import parse_email_addresses, parse_row_numbers
from mer_automation.registration.service import (
    ONBOARDING_ACTIONS,
    REGISTRATION_HEADERS,
    RegistrationService,
)
from mer_automation.sheets.store import TableStore

REGISTRATION = "MER Directory & Building Access Registration"


def make_settings(**overrides) -> MerSettings:
    defaults = {"db_url": "sqlite+aiosqlite://"}
    defaults.update(overrides)
    return MerSettings(**defaults)


def person(first="Jane", last="Doe", eid="jd123", **extra):
    record = {
        "First Name": first,
        "Last Name": last,
        "UT EID": eid,
        "Phone Number": "512-555-0100",
        "Email Address": f"{first.lower()}@example.edu",
    }
    record.update(extra)
    return record


@pytest.fixture
async def db():
    from mer_automation.common.database import DatabaseManager

    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def store():
    return TableStore()


@pytest.fixture
def sender():
    mock = MagicMock(spec=EmailSender)
    mock.send = AsyncMock(return_value=True)
    return mock


# ── Free-text input ──

class TestRowNumbers:
    def test_ranges_and_singles(self):
        assert parse_row_numbers("2-4, 7", largest=10) == [2, 3, 4, 7]

    def test_reversed_range_and_duplicates(self):
        assert parse_row_numbers("5-3,4,4", largest=10) == [3, 4, 5]

    def test_below_first_data_row(self):
        with pytest.raises(ValidationError):
            parse_row_numbers("1-3", largest=10)

    def test_above_last_row(self):
        with pytest.raises(ValidationError):
            parse_row_numbers("9-11", largest=10)

    @pytest.mark.parametrize("text", ["", "  ,  ", "two", "2-x"])
    def test_invalid(self, text):
        with pytest.raises(ValidationError):
            parse_row_numbers(text, largest=10)


class TestEmailAddresses:
    def test_extracts_unique_in_order(self):
        text = "b@x.edu, a@x.edu\nb@x.edu; not-an-email c.d+lab@x.org"
        assert parse_email_addresses(text) == ["b@x.edu", "a@x.edu", "c.d+lab@x.org"]

    def test_nothing_found(self):
        assert parse_email_addresses("nobody here") == []


# ── Badges ──

class TestBadges:
    def test_vcard_fields(self):
        vcard = make_vcard(person())
        assert vcard.split("\r\n") == [
            "BEGIN:VCARD",
            "VERSION:4.0",
            "N:Doe;Jane",
            "FN:Jane Doe",
            "ORG:MER",
            "TEL;TYPE=cell:512-555-0100",
            "EMAIL;TYPE=work:jane@example.edu",
            "NOTE:jd123",
            "END:VCARD",
        ]

    @pytest.mark.parametrize("count,expected", [(1, 3), (3, 3), (4, 6), (0, 0)])
    def test_padded_to_full_pages(self, count, expected):
        badges = make_badges([person(eid=f"e{i}") for i in range(count)])
        assert len(badges) == expected
        assert badges[count:] == [BLANK_BADGE] * (expected - count)

    async def test_badge_rows_by_eid(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, REGISTRATION, REGISTRATION_HEADERS)
            for eid in ["aa1", "bb2", "aa1"]:
                await store.append_row(session, REGISTRATION, [None, None, eid])
            table = await store.get_table(session, REGISTRATION)
        assert badge_rows(table, "aa1") == [2, 4]
        assert badge_rows(table, ["bb2", "zz9"]) == [3]


# ── Building and lab access ──

class TestAccess:
    @pytest.mark.parametrize("day,expected", [
        (date(2024, 5, 6), date(2024, 5, 7)),   # Monday
        (date(2024, 5, 9), date(2024, 5, 10)),  # Thursday
        (date(2024, 5, 10), date(2024, 5, 13)),  # Friday
        (date(2024, 5, 11), date(2024, 5, 13)),  # Saturday
        (date(2024, 5, 12), date(2024, 5, 13)),  # Sunday
    ])
    def test_next_business_day(self, day, expected):
        assert next_business_day(day) == datetime.combine(expected, datetime.min.time()).replace(hour=13)

    def test_access_request_payload(self):
        submitted = datetime(2024, 5, 10, 9, 30)
        payload = access_request_payload(person(), "MER Facilities", submitted)
        assert payload["Signature"] == "MER Facilities 2024-05-10T09:30:00"
        assert payload["Date Activated"] == "2024-05-13"
        assert payload["Timestamp"] == "2024-05-10"
        assert payload["UT EID"] == "jd123"

    def test_lab_access_sponsor(self):
        ut = lab_access_form_fields(person(**{
            "UT Affiliation": "Student", "Professor or Supervisor": "Dr. Smith",
        }))
        external = lab_access_form_fields(person(**{
            "UT Affiliation": "Non-UT", "Department or Company": "Acme",
        }))
        assert ut["entry.1385700785"] == "Dr. Smith"
        assert external["entry.1385700785"] == "Acme"

    async def test_lab_access_form_not_configured(self):
        assert await submit_lab_access_form("", person()) is False

    async def test_lab_access_form_failure_is_not_fatal(self, monkeypatch):
        real_client = httpx.AsyncClient

        def handler(request):
            return httpx.Response(500)

        monkeypatch.setattr(
            httpx, "AsyncClient",
            lambda **kwargs: real_client(transport=httpx.MockTransport(handler)),
        )
        assert await submit_lab_access_form("https://forms.example.edu/lab", person()) is False

    async def test_lab_access_form_posted(self, monkeypatch):
        real_client = httpx.AsyncClient
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200)

        monkeypatch.setattr(
            httpx, "AsyncClient",
            lambda **kwargs: real_client(transport=httpx.MockTransport(handler)),
        )
        assert await submit_lab_access_form("https://forms.example.edu/lab", person())
        assert b"entry.1067143744=jd123" in captured[0].content


# ── Registration service ──

class TestRegistrationService:
    async def test_badges_for_rows_and_eid(self, db, store, sender):
        svc = RegistrationService(make_settings(), store, email_sender=sender)
        async with db.get_session() as session:
            await svc.process_registration(session, person())
            await svc.process_registration(session, person("John", "Roe", "jr456"))
            by_rows = await svc.badges_for_rows(session, "2-3")
            by_eid = await svc.badges_for_eid(session, "jr456")
            with pytest.raises(ValidationError):
                await svc.badges_for_rows(session, "2-9")
        assert [b.name for b in by_rows] == ["Jane Doe", "John Roe", ""]
        assert [b.name for b in by_eid] == ["John Roe", "", ""]

    async def test_process_registration_emails(self, db, store, sender):
        svc = RegistrationService(make_settings(), store, email_sender=sender)
        async with db.get_session() as session:
            result = await svc.process_registration(session, person(**{
                "Timestamp": "2024-05-10T09:30:00",
            }))
            table = await store.get_table(session, REGISTRATION)

        assert result.row_number == 2
        assert result.access_request_sent
        assert result.supplies_sent
        assert not result.lab_access_submitted
        assert table.records()[0]["UT EID"] == "jd123"
        subjects = [c.args[1] for c in sender.send.call_args_list]
        assert subjects == [
            "Completed: Access Control Request",
            "Get Cleanroom Supplies | Safety Training | jd123",
        ]
        assert sender.send.call_args_list[0].args[0] == "access-control@example.edu"

    async def test_invalid_timestamp(self, db, store, sender):
        svc = RegistrationService(make_settings(), store, email_sender=sender)
        async with db.get_session() as session:
            with pytest.raises(ValidationError):
                await svc.process_registration(session, person(Timestamp="yesterday"))

    @pytest.mark.parametrize("action,subject", [
        ("sendRequestTrainingEmail", "MER | New User Onboarding"),
        ("sendBuildingAccessEmail", "Passed Quiz | Safety Training | MER User"),
        ("sendBasketRequestEmail", "Get Cleanroom Supplies | Safety Training | MER User"),
    ])
    async def test_onboarding_actions(self, store, sender, action, subject):
        svc = RegistrationService(make_settings(), store, email_sender=sender)
        report = await svc.send_onboarding_emails(action, "a@x.edu, b@x.edu")
        assert report.sent == ["a@x.edu", "b@x.edu"]
        assert {c.args[1] for c in sender.send.call_args_list} == {subject}

    async def test_onboarding_unknown_action(self, store, sender):
        svc = RegistrationService(make_settings(), store, email_sender=sender)
        with pytest.raises(ValidationError):
            await svc.send_onboarding_emails("sendPizza", "a@x.edu")

    async def test_onboarding_needs_addresses(self, store, sender):
        svc = RegistrationService(make_settings(), store, email_sender=sender)
        with pytest.raises(ValidationError):
            await svc.send_onboarding_emails("sendRequestTrainingEmail", "none")

    @pytest.mark.parametrize("action", ONBOARDING_ACTIONS)
    async def test_every_onboarding_action_is_sent(self, store, sender, action):
        svc = RegistrationService(make_settings(), store, email_sender=sender)
        report = await svc.send_onboarding_emails(action, "a@x.edu")
        assert (report.sent, report.failed) == (["a@x.edu"], [])
        assert sender.send.call_args.args[0] == "a@x.edu"

    async def test_simultaneous_registrations(self, file_db, store, sender):
        svc = RegistrationService(make_settings(), store, email_sender=sender)

        async def register(record):
            async with file_db.get_session() as session:
                return await svc.process_registration(session, record)

        results = await asyncio.gather(
            register(person()), register(person("John", "Roe", "jr456")),
        )
        async with file_db.get_session() as session:
            table = await store.get_table(session, REGISTRATION)
        assert sorted(r.row_number for r in results) == [2, 3]
        assert sorted(r["UT EID"] for r in table.records()) == ["jd123", "jr456"]
