"""Tests for email delivery, message content and pre-filled form links."""

import json
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from mer_automation.common.exceptions import DeliveryError
from mer_automation.notifications import messages
from mer_automation.notifications.dispatch import deliver
from mer_automation.notifications.email_delivery import Attachment, EmailSender
from mer_automation.notifications.forms import (
    building_access_url,
    onboarding_url,
    purge_form_url,
    quiz_url,
)


@pytest.fixture
def provider_requests(monkeypatch):
    """Route provider API calls to an in-process transport."""
    captured = []
    status = {"code": 202}
    real_client = httpx.AsyncClient

    def handler(request):
        captured.append(request)
        return httpx.Response(status["code"], json={})

    monkeypatch.setattr(
        httpx, "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler)),
    )
    return captured, status


# ── Email sender ──

class TestEmailSender:
    async def test_no_provider_returns_false(self):
        sender = EmailSender()
        assert await sender.send("a@b.com", "Subject", "Body") is False

    async def test_sendgrid_payload(self, provider_requests):
        captured, _ = provider_requests
        sender = EmailSender("sendgrid", "sg-key", "lab@example.edu", "MER")
        label = Attachment("label.json", b'{"basket": "S001"}', "application/json")

        assert await sender.send("a@b.com", "Hello", "Body", [label]) is True
        request = captured[0]
        payload = json.loads(request.content)
        assert request.url == "https://api.sendgrid.com/v3/mail/send"
        assert request.headers["Authorization"] == "Bearer sg-key"
        assert payload["personalizations"][0]["to"][0]["email"] == "a@b.com"
        assert payload["attachments"][0]["filename"] == "label.json"
        assert payload["attachments"][0]["content"] == label.encoded

    async def test_resend_payload(self, provider_requests):
        captured, status = provider_requests
        status["code"] = 200
        sender = EmailSender("Resend", "re-key", "lab@example.edu", "MER")

        assert await sender.send("a@b.com", "Hello", "Body") is True
        payload = json.loads(captured[0].content)
        assert payload["from"] == "MER <lab@example.edu>"
        assert payload["to"] == ["a@b.com"]
        assert "attachments" not in payload

    async def test_provider_rejection_raises(self, provider_requests):
        _, status = provider_requests
        status["code"] = 500
        sender = EmailSender("sendgrid", "sg-key")
        with pytest.raises(DeliveryError):
            await sender.send("a@b.com", "Hello", "Body")

    def test_attachment_base64(self):
        assert Attachment("a.txt", b"hi").encoded == "aGk="


class TestDeliver:
    async def test_without_sender(self):
        message = messages.training_request("a@b.com", "https://forms/x")
        assert await deliver(None, message) is False

    async def test_delivery_error_is_reported_not_raised(self):
        sender = MagicMock(spec=EmailSender)
        sender.send = AsyncMock(side_effect=DeliveryError("down"))
        message = messages.training_request("a@b.com", "https://forms/x")
        assert await deliver(sender, message) is False

    async def test_passes_attachments(self):
        sender = MagicMock(spec=EmailSender)
        sender.send = AsyncMock(return_value=True)
        message = messages.basket_assigned("a@b.com", "Jane Doe", "S001", {"basket": "S001"})
        assert await deliver(sender, message) is True
        assert sender.send.call_args.args[3] == message.attachments


# ── Message content ──

class TestMessages:
    def test_progress_footer_marks_completed_steps(self):
        footer = messages.progress_footer(2)
        assert "[x] 1." in footer
        assert "[x] 2." in footer
        assert "[ ] 3." in footer

    def test_quiz_result_subjects(self):
        passed = messages.quiz_result("a@b.com", "Jane", "jd123", True, "u")
        failed = messages.quiz_result("a@b.com", "Jane", "jd123", False, "u")
        assert passed.subject == "Passed Quiz | Safety Training | jd123"
        assert failed.subject == "Failed Quiz | Safety Training | jd123"

    def test_quiz_invite_subject(self):
        assert messages.quiz_invite("a", "Jane", "jd123", "u").subject == (
            "Quiz | Safety Training | jd123"
        )

    def test_basket_purge_carries_url(self):
        message = messages.basket_purge("a@b.com", "Jane", "Doe", "S001", "https://f/x")
        assert message.subject == "Inactive Basket Purge Notification"
        assert "https://f/x" in message.body
        assert "S001" in message.body

    def test_access_control_request_attachment(self):
        payload = {"First Name": "Jane", "Last Name": "Doe", "UT EID": "jd123"}
        message = messages.access_control_request("ac@example.edu", payload)
        assert message.subject == "Completed: Access Control Request"
        assert message.attachments[0].filename == "Access Control Request - Doe, Jane - jd123.json"
        assert json.loads(message.attachments[0].content) == payload


# ── Form links ──

def query(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


class TestForms:
    def test_purge_form_prefill(self):
        params = query(purge_form_url("https://f/purge", "jd123", "Jane", "Doe"))
        assert params == {
            "usp": "pp_url",
            "entry.195529864": "jd123",
            "entry.1486300689": "Jane",
            "entry.1400065751": "Doe",
        }

    def test_values_are_encoded(self):
        url = quiz_url("https://f/quiz", "jd123", "Mary Ann", "O'Neil & Co")
        assert " " not in url
        assert query(url)["entry.252391519"] == "O'Neil & Co"

    def test_onboarding_lab_access_flag(self):
        yes = query(onboarding_url("https://f/o", "jd", "a@b.com", "J", "D", True))
        no = query(onboarding_url("https://f/o", "jd", "a@b.com", "J", "D", False))
        assert yes["entry.537644763"] == "Yes"
        assert no["entry.537644763"] == "No"

    def test_building_access_defaults_to_no_lab_access(self):
        params = query(building_access_url("https://f/o", "a@b.com"))
        assert params["entry.638397220"] == "a@b.com"
        assert params["entry.537644763"] == "No"
