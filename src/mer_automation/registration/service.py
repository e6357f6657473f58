"""Registration service — badges, building access and onboarding emails."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from mer_automation.common.config import MerSettings
from mer_automation.common.exceptions import ValidationError
from mer_automation.notifications import messages
from mer_automation.notifications.dispatch import deliver
from mer_automation.notifications.email_delivery import EmailSender
from mer_automation.notifications.forms import (
    building_access_url,
    supplies_url,
    training_request_url,
)
from mer_automation.registration.access import access_request_payload, submit_lab_access_form
from mer_automation.registration.badges import Badge, badge_rows, make_badges, records_at
from mer_automation.registration.inputs import parse_email_addresses, parse_row_numbers
from mer_automation.sheets.store import TableStore

logger = logging.getLogger(__name__)

REGISTRATION_HEADERS = [
    "Timestamp", "Email Address", "UT EID", "First Name", "Last Name", "Phone Number",
    "UT Affiliation", "Professor or Supervisor", "Department or Company",
    "Create Lab Access & Sedona Accounts",
]
LAB_ACCESS_FLAG = "Create Lab Access & Sedona Accounts"

ONBOARDING_ACTIONS = (
    "sendRequestTrainingEmail",
    "sendBuildingAccessEmail",
    "sendBasketRequestEmail",
)


@dataclass
class OnboardingReport:
    action: str
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass
class RegistrationResult:
    row_number: int
    lab_access_submitted: bool = False
    access_request_sent: bool = False
    supplies_sent: bool = False


class RegistrationService:
    def __init__(
        self,
        settings: MerSettings,
        store: TableStore,
        email_sender: EmailSender | None = None,
    ):
        self.settings = settings
        self.store = store
        self.email_sender = email_sender

    # ── Badges ──

    async def badges_for_rows(self, session: AsyncSession, rows: str) -> list[Badge]:
        table = await self.store.get_table(session, self.settings.sheet_registration)
        row_numbers = parse_row_numbers(rows, largest=table.last_row)
        return make_badges(records_at(table, row_numbers), self.settings.badge_organization)

    async def badges_for_eid(self, session: AsyncSession, eid: str) -> list[Badge]:
        table = await self.store.get_table(session, self.settings.sheet_registration)
        row_numbers = badge_rows(table, eid)
        return make_badges(records_at(table, row_numbers), self.settings.badge_organization)

    # ── Building access registration ──

    async def process_registration(
        self, session: AsyncSession, record: Mapping[str, Any],
    ) -> RegistrationResult:
        """Store a registration and hand it to access control and lab access."""
        submitted = _submitted_at(record.get("Timestamp"))
        values = {**record, "Timestamp": submitted.isoformat()}

        name = self.settings.sheet_registration
        async with self.store.lock(name):
            await self.store.create_table(session, name, REGISTRATION_HEADERS)
            table = await self.store.get_table(session, name)
            row_number = await self.store.append_row(
                session, name, [values.get(header) for header in table.headers],
            )
            await session.commit()
        result = RegistrationResult(row_number=row_number)

        if values.get(LAB_ACCESS_FLAG) == "Yes":
            result.lab_access_submitted = await submit_lab_access_form(
                self.settings.lab_access_form_url, values,
            )

        payload = access_request_payload(values, self.settings.access_signature, submitted)
        result.access_request_sent = await deliver(
            self.email_sender,
            messages.access_control_request(self.settings.access_control_email, payload),
        )

        url = supplies_url(self.settings.supplies_form_url, str(values.get("Email Address") or ""))
        result.supplies_sent = await deliver(
            self.email_sender,
            messages.cleanroom_supplies(
                str(values.get("Email Address") or ""),
                f"{values.get('First Name') or ''} {values.get('Last Name') or ''}".strip(),
                url,
                str(values.get("UT EID") or "MER User"),
            ),
        )
        logger.info("Processed registration row %d", row_number)
        return result

    # ── Onboarding emails ──

    async def send_onboarding_emails(self, action: str, text: str) -> OnboardingReport:
        """Send one onboarding email to every address found in ``text``."""
        if action not in ONBOARDING_ACTIONS:
            raise ValidationError(f"That functionality does not exist: {action}")
        recipients = parse_email_addresses(text)
        if not recipients:
            raise ValidationError("No valid email addresses given")

        report = OnboardingReport(action=action)
        for to in recipients:
            if await deliver(self.email_sender, self._onboarding_message(action, to)):
                report.sent.append(to)
            else:
                report.failed.append(to)
        logger.info("%s: %d sent, %d failed", action, len(report.sent), len(report.failed))
        return report

    def _onboarding_message(self, action: str, to: str) -> messages.OutboundEmail:
        if action == "sendRequestTrainingEmail":
            return messages.training_request(
                to, training_request_url(self.settings.training_request_form_url, to),
            )
        if action == "sendBuildingAccessEmail":
            return messages.building_access(
                to, building_access_url(self.settings.onboarding_form_url, to),
            )
        return messages.cleanroom_supplies(
            to, "MER User", supplies_url(self.settings.supplies_form_url, to),
        )


def _submitted_at(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        try:
            return datetime.fromisoformat(str(value))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}") from None
    return datetime.now(timezone.utc)
