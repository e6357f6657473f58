"""Training service — session sign-ups, quiz invitations and grading."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from mer_automation.common.config import MerSettings
from mer_automation.common.exceptions import MerError, NotFoundError
from mer_automation.notifications import messages
from mer_automation.notifications.dispatch import deliver
from mer_automation.notifications.email_delivery import EmailSender
from mer_automation.notifications.forms import onboarding_url, quiz_url
from mer_automation.registration.inputs import parse_row_numbers
from mer_automation.sheets.store import Table, TableStore
from mer_automation.training.calendar import GUEST_DECLINED, CalendarClient
from mer_automation.training.quiz import passed_quiz
from mer_automation.training.schedule import (
    format_event_period,
    merge_guest,
    parse_training_session,
)

logger = logging.getLogger(__name__)

TRAINING_HEADERS = [
    "Timestamp", "Email Address", "UT EID", "First Name", "Last Name", "Training Session",
]
QUIZ_HEADERS = ["Timestamp", "Email Address", "Score", "UT EID", "First Name", "Last Name"]
DROPDOWN_MONTHS = 2


@dataclass
class Trainee:
    eid: str
    first_name: str
    last_name: str
    email: str

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def from_record(cls, record: dict) -> "Trainee":
        return cls(
            eid=str(record.get("UT EID") or ""),
            first_name=str(record.get("First Name") or ""),
            last_name=str(record.get("Last Name") or ""),
            email=str(record.get("Email Address") or ""),
        )


@dataclass
class QuizSubmission:
    trainee: Trainee
    score: str | float
    total_points: float | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class QuizResult:
    passed: bool
    emailed: bool


@dataclass
class QuizDispatchReport:
    event_id: str | None = None
    sent: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class TrainingService:
    """Safety training workflow around an injected calendar."""

    def __init__(
        self,
        settings: MerSettings,
        store: TableStore,
        email_sender: EmailSender | None = None,
        calendar: CalendarClient | None = None,
    ):
        self.settings = settings
        self.store = store
        self.email_sender = email_sender
        self.calendar = calendar

    def _require_calendar(self) -> CalendarClient:
        if self.calendar is None:
            raise MerError("Calendar is not configured", code="NOT_CONFIGURED")
        return self.calendar

    # ── Sign-up ──

    async def register_request(
        self, session: AsyncSession, trainee: Trainee, training_session: str,
    ) -> bool:
        """Record a training request and invite the trainee to the session."""
        name = self.settings.sheet_training
        async with self.store.lock(name):
            await self.store.create_table(session, name, TRAINING_HEADERS)
            await self.store.append_row(session, name, [
                datetime.now(timezone.utc).isoformat(), trainee.email, trainee.eid,
                trainee.first_name, trainee.last_name, training_session,
            ])
            await session.commit()
        return await self.add_to_training_event(trainee.email, training_session)

    async def add_to_training_event(self, email: str, training_session: str) -> bool:
        """Add ``email`` to the session's event; False if already a guest."""
        calendar = self._require_calendar()
        start, end = parse_training_session(training_session)
        title = self.settings.safety_training_title
        events = await calendar.list_events(start, end, title)
        event = next((e for e in events if e.summary == title), None)
        if event is None:
            logger.error(
                "Training event does not exist: %s between %s and %s", title, start, end,
            )
            raise NotFoundError(f"Event not found: {title}")

        guests = merge_guest(event.attendees, email)
        if guests is None:
            return False
        try:
            await calendar.set_attendees(event.id, guests)
        except Exception:
            logger.exception("Error adding guest to safety training event %s", event.id)
            return False
        logger.info("Added guest: %s", email)
        return True

    async def training_dropdown_choices(self, today: date | None = None) -> list[str]:
        """Upcoming sessions from tomorrow through the next two months."""
        calendar = self._require_calendar()
        start = datetime.combine((today or date.today()) + timedelta(days=1), time.min)
        end = start + timedelta(days=30 * DROPDOWN_MONTHS)
        events = await calendar.list_events(start, end, self.settings.safety_training_title)
        return [format_event_period(e.start, e.end) for e in events]

    # ── Quiz invitations ──

    async def trainees(self, session: AsyncSession) -> dict[str, Trainee]:
        """Training requests keyed by email address; later rows win."""
        table = await self.store.get_table(session, self.settings.sheet_training)
        return {
            record["Email Address"]: Trainee.from_record(record)
            for record in table.records()
            if record.get("Email Address")
        }

    def _quiz_link(self, trainee: Trainee) -> str:
        return quiz_url(
            self.settings.quiz_form_url, trainee.eid, trainee.first_name, trainee.last_name,
        )

    async def send_training_group_quiz(
        self, session: AsyncSession, today: date | None = None,
    ) -> QuizDispatchReport:
        """Send the quiz to every guest of today's session who did not decline."""
        calendar = self._require_calendar()
        day = today or date.today()
        start = datetime.combine(day, time.min)
        end = datetime.combine(day, time(23, 59, 59))
        report = QuizDispatchReport()

        events = await calendar.list_events(start, end, self.settings.safety_training_title)
        if not events:
            logger.warning("No training events found between %s and %s", start, end)
            return report
        event = events[0]
        report.event_id = event.id

        trainees = await self.trainees(session)
        for guest in event.attendees:
            if guest.status == GUEST_DECLINED:
                logger.info("Training quiz not sent to %s: declined invite", guest.email)
                report.skipped.append(guest.email)
                continue
            trainee = trainees.get(guest.email)
            if trainee is None:
                logger.warning("No training request found for guest %s", guest.email)
                report.failed.append(guest.email)
                continue
            message = messages.quiz_invite(
                guest.email, trainee.name, trainee.eid, self._quiz_link(trainee),
            )
            if await deliver(self.email_sender, message):
                report.sent.append(guest.email)
            else:
                report.failed.append(guest.email)
        return report

    async def send_quiz_invites(self, session: AsyncSession, rows: str) -> int:
        """One-off quiz emails for rows of the training request table."""
        table = await self.store.get_table(session, self.settings.sheet_training)
        sent = 0
        for row_number in parse_row_numbers(rows, largest=table.last_row):
            trainee = _trainee_at(table, row_number)
            message = messages.quiz_invite(
                trainee.email, trainee.name, trainee.eid, self._quiz_link(trainee),
            )
            if await deliver(self.email_sender, message):
                sent += 1
        return sent

    # ── Grading ──

    async def needs_lab_access(self, session: AsyncSession, eid: str) -> bool:
        """True unless the EID already has a lab access account."""
        try:
            table = await self.store.get_table(session, self.settings.sheet_lab_access)
            column = table.index("UT EID")
        except MerError as e:
            logger.warning("Existing EID/Lab Access lookup failed: %s", e.message)
            return True
        return eid not in {row.get(column) for row in table.rows}

    async def grade_submission(
        self, session: AsyncSession, submission: QuizSubmission,
    ) -> QuizResult:
        """Store a quiz response, grade it and email the result."""
        trainee = submission.trainee
        passed = passed_quiz(
            submission.score, submission.total_points, self.settings.quiz_passing_score,
        )
        name = self.settings.sheet_quiz
        async with self.store.lock(name):
            await self.store.create_table(session, name, QUIZ_HEADERS)
            await self.store.append_row(session, name, [
                submission.timestamp.isoformat(), trainee.email, str(submission.score),
                trainee.eid, trainee.first_name, trainee.last_name,
            ])
            # The response is on record before the result email goes out.
            await session.commit()

        if passed:
            url = onboarding_url(
                self.settings.onboarding_form_url, trainee.eid, trainee.email,
                trainee.first_name, trainee.last_name,
                await self.needs_lab_access(session, trainee.eid),
            )
        else:
            url = self._quiz_link(trainee)
        message = messages.quiz_result(trainee.email, trainee.name, trainee.eid, passed, url)
        emailed = await deliver(self.email_sender, message)
        logger.info("Quiz graded for %s: %s", trainee.eid, "pass" if passed else "fail")
        return QuizResult(passed=passed, emailed=emailed)


def _trainee_at(table: Table, row_number: int) -> Trainee:
    row = table.row(row_number)
    return Trainee.from_record(
        {header: row.get(i) for i, header in enumerate(table.headers)}
    )
