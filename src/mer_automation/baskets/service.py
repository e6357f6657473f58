"""Basket service — assignment, return, activity status and purge warnings."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from mer_automation.baskets.reconciler import StatusChange, find_purge_candidates, reconcile
from mer_automation.baskets.records import (
    ACTIVE,
    BASKET_ID,
    BASKET_INDEX_HEADERS,
    BASKET_REGISTRATION_HEADERS,
    BasketIndexEntry,
    BasketRequest,
    is_basket_id,
    read_basket_index,
)
from mer_automation.common.config import MerSettings
from mer_automation.common.exceptions import MerError, NotFoundError, ValidationError
from mer_automation.notifications import messages
from mer_automation.notifications.dispatch import deliver
from mer_automation.notifications.email_delivery import EmailSender
from mer_automation.notifications.forms import purge_form_url
from mer_automation.sheets.store import VOID_ANNOTATION, TableStore

logger = logging.getLogger(__name__)


@dataclass
class AssignmentResult:
    basket_id: str | None
    zone: str
    reassigned: bool = False
    row_number: int | None = None

    @property
    def assigned(self) -> bool:
        return self.basket_id is not None


@dataclass
class ReturnReport:
    returned: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class PurgeReport:
    candidates: list[str] = field(default_factory=list)
    sent: int = 0
    failed: int = 0


class BasketService:
    """Basket Index operations. Each mutation holds the Basket Index lock until committed."""

    def __init__(
        self,
        settings: MerSettings,
        store: TableStore,
        email_sender: EmailSender | None = None,
    ):
        self.settings = settings
        self.store = store
        self.email_sender = email_sender

    @property
    def index_name(self) -> str:
        return self.settings.sheet_basket_index

    @property
    def registration_name(self) -> str:
        return self.settings.sheet_basket_registration

    # ── Read ──

    async def entries(self, session: AsyncSession) -> list[BasketIndexEntry]:
        table = await self.store.get_table(session, self.index_name)
        return read_basket_index(table)

    async def lookup(self, session: AsyncSession, basket_id: str) -> BasketIndexEntry:
        for entry in await self.entries(session):
            if entry.basket_id == basket_id:
                return entry
        raise NotFoundError(f"Basket not found: {basket_id}")

    # ── Assignment ──

    async def assign(
        self, session: AsyncSession, request: BasketRequest,
    ) -> AssignmentResult:
        """Give the requester a basket in their cleanroom.

        A request carrying a valid basket ID reassigns that basket to the
        requester and leaves its availability and activity flags alone.
        The Basket Index lock is held until the assignment is committed.
        """
        async with self.store.lock(self.index_name):
            result = await self._assign(session, request)
            await session.commit()
        return result

    async def _assign(
        self, session: AsyncSession, request: BasketRequest,
    ) -> AssignmentResult:
        entries = await self.entries(session)

        if request.basket_id and is_basket_id(request.basket_id):
            basket_id = request.basket_id.strip()
            logger.info("%s already assigned basket %s", request.name, basket_id)
            existing = next((e for e in entries if e.basket_id == basket_id), None)
            if existing is None:
                raise NotFoundError(f"Basket not found: {basket_id}")
            updated = existing.with_assignee(request)
            await self._write_entry(session, updated)
            return AssignmentResult(
                basket_id=basket_id, zone=existing.zone,
                reassigned=True, row_number=existing.row_number,
            )

        for entry in entries:
            if entry.zone == request.cleanroom and entry.available:
                updated = entry.with_assignee(request)
                updated.available = False
                updated.active = True
                await self._write_entry(session, updated)
                if request.record_row is not None:
                    await self.store.update_cells(
                        session, self.registration_name, request.record_row,
                        {BASKET_ID: entry.basket_id},
                    )
                logger.info("Assigned basket %s to %s", entry.basket_id, request.name)
                return AssignmentResult(
                    basket_id=entry.basket_id, zone=entry.zone,
                    row_number=entry.row_number,
                )

        logger.info("No basket available in %s for %s", request.cleanroom, request.name)
        return AssignmentResult(basket_id=None, zone=request.cleanroom)

    async def submit_request(
        self, session: AsyncSession, request: BasketRequest,
    ) -> AssignmentResult:
        """Record a registration, assign a basket and email the outcome."""
        # Registration lock first, then the Basket Index lock inside assign.
        async with self.store.lock(self.registration_name):
            await self.store.create_table(
                session, self.registration_name, BASKET_REGISTRATION_HEADERS,
            )
            request.record_row = await self.store.append_row(
                session, self.registration_name, request.to_registration_row(),
            )
            result = await self.assign(session, request)

        if result.assigned:
            payload = messages.basket_qr_payload(
                request.eid, request.name, request.phone, request.email,
                result.basket_id, request.timestamp.isoformat(),
            )
            message = messages.basket_assigned(
                request.email, request.name, result.basket_id, payload,
            )
        else:
            message = messages.basket_unavailable(
                request.email, request.name, request.cleanroom,
            )
        await deliver(self.email_sender, message)
        return result

    # ── Return ──

    async def return_basket(self, session: AsyncSession, basket_id: str) -> None:
        basket_id = basket_id.strip()
        report = await self.return_baskets(session, [basket_id])
        if basket_id in report.errors:
            raise NotFoundError(report.errors[basket_id])

    async def return_baskets(
        self, session: AsyncSession, basket_ids: Iterable[str],
    ) -> ReturnReport:
        """Free each basket; unknown IDs are reported without stopping the batch."""
        report = ReturnReport()
        async with self.store.lock(self.index_name):
            by_id = {e.basket_id: e for e in await self.entries(session)}
            for basket_id in basket_ids:
                basket_id = basket_id.strip()
                entry = by_id.get(basket_id)
                if entry is None:
                    report.errors[basket_id] = f"Basket not found: {basket_id}"
                    logger.warning("Cannot return unknown basket %s", basket_id)
                    continue

                await self._write_entry(session, entry.cleared())
                by_id[basket_id] = entry.cleared()
                report.returned.append(basket_id)
                logger.info("Returned basket %s", basket_id)

                if entry.record_row is None:
                    continue
                try:
                    await self.store.annotate_row(
                        session, self.registration_name, entry.record_row, VOID_ANNOTATION,
                    )
                except MerError as e:
                    logger.warning(
                        "Basket %s returned but registration row %s not voided: %s",
                        basket_id, entry.record_row, e.message,
                    )
            await session.commit()
        return report

    # ── Activity ──

    async def update_active_status(
        self,
        session: AsyncSession,
        active_names: Iterable[str],
        exemptions: Iterable[str],
        now: datetime | None = None,
    ) -> list[StatusChange]:
        """Flip User Active flags that disagree with the activity data."""
        async with self.store.lock(self.index_name):
            changes = reconcile(
                self.settings.grace_period_days,
                await self.entries(session),
                active_names,
                exemptions,
                now=now,
            )
            for change in changes:
                await self.store.update_cells(
                    session, self.index_name, change.row_number,
                    {ACTIVE: change.new_active},
                )
                logger.info(change.description)
            await session.commit()
        return changes

    async def send_purge_warnings(self, session: AsyncSession) -> PurgeReport:
        """Email every inactive basket holder a purge correction form."""
        report = PurgeReport()
        for entry in find_purge_candidates(await self.entries(session)):
            report.candidates.append(entry.basket_id)
            url = purge_form_url(
                self.settings.purge_form_url, entry.eid, entry.first_name, entry.last_name,
            )
            message = messages.basket_purge(
                entry.email, entry.first_name, entry.last_name, entry.basket_id, url,
            )
            if await deliver(self.email_sender, message):
                report.sent += 1
            else:
                report.failed += 1
        logger.info(
            "Purge warnings: %d candidates, %d sent",
            len(report.candidates), report.sent,
        )
        return report

    # ── Setup ──

    async def ensure_tables(self, session: AsyncSession) -> None:
        await self.store.create_table(session, self.index_name, BASKET_INDEX_HEADERS)
        await self.store.create_table(
            session, self.registration_name, BASKET_REGISTRATION_HEADERS,
        )

    async def add_basket(
        self, session: AsyncSession, basket_id: str, zone: str,
    ) -> BasketIndexEntry:
        """Register a new physical basket as available."""
        if not is_basket_id(basket_id):
            raise ValidationError(f"Invalid basket ID: {basket_id!r}")
        entry = BasketIndexEntry(basket_id=basket_id, zone=zone, available=True, active=False)
        async with self.store.lock(self.index_name):
            await self.store.create_table(session, self.index_name, BASKET_INDEX_HEADERS)
            entry.row_number = await self.store.append_row(
                session, self.index_name,
                [entry.to_cells()[h] for h in BASKET_INDEX_HEADERS],
            )
            await session.commit()
        return entry

    async def _write_entry(self, session: AsyncSession, entry: BasketIndexEntry) -> None:
        await self.store.update_cells(session, self.index_name, entry.row_number, entry.to_cells())
