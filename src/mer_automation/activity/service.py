"""Active user service — rebuild the Active Users table from usage logs."""

import asyncio
import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from mer_automation.activity.aggregator import UsageRecord, aggregate, month_window
from mer_automation.activity.logsource import LogSource
from mer_automation.common.config import MerSettings
from mer_automation.common.exceptions import NotFoundError
from mer_automation.sheets.store import TableStore

logger = logging.getLogger(__name__)

ACTIVE_USER_HEADERS = ["First Name Last Name", "Group", "Date", "Time", "Tool", "Use"]
HEADER_FORMATS = ["@", "@", "@", "@", "@", "@"]
BODY_FORMATS = ["@", "@", "yyyy-MM-dd", "HH:mm:ss", "@", "#,##0.00000"]
NAME_COLUMN = "First Name Last Name"


class ActiveUserService:
    """Aggregates usage logs and materializes the Active Users table."""

    def __init__(self, settings: MerSettings, store: TableStore, log_source: LogSource):
        self.settings = settings
        self.store = store
        self.log_source = log_source

    @property
    def table_name(self) -> str:
        return self.settings.sheet_active_users

    async def update_active_users(
        self, session: AsyncSession, today: date | None = None,
    ) -> dict:
        """Scan the active period and overwrite the Active Users table."""
        months = month_window(today or date.today(), self.settings.active_period_months)
        # Aggregation runs to completion before anything is written.
        latest = await asyncio.to_thread(aggregate, months, self.log_source)
        await self.materialize(session, latest)
        logger.info("Active users updated: %d users over %s", len(latest), ", ".join(months))
        return {"users": len(latest), "months": months}

    async def materialize(
        self, session: AsyncSession, latest: dict[str, UsageRecord],
    ) -> None:
        rows = [record.to_row() for record in latest.values()]
        async with self.store.lock(self.table_name):
            await self.store.overwrite_table(session, self.table_name, ACTIVE_USER_HEADERS, rows)
            await self.store.set_formats(
                session, self.table_name,
                header_formats=HEADER_FORMATS,
                column_formats=BODY_FORMATS,
            )
            await self.store.sort_table(session, self.table_name, column=0, ascending=True)
            await session.commit()

    async def active_user_names(self, session: AsyncSession) -> set[str]:
        """Names in the Active Users table; empty if it was never built."""
        try:
            table = await self.store.get_table(session, self.table_name)
        except NotFoundError:
            logger.warning("Table %s does not exist yet", self.table_name)
            return set()
        name_index = table.index(NAME_COLUMN)
        return {
            str(row.get(name_index)).strip()
            for row in table.rows
            if row.get(name_index)
        }
