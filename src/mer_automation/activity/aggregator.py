"""Reduce monthly usage logs to each user's most recent activity."""

import logging
import warnings
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from mer_automation.activity.logsource import LogSource
from mer_automation.common.exceptions import DataIntegrityWarning

logger = logging.getLogger(__name__)

HEADER_LINES = 3
FOOTER_LINES = 1
FIELD_COUNT = 6


@dataclass(frozen=True)
class UsageRecord:
    """One log line: date, time, group, user, tool, use."""

    date: str
    time: str
    zone_or_group: str
    user_name: str
    tool_name: str
    usage_value: str

    @property
    def datetime(self) -> str:
        # "yyyy-MM-dd HH:mm:ss" compares chronologically as a string.
        return f"{self.date} {self.time}"

    def to_row(self) -> list[str]:
        return [
            self.user_name,
            self.zone_or_group,
            self.date,
            self.time,
            self.tool_name,
            self.usage_value,
        ]


def parse_usage_line(line: str) -> UsageRecord | None:
    """Parse a tab-separated log line; None when it is malformed."""
    fields = line.split("\t")
    if len(fields) < FIELD_COUNT:
        return None
    fields = [f.strip() for f in fields[:FIELD_COUNT]]
    return UsageRecord(
        date=fields[0],
        time=fields[1],
        zone_or_group=fields[2],
        user_name=fields[3],
        tool_name=fields[4],
        usage_value=fields[5],
    )


def body_lines(content: str) -> list[str]:
    """Lines of one export with the header and footer dropped."""
    lines = content.splitlines()
    return lines[HEADER_LINES:len(lines) - FOOTER_LINES]


def aggregate(
    month_ids: Iterable[str], log_source: LogSource,
) -> dict[str, UsageRecord]:
    """Latest usage record per user across the given months.

    A missing month or usage folder raises NotFoundError and nothing is
    returned. Malformed lines are skipped with a DataIntegrityWarning.
    """
    latest: dict[str, UsageRecord] = {}
    skipped = 0
    for month_id in month_ids:
        for content in log_source.list_files(month_id):
            for line in body_lines(content):
                if not line.strip():
                    continue
                record = parse_usage_line(line)
                if record is None:
                    skipped += 1
                    logger.warning("Skipping malformed usage line in %s: %r", month_id, line)
                    continue
                current = latest.get(record.user_name)
                if current is None or current.datetime < record.datetime:
                    latest[record.user_name] = record

    if skipped:
        warnings.warn(
            f"Skipped {skipped} malformed usage log line(s)",
            DataIntegrityWarning,
            stacklevel=2,
        )
    return latest


def month_window(today: date, months: int) -> list[str]:
    """The ``months`` calendar months before ``today``'s month, newest first."""
    year, month = today.year, today.month
    window = []
    for _ in range(months):
        month -= 1
        if month == 0:
            month = 12
            year -= 1
        window.append(f"{year:04d}-{month:02d}")
    return window
