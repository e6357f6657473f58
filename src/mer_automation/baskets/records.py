"""Typed rows of the Basket Index and Basket Registration tables."""

import math
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from mer_automation.sheets.store import Table, TableRow

BASKET_ID_PATTERN = re.compile(r"^[SN][0-9]{3}$")

BASKET_ID = "Basket ID"
CLEANROOM = "Cleanroom"
AVAILABLE = "Basket Available"
ACTIVE = "User Active"
RECORD_ROW = "Record Row"
EID = "UT EID"
PHONE = "Phone Number"
EMAIL = "Email Address"
FIRST_NAME = "First Name"
LAST_NAME = "Last Name"
TIMESTAMP = "Timestamp"

BASKET_INDEX_HEADERS = [
    BASKET_ID, CLEANROOM, AVAILABLE, ACTIVE, RECORD_ROW,
    EID, PHONE, EMAIL, FIRST_NAME, LAST_NAME, TIMESTAMP,
]

BASKET_REGISTRATION_HEADERS = [
    TIMESTAMP, EID, FIRST_NAME, LAST_NAME, PHONE, EMAIL, CLEANROOM, BASKET_ID,
]


def is_basket_id(value: Any) -> bool:
    return isinstance(value, str) and BASKET_ID_PATTERN.match(value.strip()) is not None


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def as_row_number(value: Any) -> int | None:
    """Record Row cell as an int; None when blank or not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        return None if math.isnan(value) else int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def as_datetime(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


@dataclass
class BasketIndexEntry:
    basket_id: str
    zone: str
    available: bool
    active: bool
    row_number: int = 0
    record_row: int | None = None
    eid: str = ""
    phone: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    assigned_at: datetime | None = None

    @property
    def assignee_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_row(cls, row: TableRow, columns: dict[str, int]) -> "BasketIndexEntry":
        cell = lambda header: row.get(columns[header])  # noqa: E731
        return cls(
            basket_id=_text(cell(BASKET_ID)),
            zone=_text(cell(CLEANROOM)),
            available=as_bool(cell(AVAILABLE)),
            active=as_bool(cell(ACTIVE)),
            row_number=row.row_number,
            record_row=as_row_number(cell(RECORD_ROW)),
            eid=_text(cell(EID)),
            phone=_text(cell(PHONE)),
            email=_text(cell(EMAIL)),
            first_name=_text(cell(FIRST_NAME)),
            last_name=_text(cell(LAST_NAME)),
            assigned_at=as_datetime(cell(TIMESTAMP)),
        )

    def to_cells(self) -> dict[str, Any]:
        return {
            BASKET_ID: self.basket_id,
            CLEANROOM: self.zone,
            AVAILABLE: self.available,
            ACTIVE: self.active,
            RECORD_ROW: self.record_row,
            EID: self.eid or None,
            PHONE: self.phone or None,
            EMAIL: self.email or None,
            FIRST_NAME: self.first_name or None,
            LAST_NAME: self.last_name or None,
            TIMESTAMP: self.assigned_at.isoformat() if self.assigned_at else None,
        }

    def with_assignee(self, request: "BasketRequest") -> "BasketIndexEntry":
        """Copy with the requester's identity; flags are left as they are."""
        return replace(
            self,
            record_row=request.record_row if request.record_row is not None else self.record_row,
            eid=request.eid,
            phone=request.phone,
            email=request.email,
            first_name=request.first_name,
            last_name=request.last_name,
            assigned_at=request.timestamp,
        )

    def cleared(self) -> "BasketIndexEntry":
        """The physical basket only: available, inactive, no assignee."""
        return BasketIndexEntry(
            basket_id=self.basket_id,
            zone=self.zone,
            available=True,
            active=False,
            row_number=self.row_number,
        )


def read_basket_index(table: Table) -> list[BasketIndexEntry]:
    columns = table.header_map(BASKET_INDEX_HEADERS)
    return [BasketIndexEntry.from_row(row, columns) for row in table.rows]


@dataclass
class BasketRequest:
    """A basket registration form submission."""

    eid: str
    first_name: str
    last_name: str
    email: str
    cleanroom: str
    phone: str = ""
    basket_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    record_row: int | None = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_registration_row(self) -> list[Any]:
        return [
            self.timestamp.isoformat(), self.eid, self.first_name, self.last_name,
            self.phone, self.email, self.cleanroom, self.basket_id,
        ]
