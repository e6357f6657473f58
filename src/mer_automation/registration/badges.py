"""Printable badges with a contact vCard per registered user."""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from mer_automation.sheets.store import Table

BADGES_PER_PAGE = 3


@dataclass(frozen=True)
class Badge:
    name: str
    vcard: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "vcard": self.vcard}


BLANK_BADGE = Badge(name="", vcard="")


def make_vcard(record: Mapping[str, Any], organization: str = "MER") -> str:
    first = record.get("First Name") or ""
    last = record.get("Last Name") or ""
    lines = [
        "BEGIN:VCARD",
        "VERSION:4.0",
        f"N:{last};{first}",
        f"FN:{first} {last}",
        f"ORG:{organization}",
        f"TEL;TYPE=cell:{record.get('Phone Number') or ''}",
        f"EMAIL;TYPE=work:{record.get('Email Address') or ''}",
        f"NOTE:{record.get('UT EID') or ''}",
        "END:VCARD",
    ]
    return "\r\n".join(lines)


def make_badges(
    records: Iterable[Mapping[str, Any]], organization: str = "MER",
) -> list[Badge]:
    """One badge per record, padded with blanks to fill the last page."""
    badges = [
        Badge(
            name=f"{record.get('First Name') or ''} {record.get('Last Name') or ''}",
            vcard=make_vcard(record, organization),
        )
        for record in records
    ]
    remainder = len(badges) % BADGES_PER_PAGE
    if remainder:
        badges.extend([BLANK_BADGE] * (BADGES_PER_PAGE - remainder))
    return badges


def badge_rows(table: Table, eids: str | Iterable[str]) -> list[int]:
    """Row numbers of the registration rows belonging to ``eids``."""
    wanted = {eids} if isinstance(eids, str) else set(eids)
    column = table.index("UT EID")
    return [row.row_number for row in table.rows if row.get(column) in wanted]


def records_at(table: Table, row_numbers: Iterable[int]) -> list[dict[str, Any]]:
    records = []
    for row_number in row_numbers:
        row = table.row(row_number)
        records.append({header: row.get(i) for i, header in enumerate(table.headers)})
    return records
