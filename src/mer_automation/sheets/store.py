"""Table store — named row-oriented tables persisted through SQLAlchemy."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mer_automation.common.exceptions import NotFoundError, ValidationError
from mer_automation.sheets.models import SheetModel, SheetRowModel

logger = logging.getLogger(__name__)

FIRST_DATA_ROW = 2

VOID_ANNOTATION = {
    "font_line": "line-through",
    "font_style": "italic",
    "font_color": "#d9d9d9",
}


@dataclass
class TableRow:
    row_number: int
    values: list[Any]
    annotation: dict[str, Any] = field(default_factory=dict)

    def get(self, index: int) -> Any:
        if 0 <= index < len(self.values):
            return self.values[index]
        return None


@dataclass
class Table:
    """Snapshot of a table: headers plus data rows in row order."""

    name: str
    headers: list[str]
    rows: list[TableRow]
    header_formats: list[str] = field(default_factory=list)
    column_formats: list[str] = field(default_factory=list)

    @property
    def last_row(self) -> int:
        return self.rows[-1].row_number if self.rows else FIRST_DATA_ROW - 1

    def index(self, header: str) -> int:
        try:
            return self.headers.index(header)
        except ValueError:
            raise ValidationError(
                f"Column '{header}' not found in '{self.name}'"
            ) from None

    def header_map(self, headers: Iterable[str]) -> dict[str, int]:
        """Resolve column positions once for a set of headers."""
        return {header: self.index(header) for header in headers}

    def row(self, row_number: int) -> TableRow:
        for row in self.rows:
            if row.row_number == row_number:
                return row
        raise ValidationError(
            f"Invalid row number: {row_number}. Row numbers must be between "
            f"{FIRST_DATA_ROW} and {self.last_row}."
        )

    def records(self) -> list[dict[str, Any]]:
        return [
            {header: row.get(i) for i, header in enumerate(self.headers)}
            for row in self.rows
        ]


class TableStore:
    """Read and write tables; one lock per table serializes mutations."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def lock(self, name: str) -> asyncio.Lock:
        """Lock guarding a read-compute-write span on one table."""
        if name not in self._locks:
            self._locks[name] = asyncio.Lock()
        return self._locks[name]

    # ── Read ──

    async def get_table(self, session: AsyncSession, name: str) -> Table:
        sheet = await self._require_sheet(session, name)
        rows = await self._rows(session, sheet)
        return Table(
            name=sheet.name,
            headers=list(sheet.headers or []),
            rows=[
                TableRow(r.row_number, list(r.values or []), dict(r.annotation or {}))
                for r in rows
            ],
            header_formats=list(sheet.header_formats or []),
            column_formats=list(sheet.column_formats or []),
        )

    async def has_table(self, session: AsyncSession, name: str) -> bool:
        return await self._get_sheet(session, name) is not None

    # ── Write ──

    async def create_table(
        self, session: AsyncSession, name: str, headers: Sequence[str],
    ) -> SheetModel:
        """Return the named table, creating it with the given headers if missing."""
        sheet = await self._get_sheet(session, name)
        if sheet is None:
            sheet = SheetModel(name=name, headers=list(headers))
            session.add(sheet)
            await session.flush()
            logger.info("Created table %s", name)
        return sheet

    async def overwrite_table(
        self,
        session: AsyncSession,
        name: str,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
    ) -> None:
        """Clear the table and replace headers and every data row."""
        sheet = await self.create_table(session, name, headers)
        sheet.headers = list(headers)
        await session.execute(
            delete(SheetRowModel).where(SheetRowModel.sheet_id == sheet.id)
        )
        for offset, values in enumerate(rows):
            session.add(SheetRowModel(
                sheet_id=sheet.id,
                row_number=FIRST_DATA_ROW + offset,
                values=list(values),
                annotation={},
            ))
        await session.flush()

    async def set_formats(
        self,
        session: AsyncSession,
        name: str,
        header_formats: Sequence[str] | None = None,
        column_formats: Sequence[str] | None = None,
    ) -> None:
        sheet = await self._require_sheet(session, name)
        if header_formats is not None:
            sheet.header_formats = list(header_formats)
        if column_formats is not None:
            sheet.column_formats = list(column_formats)
        await session.flush()

    async def append_row(
        self, session: AsyncSession, name: str, values: Sequence[Any],
    ) -> int:
        """Append a data row and return its row number.

        The row number is computed from the current last row, so callers hold
        ``lock(name)`` until the session commits.
        """
        sheet = await self._require_sheet(session, name)
        rows = await self._rows(session, sheet)
        row_number = rows[-1].row_number + 1 if rows else FIRST_DATA_ROW
        session.add(SheetRowModel(
            sheet_id=sheet.id,
            row_number=row_number,
            values=list(values),
            annotation={},
        ))
        await session.flush()
        return row_number

    async def update_row(
        self,
        session: AsyncSession,
        name: str,
        row_number: int,
        values: Sequence[Any],
    ) -> None:
        sheet = await self._require_sheet(session, name)
        row = await self._require_row(session, sheet, row_number)
        row.values = list(values)
        await session.flush()

    async def update_cells(
        self,
        session: AsyncSession,
        name: str,
        row_number: int,
        cells: Mapping[str, Any],
    ) -> None:
        """Set individual cells of one row, addressed by header."""
        sheet = await self._require_sheet(session, name)
        row = await self._require_row(session, sheet, row_number)
        headers = list(sheet.headers or [])
        values = list(row.values or [])
        values.extend([None] * (len(headers) - len(values)))
        for header, value in cells.items():
            if header not in headers:
                raise ValidationError(f"Column '{header}' not found in '{name}'")
            values[headers.index(header)] = value
        row.values = values
        await session.flush()

    async def annotate_row(
        self,
        session: AsyncSession,
        name: str,
        row_number: int,
        annotation: Mapping[str, Any],
    ) -> None:
        """Attach display formatting to a row without touching its values."""
        sheet = await self._require_sheet(session, name)
        row = await self._require_row(session, sheet, row_number)
        row.annotation = {**(row.annotation or {}), **annotation}
        await session.flush()

    async def sort_table(
        self,
        session: AsyncSession,
        name: str,
        column: int = 0,
        ascending: bool = True,
    ) -> None:
        """Reorder data rows by one column and renumber them."""
        sheet = await self._require_sheet(session, name)
        rows = await self._rows(session, sheet)
        snapshot = [(list(r.values or []), dict(r.annotation or {})) for r in rows]
        snapshot.sort(
            key=lambda item: _sort_key(item[0][column] if column < len(item[0]) else None),
            reverse=not ascending,
        )
        await session.execute(
            delete(SheetRowModel).where(SheetRowModel.sheet_id == sheet.id)
        )
        for offset, (values, annotation) in enumerate(snapshot):
            session.add(SheetRowModel(
                sheet_id=sheet.id,
                row_number=FIRST_DATA_ROW + offset,
                values=values,
                annotation=annotation,
            ))
        await session.flush()

    # ── Internal helpers ──

    async def _get_sheet(self, session: AsyncSession, name: str) -> SheetModel | None:
        result = await session.execute(
            select(SheetModel).where(SheetModel.name == name)
        )
        return result.scalar_one_or_none()

    async def _require_sheet(self, session: AsyncSession, name: str) -> SheetModel:
        sheet = await self._get_sheet(session, name)
        if sheet is None:
            raise NotFoundError(f"Table not found: {name}")
        return sheet

    async def _rows(
        self, session: AsyncSession, sheet: SheetModel,
    ) -> list[SheetRowModel]:
        result = await session.execute(
            select(SheetRowModel)
            .where(SheetRowModel.sheet_id == sheet.id)
            .order_by(SheetRowModel.row_number.asc())
        )
        return list(result.scalars().all())

    async def _require_row(
        self, session: AsyncSession, sheet: SheetModel, row_number: int,
    ) -> SheetRowModel:
        result = await session.execute(
            select(SheetRowModel).where(
                SheetRowModel.sheet_id == sheet.id,
                SheetRowModel.row_number == row_number,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise ValidationError(
                f"Invalid row number: {row_number} in '{sheet.name}'"
            )
        return row


def _sort_key(value: Any) -> tuple[bool, str]:
    return (value is None, "" if value is None else str(value))
