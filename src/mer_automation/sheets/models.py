"""SQLAlchemy models for spreadsheet-style tables."""

from sqlalchemy import JSON, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mer_automation.common.models import Base, TimestampMixin, generate_uuid


class SheetModel(Base, TimestampMixin):
    __tablename__ = "sheets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    headers: Mapped[list] = mapped_column(JSON, default=list)
    # Number formats in spreadsheet notation ("@", "yyyy-MM-dd", ...)
    header_formats: Mapped[list] = mapped_column(JSON, default=list)
    column_formats: Mapped[list] = mapped_column(JSON, default=list)


class SheetRowModel(Base, TimestampMixin):
    __tablename__ = "sheet_rows"
    __table_args__ = (
        UniqueConstraint("sheet_id", "row_number", name="uq_sheet_row_number"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    sheet_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sheets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Row 1 is the header row, data starts at 2.
    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    values: Mapped[list] = mapped_column(JSON, default=list)
    annotation: Mapped[dict] = mapped_column(JSON, default=dict)
