"""Row-oriented tables with header-indexed columns."""

from mer_automation.sheets.store import Table, TableRow, TableStore

__all__ = ["Table", "TableRow", "TableStore"]
