"""Usage log sources — monthly folders of tool-usage ("inv") exports."""

import logging
import re
from pathlib import Path
from typing import Protocol

from mer_automation.common.exceptions import NotFoundError

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}$")
USAGE_FOLDER = "inv"


class LogSource(Protocol):
    def list_month_folders(self) -> list[str]: ...

    def list_files(self, month_id: str) -> list[str]: ...


class FolderLogSource:
    """Reads ``<root>/<YYYY-MM>/inv/*`` from the local filesystem."""

    def __init__(self, root: str | Path, encoding: str = "utf-8"):
        self.root = Path(root)
        self.encoding = encoding

    def list_month_folders(self) -> list[str]:
        if not self.root.is_dir():
            raise NotFoundError(f"Usage log root not found: {self.root}")
        return sorted(
            p.name for p in self.root.iterdir()
            if p.is_dir() and MONTH_PATTERN.match(p.name)
        )

    def list_files(self, month_id: str) -> list[str]:
        month_dir = self.root / month_id
        if not month_dir.is_dir():
            raise NotFoundError(f"Month folder not found: {month_id}")
        usage_dir = month_dir / USAGE_FOLDER
        if not usage_dir.is_dir():
            raise NotFoundError(f"No '{USAGE_FOLDER}' folder in {month_id}")
        files = sorted(p for p in usage_dir.iterdir() if p.is_file())
        logger.debug("Reading %d usage files for %s", len(files), month_id)
        return [p.read_text(encoding=self.encoding) for p in files]
