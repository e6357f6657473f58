"""Exemption registry — users never purged for basket inactivity.

The store is a JSON list of ``{"userName": ..., "exemptionReason": ...}``
objects so it can be edited by hand.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path

from mer_automation.common.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExemptionEntry:
    user_name: str
    exemption_reason: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"userName": self.user_name, "exemptionReason": self.exemption_reason}


class ExemptionRegistry:
    """Durable userName -> reason list kept in a JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        # add/remove run on worker threads from the async routes
        self._lock = threading.Lock()

    def entries(self) -> list[ExemptionEntry]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            raise ValidationError(
                f"Exemption file {self.path} is not valid JSON: {exc}"
            ) from exc
        if not isinstance(raw, list):
            raise ValidationError(f"Exemption file {self.path} must hold a JSON list")
        return [
            ExemptionEntry(
                user_name=str(item.get("userName", "")).strip(),
                exemption_reason=str(item.get("exemptionReason", "")),
            )
            for item in raw
            if isinstance(item, dict) and str(item.get("userName", "")).strip()
        ]

    def names(self) -> set[str]:
        return {entry.user_name for entry in self.entries()}

    def add(self, user_name: str, reason: str = "") -> ExemptionEntry:
        """Add or update an exemption."""
        user_name = user_name.strip()
        if not user_name:
            raise ValidationError("Exemption requires a user name")
        entry = ExemptionEntry(user_name=user_name, exemption_reason=reason)
        with self._lock:
            entries = [e for e in self.entries() if e.user_name != user_name]
            entries.append(entry)
            self._write(entries)
        logger.info("Added basket exemption for %s", user_name)
        return entry

    def remove(self, user_name: str) -> bool:
        with self._lock:
            entries = self.entries()
            kept = [e for e in entries if e.user_name != user_name.strip()]
            if len(kept) == len(entries):
                return False
            self._write(kept)
        logger.info("Removed basket exemption for %s", user_name)
        return True

    def _write(self, entries: list[ExemptionEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(
            json.dumps([e.to_dict() for e in entries], indent=2),
            encoding="utf-8",
        )
        os.replace(tmp, self.path)
