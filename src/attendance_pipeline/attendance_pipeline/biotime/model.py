from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class PullResult:
    """Outcome of one attendance pull against the source."""

    success: bool
    fetched: int = 0
    inserted: int = 0
    duplicates: int = 0
    access_control_skipped: int = 0
    failed: int = 0
    error: Optional[str] = None

    @property
    def processed(self) -> int:
        """Records fully handled (stored, or recognised as not needing storage)."""
        return self.inserted + self.duplicates + self.access_control_skipped


@dataclass
class EmployeeSyncResult:
    success: bool
    fetched: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    error: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "success": self.success,
            "fetched": self.fetched,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
            "error": self.error,
        }
