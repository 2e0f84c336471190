from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import EmployeeDirectoryRecord


class EmployeeDirectoryRepository(Protocol):
    """Mirror of the source employee master.

    Note: rows are never deleted by the pipeline.
    """

    def get_by_code(self, emp_code: str) -> Optional[EmployeeDirectoryRecord]:
        raise NotImplementedError

    def upsert(self, record: EmployeeDirectoryRecord) -> bool:
        """Update the row for emp_code or insert it. Returns True when a new row was created."""

        raise NotImplementedError

    def list_all(self) -> Sequence[EmployeeDirectoryRecord]:
        raise NotImplementedError

    def count_active(self) -> int:
        raise NotImplementedError

    def count_active_non_bio(self) -> int:
        raise NotImplementedError
