from __future__ import annotations

from typing import Optional, Protocol

from .model import ShiftSchedule


class ShiftRepository(Protocol):
    def get_for_employee(self, emp_code: str) -> Optional[ShiftSchedule]:
        """Shift assigned in the employee directory, or None when unassigned."""

        raise NotImplementedError
