from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import parse_source_timestamp
from ..core.constants import ACCESS_CONTROL_TERMINAL_KEYWORD


def is_access_control_terminal(label: Optional[str]) -> bool:
    """Door locks report through the same API but are not attendance terminals."""
    return ACCESS_CONTROL_TERMINAL_KEYWORD in (label or "").lower()


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class RawPunchRecord:
    """One terminal transaction exactly as received from the source.

    The consumed fields are typed; the full source record is kept in ``payload``.
    """

    source_id: Optional[str]
    emp_code: Optional[str]
    punch_time: Optional[datetime]
    punch_state: Optional[str]
    terminal_alias: Optional[str]
    payload: dict = field(default_factory=dict)
    raw_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_source(cls, record: dict) -> "RawPunchRecord":
        """Map a transaction from the API. Raises ValueError on a malformed timestamp."""
        terminal = record.get("terminal_alias") or record.get("terminal") or record.get("terminal_sn")
        return cls(
            source_id=_text(record.get("id")),
            emp_code=_text(record.get("emp_code")),
            punch_time=parse_source_timestamp(record.get("punch_time")),
            punch_state=_text(record.get("punch_state")),
            terminal_alias=_text(terminal),
            payload=dict(record),
        )

    @property
    def is_access_control(self) -> bool:
        return is_access_control_terminal(self.terminal_alias)


@dataclass(frozen=True)
class PunchCoverage:
    """Observed span of raw storage."""

    total_records: int
    earliest: Optional[datetime]
    latest: Optional[datetime]
