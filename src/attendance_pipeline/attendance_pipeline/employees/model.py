from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _nested_name(value: Any, *keys: str) -> Optional[str]:
    """BioTime nests department/position as objects; older builds send plain strings."""
    if isinstance(value, dict):
        for key in keys:
            if value.get(key):
                return _text(value[key])
        return None
    return _text(value)


@dataclass(frozen=True)
class EmployeeDirectoryRecord:
    """Mirrored employee master data.

    shift_id, is_active and non_bio are maintained by HR, not by the source sync.
    """

    emp_code: str
    source_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    nickname: Optional[str] = None
    format_name: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    hire_date: Optional[str] = None
    payload: dict = field(default_factory=dict)
    pulled_at: Optional[datetime] = None
    shift_id: Optional[int] = None
    is_active: bool = True
    non_bio: bool = False

    @classmethod
    def from_source(cls, employee: dict, *, pulled_at: datetime) -> "EmployeeDirectoryRecord":
        return cls(
            emp_code=str(employee["emp_code"]).strip(),
            source_id=_text(employee.get("id")),
            first_name=_text(employee.get("first_name")),
            last_name=_text(employee.get("last_name")),
            nickname=_text(employee.get("nickname")),
            format_name=_text(employee.get("format_name")),
            department=_nested_name(employee.get("department"), "dept_name", "name", "dept_code"),
            position=_nested_name(employee.get("position"), "position_name", "name", "position_code"),
            mobile=_text(employee.get("mobile")),
            email=_text(employee.get("email")),
            hire_date=_text(employee.get("hire_date")),
            payload=dict(employee),
            pulled_at=pulled_at,
        )


@dataclass(frozen=True)
class NameFinding:
    emp_code: str
    first_name: str
    last_name: str
    nickname: str
    issues: tuple[str, ...]

    @property
    def issue(self) -> str:
        return ", ".join(self.issues)


@dataclass(frozen=True)
class NameValidationReport:
    total: int
    valid: int
    findings: list[NameFinding]

    @property
    def corrupted(self) -> int:
        return len(self.findings)
