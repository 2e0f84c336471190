"""Data-quality checks on mirrored employee names.

Suspect names usually come from terminals where the admin typed the employee
code into a name field or shifted a column on import. They are reported for
review; the directory row is kept as-is.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .model import EmployeeDirectoryRecord, NameFinding, NameValidationReport


def _blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == "" or value.strip().lower() == "null"


def name_issues(record: EmployeeDirectoryRecord) -> list[str]:
    issues: list[str] = []
    first = record.first_name or ""
    last = record.last_name or ""

    if last and last[0] != last[0].upper():
        issues.append("lastName does not start with uppercase")
    if first.isdigit():
        issues.append("firstName is numeric")
    if last.isdigit():
        issues.append("lastName is numeric")
    if first and len(first) < 2:
        issues.append("firstName too short")
    if _blank(record.first_name):
        issues.append("missing firstName")
    if _blank(record.last_name) and _blank(record.nickname):
        issues.append("missing both lastName and nickname")
    return issues


def validate_names(records: Iterable[EmployeeDirectoryRecord]) -> NameValidationReport:
    findings: list[NameFinding] = []
    total = 0
    for record in records:
        total += 1
        issues = name_issues(record)
        if issues:
            findings.append(
                NameFinding(
                    emp_code=record.emp_code,
                    first_name=record.first_name or "",
                    last_name=record.last_name or "",
                    nickname=record.nickname or "",
                    issues=tuple(issues),
                )
            )
    return NameValidationReport(total=total, valid=total - len(findings), findings=findings)
