"""Employees and their tenure on the team."""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .error import VelocityConfigError
from .sprint_windows import ReportingWindow

EMPLOYEE_SEPARATOR = ","
FIELD_SEPARATOR = "|"


@dataclass(frozen=True)
class Employee:
    """A team member identified by tracker username, with a tenure start and optional end."""

    username: str
    start_date: date
    end_date: Optional[date] = None

    def __post_init__(self):
        if not self.username:
            raise VelocityConfigError("Employee username is required")
        if self.end_date is not None and self.end_date < self.start_date:
            raise VelocityConfigError(
                "Employee end date is before start date",
                employee=self.username,
                start_date=self.start_date.isoformat(),
                end_date=self.end_date.isoformat(),
            )

    def is_active(self, window: ReportingWindow) -> bool:
        return is_active(self, window)


def is_active(employee: Employee, window: ReportingWindow) -> bool:
    """
    True when the employee counts for the window.

    Joining on the window's start date does not count yet, and leaving on it
    already excludes the employee.
    """
    window_start = window.start_date
    if not employee.start_date < window_start:
        return False
    return employee.end_date is None or window_start < employee.end_date


def _parse_date(value: str, item: str, label: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise VelocityConfigError(
            f"Invalid {label} in employee entry", item=item, value=value
        ) from e


def parse_employee(item: str) -> Employee:
    """
    Parse ``username|YYYY-MM-DD`` or ``username|YYYY-MM-DD|YYYY-MM-DD``.

    An empty end field (``alice|2020-01-01|``) means no end date.

    Raises:
        VelocityConfigError: If the item is malformed.
    """
    parts = [part.strip() for part in item.strip().split(FIELD_SEPARATOR)]
    if len(parts) not in (2, 3) or not parts[0] or not parts[1]:
        raise VelocityConfigError(
            "Employee entry must be 'username|start-date[|end-date]'", item=item
        )

    start_date = _parse_date(parts[1], item, "start date")
    end_date = None
    if len(parts) == 3 and parts[2] and parts[2].lower() not in ("null", "none"):
        end_date = _parse_date(parts[2], item, "end date")
    return Employee(username=parts[0], start_date=start_date, end_date=end_date)


def parse_employees(value: str) -> List[Employee]:
    """
    Parse a comma-separated employee list, e.g. ``"john.doe|2019-01-01,jane.doe|2018-05-17"``.

    Raises:
        VelocityConfigError: If the list is empty, an item is malformed or a username repeats.
    """
    items = [item for item in (value or "").split(EMPLOYEE_SEPARATOR) if item.strip()]
    if not items:
        raise VelocityConfigError("At least one employee is required", employees=value)

    employees = [parse_employee(item) for item in items]
    ensure_unique_usernames(employees)
    return employees


def ensure_unique_usernames(employees: List[Employee]) -> None:
    seen = set()
    for employee in employees:
        if employee.username in seen:
            raise VelocityConfigError("Employee listed more than once", employee=employee.username)
        seen.add(employee.username)
