"""Reporting windows: closed sprints made contiguous, or calendar months."""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from log_config import log_manager

WINDOW_KEY_FORMAT = "%Y-%m-%d %H:%M"
DEFAULT_LOOKBACK_DAYS = 365

_logger = log_manager.get_logger("SprintWindows")
_TZ_WITHOUT_COLON = re.compile(r"([+-]\d{2})(\d{2})$")


@dataclass(frozen=True, order=True)
class ReportingWindow:
    """Half-open interval ``[start, end)`` over which velocity is aggregated."""

    start: datetime
    end: datetime

    @property
    def key(self) -> str:
        """Window identifier, formatted the same way it is used in JQL."""
        return format_jql_time(self.start)

    @property
    def start_date(self) -> date:
        return self.start.date()

    def __str__(self) -> str:
        return f"[{format_jql_time(self.start)}, {format_jql_time(self.end)})"


def format_jql_time(value: datetime) -> str:
    return value.strftime(WINDOW_KEY_FORMAT)


def parse_jira_datetime(value: str) -> datetime:
    """
    Parse a Jira timestamp such as ``2019-01-07T15:00:00.000Z`` or
    ``2019-01-07T15:00:00.000+0000``.

    Raises:
        ValueError: If the value is not an ISO-8601 timestamp.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _TZ_WITHOUT_COLON.sub(r"\1:\2", text)
    return datetime.fromisoformat(text)


def close_window_gaps(windows: Iterable[ReportingWindow]) -> List[ReportingWindow]:
    """
    Sort windows by start and stretch or shrink each end to the next start.

    The last window keeps its own end, so the result is contiguous with no overlaps.
    """
    ordered = sorted(windows, key=lambda window: window.start)
    closed: List[ReportingWindow] = []
    for index, window in enumerate(ordered):
        if index + 1 < len(ordered):
            window = ReportingWindow(start=window.start, end=ordered[index + 1].start)
        closed.append(window)
    return closed


def closed_sprint_windows(sprints: Sequence[Dict]) -> List[ReportingWindow]:
    """
    Turn raw board sprints into gapless reporting windows.

    Only ``closed`` sprints are used. Zero closed sprints yield an empty list,
    which callers treat as nothing to report.

    Args:
        sprints: Raw sprint records with ``state``, ``startDate`` and ``endDate``.

    Returns:
        List[ReportingWindow]: Windows ordered by start.
    """
    windows: List[ReportingWindow] = []
    for sprint in sprints:
        if sprint.get("state") != "closed":
            continue
        start_raw, end_raw = sprint.get("startDate"), sprint.get("endDate")
        if not start_raw or not end_raw:
            _logger.warning(f"Skipping closed sprint without dates: {sprint.get('name') or sprint.get('id')}")
            continue
        windows.append(ReportingWindow(start=parse_jira_datetime(start_raw), end=parse_jira_datetime(end_raw)))

    windows = close_window_gaps(windows)
    _logger.info(f"Derived {len(windows)} reporting windows from {len(sprints)} sprints")
    return windows


def first_of_month(value: date) -> date:
    return value.replace(day=1)


def next_month(value: date) -> date:
    if value.month == 12:
        return date(value.year + 1, 1, 1)
    return date(value.year, value.month + 1, 1)


def calendar_month_windows(
    lookback_days: int = DEFAULT_LOOKBACK_DAYS, today: Optional[date] = None
) -> List[ReportingWindow]:
    """
    Month windows covering ``lookback_days`` before the first day of the current month.

    The horizon start is moved back to the first day of its month, so every window
    runs from a first-of-month to the next first-of-month.

    Args:
        lookback_days (int): Length of the horizon in days. Must be positive.
        today (Optional[date]): Reference date, defaults to the current date.

    Returns:
        List[ReportingWindow]: Consecutive month windows ordered by start.
    """
    if lookback_days <= 0:
        raise ValueError(f"lookback_days must be positive, got {lookback_days}")

    horizon_end = first_of_month(today or date.today())
    cursor = first_of_month(horizon_end - timedelta(days=lookback_days))

    windows: List[ReportingWindow] = []
    while cursor < horizon_end:
        following = next_month(cursor)
        windows.append(
            ReportingWindow(
                start=datetime.combine(cursor, datetime.min.time()),
                end=datetime.combine(following, datetime.min.time()),
            )
        )
        cursor = following
    return windows
