"""Team averages per window and each employee's delta against them."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence

from .period_aggregator import PeriodMetrics
from .sprint_windows import ReportingWindow

AVERAGE_SUBJECT = "average"


def round2(value: float) -> float:
    """Round half away from zero to two decimals."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class TeamStatistics:
    """Averages across active employees; None when nobody was active in the window."""

    window: ReportingWindow
    active_count: int
    average_issue_count: Optional[float]
    average_effort: Optional[float]

    @property
    def is_defined(self) -> bool:
        return self.active_count > 0


@dataclass(frozen=True)
class VelocityRow:
    """One report line, for an employee or for the synthetic ``average`` subject."""

    subject: str
    window_key: str
    total_issues: Optional[float]
    total_points: Optional[float]
    active: bool
    issues_delta_sum: float = 0
    issues_delta_ratio: float = 0
    points_delta_sum: float = 0
    points_delta_ratio: float = 0


def compute_team_statistics(metrics: Sequence[PeriodMetrics]) -> Dict[ReportingWindow, TeamStatistics]:
    """
    Mean issue count and story points of the active employees of each window.

    Every window present in ``metrics`` appears in the result, ordered by start.
    """
    issue_counts: Dict[ReportingWindow, List[int]] = {}
    efforts: Dict[ReportingWindow, List[int]] = {}
    for metric in sorted(metrics, key=lambda m: m.window.start):
        issue_counts.setdefault(metric.window, [])
        efforts.setdefault(metric.window, [])
        if metric.is_active:
            issue_counts[metric.window].append(metric.issue_count)
            efforts[metric.window].append(metric.total_effort)

    statistics: Dict[ReportingWindow, TeamStatistics] = {}
    for window, counts in issue_counts.items():
        if counts:
            statistics[window] = TeamStatistics(
                window=window,
                active_count=len(counts),
                average_issue_count=round2(sum(counts) / len(counts)),
                average_effort=round2(sum(efforts[window]) / len(counts)),
            )
        else:
            statistics[window] = TeamStatistics(window, 0, None, None)
    return statistics


def compute_deltas(metric: PeriodMetrics, statistics: TeamStatistics) -> Dict[str, float]:
    """
    Difference and ratio of an employee's metrics to the window averages.

    Inactive rows and windows without an average get zeros. A zero average leaves
    the issue ratio at 0 but sets the points ratio to 1.0.
    """
    deltas = {
        "issues_delta_sum": 0,
        "issues_delta_ratio": 0,
        "points_delta_sum": 0,
        "points_delta_ratio": 0,
    }
    if not metric.is_active or not statistics.is_defined:
        return deltas

    average_issues = statistics.average_issue_count
    average_points = statistics.average_effort

    deltas["issues_delta_sum"] = round2(metric.issue_count - average_issues)
    if average_issues != 0:
        deltas["issues_delta_ratio"] = round2(metric.issue_count / average_issues)

    deltas["points_delta_sum"] = round2(metric.total_effort - average_points)
    # TODO: confirm with report owners whether a zero issue average should also yield 1.0
    if average_points == 0:
        deltas["points_delta_ratio"] = 1.0
    else:
        deltas["points_delta_ratio"] = round2(metric.total_effort / average_points)
    return deltas


def build_report_rows(metrics: Sequence[PeriodMetrics]) -> List[VelocityRow]:
    """
    Report rows ordered by window start; each window's ``average`` row comes first,
    followed by its employees in the order they appear in ``metrics``.
    """
    statistics = compute_team_statistics(metrics)
    rows: List[VelocityRow] = []
    for window, stats in statistics.items():
        rows.append(
            VelocityRow(
                subject=AVERAGE_SUBJECT,
                window_key=window.key,
                total_issues=stats.average_issue_count,
                total_points=stats.average_effort,
                active=stats.is_defined,
            )
        )
        for metric in metrics:
            if metric.window != window:
                continue
            rows.append(
                VelocityRow(
                    subject=metric.username,
                    window_key=window.key,
                    total_issues=metric.issue_count,
                    total_points=metric.total_effort,
                    active=metric.is_active,
                    **compute_deltas(metric, stats),
                )
            )
    return rows
