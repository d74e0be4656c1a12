"""Per-employee, per-window issue counts and story points."""

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from log_config import log_manager
from utils.cache_manager.cache_manager import CacheManager
from utils.error.base_custom_error import BaseCustomError
from utils.jira.jira_config import DEFAULT_ATTRIBUTION_FIELD, DEFAULT_DONE_RESOLUTION

from .employee_activity import Employee
from .error import PeriodAggregationError
from .issue_filter import CLASSIFICATION_FIELDS, IssueFilter
from .sprint_windows import ReportingWindow, format_jql_time
from .story_points import EffortField, StoryPointsResolver, coerce_points


@dataclass(frozen=True)
class PeriodMetrics:
    """What one employee resolved during one window."""

    username: str
    window: ReportingWindow
    issue_count: int
    total_effort: int
    is_active: bool
    issue_keys: Tuple[str, ...] = field(default=())

    @classmethod
    def inactive(cls, employee: Employee, window: ReportingWindow) -> "PeriodMetrics":
        return cls(username=employee.username, window=window, issue_count=0, total_effort=0, is_active=False)


POINTS_RESOLUTION_KEY = "points_resolution"


def quote_jql_string(value: str) -> str:
    """Double-quoted JQL string literal; backslashes and quotes are escaped."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_resolved_issues_jql(
    username: str,
    window: ReportingWindow,
    attribution_field: str = DEFAULT_ATTRIBUTION_FIELD,
    done_resolution: str = DEFAULT_DONE_RESOLUTION,
) -> str:
    """JQL for issues credited to ``username`` and resolved within ``[window.start, window.end)``."""
    return (
        f"{attribution_field} = {quote_jql_string(username)} AND resolution = {quote_jql_string(done_resolution)} "
        f'AND resolutiondate >= "{format_jql_time(window.start)}" '
        f'AND resolutiondate < "{format_jql_time(window.end)}"'
    )


class PeriodAggregator:
    """
    Builds PeriodMetrics for every (employee, window) pair.

    Inactive pairs are recorded without querying Jira. Active pairs run one JQL
    search; the search result, with each issue's story points replaced by its
    effective value, is cached under the JQL string so an identical query is only
    fetched once. Each entry records the burndown flag and effort field it was resolved
    with; an entry resolved with other settings is fetched again. Any tracker
    failure aborts the whole aggregation.

    Args:
        gateway: Object exposing ``search_issues(jql, fields)`` and
            ``fetch_issue_history(issue, fields)``.
        cache_manager (CacheManager): Query cache, shared across runs when file-backed.
        effort_field (EffortField): Story points field.
        burndown (bool): Credit the maximum historical estimate.
        attribution_field (str): JQL field naming the credited engineer.
        done_resolution (str): Resolution counted as done.
        issue_filter (Optional[IssueFilter]): Post-retrieval filter; cached payloads stay unfiltered.
        max_workers (int): Concurrent (employee, window) fetches; 1 runs sequentially.
    """

    _logger = log_manager.get_logger("PeriodAggregator")

    def __init__(
        self,
        gateway,
        cache_manager: CacheManager,
        effort_field: EffortField,
        burndown: bool = False,
        attribution_field: str = DEFAULT_ATTRIBUTION_FIELD,
        done_resolution: str = DEFAULT_DONE_RESOLUTION,
        issue_filter: Optional[IssueFilter] = None,
        max_workers: int = 1,
    ):
        self.gateway = gateway
        self.cache_manager = cache_manager
        self.effort_field = effort_field
        self.burndown = burndown
        self.attribution_field = attribution_field
        self.done_resolution = done_resolution
        self.issue_filter = issue_filter or IssueFilter()
        self.max_workers = max(1, int(max_workers))
        self.resolver = StoryPointsResolver(gateway, effort_field, burndown)

    @property
    def search_fields(self) -> List[str]:
        return [self.effort_field.field_id, *CLASSIFICATION_FIELDS]

    @property
    def points_resolution(self) -> Dict:
        """Settings the cached story points were resolved with."""
        return {"burndown": self.burndown, "effort_field": self.effort_field.field_id}

    def is_current(self, payload: Dict) -> bool:
        return isinstance(payload, dict) and payload.get(POINTS_RESOLUTION_KEY) == self.points_resolution

    def jql_for(self, employee: Employee, window: ReportingWindow) -> str:
        return build_resolved_issues_jql(employee.username, window, self.attribution_field, self.done_resolution)

    def fetch_resolved_issues(self, jql: str) -> Dict:
        """
        Live search plus story points resolution for one query.

        Returns the raw search payload with ``fields[<effort field>]`` of every issue
        overwritten by its effective value.
        """
        self._logger.info(f"Fetching {jql}")
        payload = self.gateway.search_issues(jql, fields=self.search_fields)
        issues = payload.get("issues") or []
        if issues:
            points = self.resolver.resolve_all(issues)
            for issue in issues:
                if not issue.get("fields"):
                    issue["fields"] = {}
                issue["fields"][self.effort_field.field_id] = points.get(issue.get("key"), 0)
        payload[POINTS_RESOLUTION_KEY] = self.points_resolution
        return payload

    def aggregate_period(self, employee: Employee, window: ReportingWindow) -> PeriodMetrics:
        """
        Metrics for one employee and window.

        Raises:
            PeriodAggregationError: If a tracker call fails; names the employee, window and query.
        """
        if not employee.is_active(window):
            self._logger.debug(f"{employee.username} not on the team for window {window.key}")
            return PeriodMetrics.inactive(employee, window)

        jql = self.jql_for(employee, window)
        try:
            payload = self.cache_manager.get_or_fetch(
                jql, lambda: self.fetch_resolved_issues(jql), accept=self.is_current
            )
        except BaseCustomError as e:
            details = {"issue_key": e.metadata["issue_key"]} if e.metadata.get("issue_key") else {}
            raise PeriodAggregationError(
                f"Error getting {employee.username} - {jql}",
                employee=employee.username,
                window=window.key,
                jql=jql,
                cause=str(e),
                **details,
            ) from e

        issues = self.issue_filter.apply(payload.get("issues") or [])
        total_effort = sum(
            coerce_points((issue.get("fields") or {}).get(self.effort_field.field_id)) or 0 for issue in issues
        )
        return PeriodMetrics(
            username=employee.username,
            window=window,
            issue_count=len(issues),
            total_effort=total_effort,
            is_active=True,
            issue_keys=tuple(issue.get("key") for issue in issues),
        )

    def aggregate(self, employees: Sequence[Employee], windows: Sequence[ReportingWindow]) -> List[PeriodMetrics]:
        """
        Metrics for every employee and window, ordered by employee (input order) then window start.

        Raises:
            PeriodAggregationError: On the first tracker failure; outstanding work is cancelled.
        """
        ordered_windows = sorted(windows, key=lambda window: window.start)
        pairs = [(employee, window) for employee in employees for window in ordered_windows]
        if self.max_workers == 1 or len(pairs) <= 1:
            return [self.aggregate_period(employee, window) for employee, window in pairs]
        return self._aggregate_concurrently(pairs)

    def _aggregate_concurrently(self, pairs: List[Tuple[Employee, ReportingWindow]]) -> List[PeriodMetrics]:
        results: List[Optional[PeriodMetrics]] = [None] * len(pairs)
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="velocity")
        try:
            future_to_index = {
                executor.submit(self.aggregate_period, employee, window): index
                for index, (employee, window) in enumerate(pairs)
            }
            done, pending = wait(future_to_index, return_when=FIRST_EXCEPTION)
            for future in done:
                error = future.exception()
                if error is not None:
                    for outstanding in pending:
                        outstanding.cancel()
                    raise error
            for future in done:
                results[future_to_index[future]] = future.result()
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
        return [metrics for metrics in results if metrics is not None]
