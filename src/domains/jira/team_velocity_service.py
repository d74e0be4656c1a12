"""
Team velocity service: windows, aggregation, statistics and CSV export for one team.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from log_config import log_manager
from utils.cache_manager.cache_manager import CacheManager
from utils.jira.jira_config import JiraConfig
from utils.output_manager import OutputManager

from .employee_activity import Employee
from .error import VelocityConfigError
from .issue_filter import IssueFilter
from .period_aggregator import PeriodAggregator, PeriodMetrics
from .sprint_windows import DEFAULT_LOOKBACK_DAYS, ReportingWindow, calendar_month_windows, closed_sprint_windows
from .story_points import EffortField, resolve_effort_field
from .team_config import TeamConfig
from .velocity_report import VelocityReportWriter
from .velocity_statistics import VelocityRow, build_report_rows

REPORT_SUB_DIR = "team-velocity"


@dataclass
class TeamVelocityRequest:
    """Everything needed to produce one team's report."""

    team_key: str
    employees: List[Employee]
    burndown: bool = False
    board_id: Optional[int] = None
    lookback_days: Optional[int] = None
    output_path: Optional[str] = None
    issue_filter: IssueFilter = field(default_factory=IssueFilter)

    def __post_init__(self):
        if not self.employees:
            raise VelocityConfigError("At least one employee is required", team=self.team_key)
        if self.board_id is not None and self.lookback_days is not None:
            raise VelocityConfigError(
                "Use either a board id or a calendar lookback, not both",
                team=self.team_key,
                board_id=self.board_id,
                lookback_days=self.lookback_days,
            )
        if self.lookback_days is not None and self.lookback_days <= 0:
            raise VelocityConfigError("Lookback days must be positive", lookback_days=self.lookback_days)

    @classmethod
    def from_team_config(
        cls,
        team_config: TeamConfig,
        burndown: Optional[bool] = None,
        board_id: Optional[int] = None,
        lookback_days: Optional[int] = None,
        output_path: Optional[str] = None,
        issue_filter: Optional[IssueFilter] = None,
    ) -> "TeamVelocityRequest":
        """Request for a team file; ``burndown`` and the window source override the file when given."""
        team = team_config.team
        if board_id is None and lookback_days is None:
            board_id = team.board_id
            lookback_days = None if board_id is not None else team.lookback_days
        return cls(
            team_key=team.key,
            employees=team_config.employees(),
            burndown=team.burndown if burndown is None else burndown,
            board_id=board_id,
            lookback_days=lookback_days,
            output_path=output_path,
            issue_filter=issue_filter or IssueFilter(),
        )


@dataclass
class TeamVelocityResult:
    team_key: str
    windows: List[ReportingWindow]
    metrics: List[PeriodMetrics]
    rows: List[VelocityRow]
    output_path: Optional[str]
    cache_hits: int = 0
    cache_misses: int = 0


class TeamVelocityService:
    """
    Produces velocity reports against one Jira gateway and query cache.

    Args:
        gateway: JiraAssistant (or any object with the same read methods).
        cache_manager (CacheManager): Query cache shared by every team of the run.
        jira_config (JiraConfig): Field and JQL settings.
        max_workers (int): Concurrent tracker fetches per team.
        effort_field_override (Optional[str]): Story points field id or name that
            replaces the configured one; resolved once against Jira's field list.
    """

    def __init__(
        self,
        gateway,
        cache_manager: CacheManager,
        jira_config: Optional[JiraConfig] = None,
        max_workers: int = 1,
        effort_field_override: Optional[str] = None,
    ):
        self.logger = log_manager.get_logger("TeamVelocityService")
        self.gateway = gateway
        self.cache_manager = cache_manager
        self.jira_config = jira_config or JiraConfig()
        self.max_workers = max_workers
        self.report_writer = VelocityReportWriter()
        self.effort_field = self._resolve_effort_field(effort_field_override)

    def _resolve_effort_field(self, override: Optional[str]) -> EffortField:
        if not override:
            return EffortField(
                field_id=self.jira_config.story_points_field,
                display_name=self.jira_config.story_points_field_name,
            )
        effort_field = resolve_effort_field(self.gateway.fetch_fields(), override)
        self.logger.info(f"Using story points field {effort_field.field_id} ({effort_field.display_name})")
        return effort_field

    def derive_windows(self, request: TeamVelocityRequest) -> List[ReportingWindow]:
        if request.board_id is not None:
            return closed_sprint_windows(self.gateway.fetch_board_sprints(request.board_id))
        return calendar_month_windows(request.lookback_days or DEFAULT_LOOKBACK_DAYS)

    def build_aggregator(self, request: TeamVelocityRequest) -> PeriodAggregator:
        return PeriodAggregator(
            gateway=self.gateway,
            cache_manager=self.cache_manager,
            effort_field=self.effort_field,
            burndown=request.burndown,
            attribution_field=self.jira_config.attribution_field,
            done_resolution=self.jira_config.done_resolution,
            issue_filter=request.issue_filter,
            max_workers=self.max_workers,
        )

    def run(self, request: TeamVelocityRequest) -> TeamVelocityResult:
        """
        Build and export the report for one team.

        Zero closed sprints is not an error: nothing is exported and the result has
        no output path.

        Raises:
            PeriodAggregationError: On any tracker failure during aggregation.
            JiraSprintFetchError: If the board's sprints cannot be listed.
        """
        self.logger.info(
            f"Computing velocity for team '{request.team_key}' "
            f"({len(request.employees)} employees, burndown={request.burndown})"
        )
        windows = self.derive_windows(request)
        if not windows:
            self.logger.warning(f"No closed sprints for team '{request.team_key}', nothing to report")
            return TeamVelocityResult(request.team_key, [], [], [], None)

        hits_before, misses_before = self.cache_manager.hits, self.cache_manager.misses
        metrics = self.build_aggregator(request).aggregate(request.employees, windows)
        cache_hits = self.cache_manager.hits - hits_before
        cache_misses = self.cache_manager.misses - misses_before
        rows = build_report_rows(metrics)

        output_path = request.output_path or OutputManager.get_output_path(REPORT_SUB_DIR, request.team_key, "csv")
        output_path = self.report_writer.write(rows, output_path)

        self.logger.info(
            f"Team '{request.team_key}': {len(windows)} windows, {len(metrics)} periods, "
            f"cache hits={cache_hits} misses={cache_misses}"
        )
        return TeamVelocityResult(request.team_key, windows, metrics, rows, output_path, cache_hits, cache_misses)
