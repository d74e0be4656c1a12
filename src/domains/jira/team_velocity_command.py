"""
Jira Team Velocity Command.
"""

import os
import sys
from argparse import ArgumentParser, BooleanOptionalAction, Namespace
from typing import List

from utils.cache_manager.cache_manager import CacheManager
from utils.command.base_command import BaseCommand
from utils.env_loader import ensure_jira_env_loaded
from utils.error.base_custom_error import BaseCustomError
from utils.file_manager import FileManager
from utils.jira.jira_assistant import JiraAssistant
from utils.jira.jira_config import JiraConfig
from utils.logging.logging_manager import LogManager

from .employee_activity import parse_employees
from .error import VelocityConfigError
from .issue_filter import IssueFilter
from .team_config import load_team_config
from .team_velocity_service import TeamVelocityRequest, TeamVelocityService


class TeamVelocityCommand(BaseCommand):
    """Command to export per-employee sprint velocity as CSV."""

    @staticmethod
    def get_name() -> str:
        return "team-velocity"

    @staticmethod
    def get_description() -> str:
        return "Export per-employee issue counts and story points per sprint or month, with team averages"

    @staticmethod
    def get_help() -> str:
        return """
Export team velocity to CSV.

For every employee and every closed sprint of a board (or every calendar month
of a lookback horizon) the report lists resolved issues, story points, whether
the employee was on the team, and the difference and ratio to the team average.

Examples:
  # Sprints of board 1234 for two engineers
  python src/main.py jira team-velocity --board-id 1234 \\
    --employees "john.doe|2019-01-01,jane.doe|2018-05-17" --output output/velocity.csv

  # Calendar months of the last year, crediting the largest estimate
  python src/main.py jira team-velocity --lookback-days 365 --burndown \\
    --employees "john.doe|2019-01-01|2024-06-30"

  # Every team file in a folder, reusing a persistent query cache
  python src/main.py jira team-velocity --teams-dir data --cache-file cache/jira.jsonl
        """

    @staticmethod
    def get_arguments(parser: ArgumentParser):
        """Add command-specific arguments."""
        source = parser.add_mutually_exclusive_group(required=True)
        source.add_argument(
            "--employees",
            type=str,
            help="Comma-separated 'username|start-date[|end-date]' items",
        )
        source.add_argument("--team-file", type=str, help="Team JSON file")
        source.add_argument("--teams-dir", type=str, help="Folder of team JSON files, one report per team")

        parser.add_argument(
            "--team-key",
            type=str,
            default="team",
            help="Team key used in the report file name with --employees (default: team)",
        )

        windows = parser.add_mutually_exclusive_group()
        windows.add_argument("--board-id", type=int, help="Agile board whose closed sprints define the windows")
        windows.add_argument(
            "--lookback-days",
            type=int,
            help="Use calendar months covering this many days before the current month",
        )

        parser.add_argument(
            "--burndown",
            action=BooleanOptionalAction,
            default=None,
            help="Credit the largest story points estimate an issue ever had (default: team file, else off)",
        )
        parser.add_argument(
            "--story-points-field",
            type=str,
            help="Story points field id or name, looked up in Jira (default: JIRA_STORY_POINTS_FIELD)",
        )
        parser.add_argument(
            "--cache-file",
            type=str,
            help="Append-only query cache reused across runs (default: JIRA_CACHE_FILE)",
        )
        parser.add_argument(
            "--max-workers",
            type=int,
            default=1,
            help="Concurrent Jira fetches (default: 1)",
        )
        parser.add_argument("--output", type=str, help="CSV path for a single team report")

        parser.add_argument("--exclude-issue-types", type=str, help="Comma-separated issue types to ignore")
        parser.add_argument("--labels", type=str, help="Only count issues carrying one of these labels")
        parser.add_argument("--exclude-labels", type=str, help="Ignore issues carrying any of these labels")
        parser.add_argument("--projects", type=str, help="Only count issues from these project keys")

    @staticmethod
    def build_requests(args: Namespace, jira_config: JiraConfig) -> List[TeamVelocityRequest]:
        """
        Turn CLI arguments into one request per team. Performs no tracker calls.

        Raises:
            VelocityConfigError: For malformed employees, team files or option combinations.
        """
        if args.max_workers < 1:
            raise VelocityConfigError("--max-workers must be at least 1", max_workers=args.max_workers)

        issue_filter = IssueFilter.from_strings(
            exclude_issue_types=args.exclude_issue_types,
            include_labels=args.labels,
            exclude_labels=args.exclude_labels,
            projects=args.projects,
        )

        if args.employees:
            board_id = args.board_id
            if board_id is None and args.lookback_days is None and jira_config.board_id:
                try:
                    board_id = int(jira_config.board_id)
                except ValueError as e:
                    raise VelocityConfigError("JIRA_BOARD_ID must be an integer", value=jira_config.board_id) from e
            return [
                TeamVelocityRequest(
                    team_key=args.team_key,
                    employees=parse_employees(args.employees),
                    burndown=bool(args.burndown),
                    board_id=board_id,
                    lookback_days=args.lookback_days,
                    output_path=args.output,
                    issue_filter=issue_filter,
                )
            ]

        if args.team_file:
            team_files = [args.team_file]
        else:
            if args.output:
                raise VelocityConfigError("--output only applies to a single team", teams_dir=args.teams_dir)
            if not FileManager.is_folder(args.teams_dir):
                raise VelocityConfigError("Teams folder not found", teams_dir=args.teams_dir)
            team_files = FileManager.list_files(args.teams_dir, ".json")
            if not team_files:
                raise VelocityConfigError("No team files found", teams_dir=args.teams_dir)

        return [
            TeamVelocityRequest.from_team_config(
                load_team_config(team_file),
                burndown=args.burndown,
                board_id=args.board_id,
                lookback_days=args.lookback_days,
                output_path=args.output,
                issue_filter=issue_filter,
            )
            for team_file in team_files
        ]

    @staticmethod
    def main(args: Namespace):
        """Execute the team velocity command."""
        ensure_jira_env_loaded()
        logger = LogManager.get_instance().get_logger("TeamVelocityCommand")

        try:
            jira_config = JiraConfig()
            requests = TeamVelocityCommand.build_requests(args, jira_config)
            gateway = JiraAssistant.from_config(jira_config)
            cache_manager = CacheManager.from_cache_file(args.cache_file or jira_config.cache_file)
            service = TeamVelocityService(
                gateway,
                cache_manager,
                jira_config=jira_config,
                max_workers=args.max_workers,
                effort_field_override=args.story_points_field,
            )

            for request in requests:
                result = service.run(request)
                if result.output_path:
                    print(f"Done! - exported data to {os.path.abspath(result.output_path)}")
                else:
                    print(f"Nothing to report for team '{result.team_key}'")

            logger.info("Team velocity command completed successfully")

        except BaseCustomError as e:
            logger.error(f"Team velocity command failed: {e}")
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
