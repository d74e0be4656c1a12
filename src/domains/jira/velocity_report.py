"""CSV rendering of velocity report rows."""

from typing import Sequence

import pandas as pd

from log_config import log_manager
from utils.output_manager import OutputManager

from .velocity_statistics import VelocityRow

REPORT_COLUMNS = [
    "user",
    "sprint_start",
    "total_issues",
    "total_points",
    "active",
    "average_issues_delta_sum",
    "average_issues_delta_perc",
    "average_points_delta_sum",
    "average_points_delta_perc",
]


class VelocityReportWriter:
    """Writes report rows as CSV with one line per subject and window."""

    _logger = log_manager.get_logger("VelocityReportWriter")

    @staticmethod
    def to_dataframe(rows: Sequence[VelocityRow]) -> pd.DataFrame:
        records = [
            [
                row.subject,
                row.window_key,
                row.total_issues,
                row.total_points,
                "true" if row.active else "false",
                row.issues_delta_sum,
                row.issues_delta_ratio,
                row.points_delta_sum,
                row.points_delta_ratio,
            ]
            for row in rows
        ]
        return pd.DataFrame(records, columns=REPORT_COLUMNS, dtype=object)

    def write(self, rows: Sequence[VelocityRow], output_path: str) -> str:
        """
        Args:
            rows: Report rows in output order.
            output_path: Destination CSV path; parent folders are created.

        Returns:
            str: The path written.
        """
        path = OutputManager.save_csv_report(self.to_dataframe(rows), output_path=output_path)
        self._logger.info(f"Exported {len(rows)} velocity rows to {path}")
        return path
