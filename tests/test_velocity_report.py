from datetime import datetime

from domains.jira.period_aggregator import PeriodMetrics
from domains.jira.sprint_windows import ReportingWindow
from domains.jira.velocity_report import REPORT_COLUMNS, VelocityReportWriter
from domains.jira.velocity_statistics import build_report_rows

WINDOW = ReportingWindow(datetime(2019, 1, 7, 15, 0), datetime(2019, 1, 21, 15, 0))
EMPTY_WINDOW = ReportingWindow(datetime(2019, 1, 21, 15, 0), datetime(2019, 2, 4, 15, 0))


def test_csv_layout(tmp_path):
    rows = build_report_rows(
        [
            PeriodMetrics("alice", WINDOW, 4, 10, True),
            PeriodMetrics("bob", WINDOW, 6, 30, True),
            PeriodMetrics("alice", EMPTY_WINDOW, 0, 0, False),
        ]
    )
    output_path = str(tmp_path / "reports" / "velocity.csv")

    written = VelocityReportWriter().write(rows, output_path)

    with open(written, encoding="utf-8") as handle:
        lines = handle.read().splitlines()
    assert lines[0] == ",".join(REPORT_COLUMNS)
    assert lines[1] == "average,2019-01-07 15:00,5.0,20.0,true,0,0,0,0"
    assert lines[2] == "alice,2019-01-07 15:00,4,10,true,-1.0,0.8,-10.0,0.5"
    assert lines[3] == "bob,2019-01-07 15:00,6,30,true,1.0,1.2,10.0,1.5"
    assert lines[4] == "average,2019-01-21 15:00,,,false,0,0,0,0"
    assert lines[5] == "alice,2019-01-21 15:00,0,0,false,0,0,0,0"
    assert len(lines) == 6


def test_dataframe_has_one_row_per_report_row():
    rows = build_report_rows([PeriodMetrics("alice", WINDOW, 1, 2, True)])
    frame = VelocityReportWriter.to_dataframe(rows)
    assert list(frame.columns) == REPORT_COLUMNS
    assert list(frame["user"]) == ["average", "alice"]
