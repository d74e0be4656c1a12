from datetime import date, datetime, timedelta, timezone

import pytest

from domains.jira.sprint_windows import (
    ReportingWindow,
    calendar_month_windows,
    close_window_gaps,
    closed_sprint_windows,
    parse_jira_datetime,
)


def sprint(state, start, end, name="Sprint"):
    return {"name": name, "state": state, "startDate": start, "endDate": end}


def test_parse_jira_datetime_accepts_both_offset_styles():
    zulu = parse_jira_datetime("2019-01-07T15:00:00.000Z")
    compact = parse_jira_datetime("2019-01-07T15:00:00.000+0000")
    assert zulu == compact
    assert zulu.tzinfo is not None
    assert zulu.utcoffset() == timedelta(0)


def test_closed_sprints_become_gapless_and_sorted():
    sprints = [
        sprint("closed", "2019-01-21T15:00:00.000Z", "2019-02-01T15:00:00.000Z", "S3"),
        sprint("closed", "2019-01-07T15:00:00.000Z", "2019-01-18T15:00:00.000Z", "S1"),
        sprint("active", "2019-02-04T15:00:00.000Z", "2019-02-15T15:00:00.000Z", "S4"),
        sprint("closed", "2019-01-14T15:00:00.000Z", "2019-01-25T15:00:00.000Z", "S2"),
        sprint("future", None, None, "S5"),
    ]

    windows = closed_sprint_windows(sprints)

    assert len(windows) == 3
    assert [w.start for w in windows] == sorted(w.start for w in windows)
    for current, following in zip(windows, windows[1:]):
        assert current.end == following.start
    assert windows[-1].end == parse_jira_datetime("2019-02-01T15:00:00.000Z")


def test_closed_sprint_without_dates_is_skipped():
    sprints = [
        {"name": "broken", "state": "closed"},
        sprint("closed", "2019-01-07T15:00:00.000Z", "2019-01-18T15:00:00.000Z"),
    ]
    assert len(closed_sprint_windows(sprints)) == 1


def test_no_closed_sprints_yields_no_windows():
    assert closed_sprint_windows([sprint("active", "2019-01-07T15:00:00.000Z", "2019-01-18T15:00:00.000Z")]) == []
    assert closed_sprint_windows([]) == []


def test_close_window_gaps_shrinks_overlaps():
    utc = timezone.utc
    first = ReportingWindow(datetime(2019, 1, 1, tzinfo=utc), datetime(2019, 1, 20, tzinfo=utc))
    second = ReportingWindow(datetime(2019, 1, 14, tzinfo=utc), datetime(2019, 1, 28, tzinfo=utc))
    closed = close_window_gaps([second, first])
    assert closed[0].end == second.start
    assert closed[1] == second


def test_window_key_matches_report_format():
    window = ReportingWindow(
        parse_jira_datetime("2019-01-07T15:00:00.000Z"), parse_jira_datetime("2019-01-21T15:00:00.000Z")
    )
    assert window.key == "2019-01-07 15:00"
    assert str(window) == "[2019-01-07 15:00, 2019-01-21 15:00)"


def test_calendar_month_windows_cover_lookback():
    windows = calendar_month_windows(lookback_days=90, today=date(2024, 5, 17))

    assert windows[0].start == datetime(2024, 2, 1)
    assert windows[-1].end == datetime(2024, 5, 1)
    assert len(windows) == 3
    for current, following in zip(windows, windows[1:]):
        assert current.end == following.start


def test_calendar_month_windows_cross_year_boundary():
    windows = calendar_month_windows(lookback_days=31, today=date(2024, 1, 10))
    assert [w.key for w in windows] == ["2023-12-01 00:00"]


def test_calendar_month_windows_reject_non_positive_lookback():
    with pytest.raises(ValueError):
        calendar_month_windows(lookback_days=0)
