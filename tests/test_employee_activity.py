from datetime import date, datetime

import pytest

from domains.jira.employee_activity import Employee, is_active, parse_employee, parse_employees
from domains.jira.error import VelocityConfigError
from domains.jira.sprint_windows import ReportingWindow

WINDOW = ReportingWindow(datetime(2020, 3, 2, 9, 0), datetime(2020, 3, 16, 9, 0))


def test_joining_on_the_window_start_is_not_active():
    assert not is_active(Employee("alice", date(2020, 3, 2)), WINDOW)


def test_joining_before_the_window_start_is_active():
    assert is_active(Employee("alice", date(2020, 3, 1)), WINDOW)


def test_leaving_on_the_window_start_is_not_active():
    assert not is_active(Employee("bob", date(2019, 1, 1), date(2020, 3, 2)), WINDOW)


def test_leaving_after_the_window_start_is_active():
    employee = Employee("bob", date(2019, 1, 1), date(2020, 3, 3))
    assert employee.is_active(WINDOW)


def test_parse_employee_with_and_without_end_date():
    assert parse_employee("john.doe|2019-01-01") == Employee("john.doe", date(2019, 1, 1))
    assert parse_employee(" jane.doe | 2018-05-17 | 2020-02-01 ") == Employee(
        "jane.doe", date(2018, 5, 17), date(2020, 2, 1)
    )
    assert parse_employee("sam|2018-05-17|").end_date is None


def test_parse_employees_keeps_input_order():
    employees = parse_employees("john.doe|2019-01-01,jane.doe|2018-05-17")
    assert [e.username for e in employees] == ["john.doe", "jane.doe"]


@pytest.mark.parametrize(
    "value",
    [
        "",
        "john.doe",
        "john.doe|01/01/2019",
        "john.doe|2019-01-01|2018-01-01",
        "|2019-01-01",
        "a|2019-01-01|2019-02-01|extra",
        "john.doe|2019-01-01,john.doe|2019-02-01",
    ],
)
def test_malformed_employee_entries_are_rejected(value):
    with pytest.raises(VelocityConfigError):
        parse_employees(value)
