import json
from argparse import ArgumentParser

import pytest

from domains.jira.error import VelocityConfigError
from domains.jira.team_velocity_command import TeamVelocityCommand
from utils.jira.jira_assistant import JiraAssistant
from utils.jira.jira_config import JiraConfig


def parse(*argv):
    parser = ArgumentParser()
    TeamVelocityCommand.get_arguments(parser)
    return parser.parse_args(list(argv))


def write_team(directory, key, board_id=None):
    path = directory / f"{key}.json"
    team = {"key": key}
    if board_id is not None:
        team["board_id"] = board_id
    path.write_text(
        json.dumps({"team": team, "members": [{"jira_username": f"{key}.dev", "start_date": "2020-01-01"}]}),
        encoding="utf-8",
    )
    return path


def test_inline_employees_build_one_request(monkeypatch):
    monkeypatch.delenv("JIRA_BOARD_ID", raising=False)
    args = parse("--employees", "john.doe|2019-01-01,jane.doe|2018-05-17", "--board-id", "1234", "--burndown")

    (request,) = TeamVelocityCommand.build_requests(args, JiraConfig())

    assert request.team_key == "team"
    assert [e.username for e in request.employees] == ["john.doe", "jane.doe"]
    assert (request.board_id, request.lookback_days, request.burndown) == (1234, None, True)


def test_board_id_falls_back_to_environment(monkeypatch):
    monkeypatch.setenv("JIRA_BOARD_ID", "77")
    (request,) = TeamVelocityCommand.build_requests(parse("--employees", "a|2019-01-01"), JiraConfig())
    assert request.board_id == 77


def test_teams_dir_builds_one_request_per_file(tmp_path):
    write_team(tmp_path, "beta", board_id=2)
    write_team(tmp_path, "alpha", board_id=1)

    requests = TeamVelocityCommand.build_requests(parse("--teams-dir", str(tmp_path)), JiraConfig())

    assert [(r.team_key, r.board_id) for r in requests] == [("alpha", 1), ("beta", 2)]


def test_filters_are_passed_to_requests(tmp_path):
    path = write_team(tmp_path, "alpha", board_id=1)
    (request,) = TeamVelocityCommand.build_requests(
        parse("--team-file", str(path), "--exclude-issue-types", "Bug,Epic", "--projects", "ENG"), JiraConfig()
    )
    assert request.issue_filter.exclude_issue_types == frozenset({"bug", "epic"})
    assert request.issue_filter.projects == frozenset({"ENG"})


@pytest.mark.parametrize(
    "argv",
    [
        ("--employees", "john.doe"),
        ("--employees", "a|2019-01-01", "--max-workers", "0"),
        ("--employees", "a|2019-01-01", "--lookback-days", "-5"),
    ],
)
def test_bad_arguments_raise_config_errors(argv):
    with pytest.raises(VelocityConfigError):
        TeamVelocityCommand.build_requests(parse(*argv), JiraConfig())


def test_output_is_rejected_for_several_teams(tmp_path):
    write_team(tmp_path, "alpha")
    with pytest.raises(VelocityConfigError):
        TeamVelocityCommand.build_requests(
            parse("--teams-dir", str(tmp_path), "--output", str(tmp_path / "x.csv")), JiraConfig()
        )


def test_config_errors_exit_before_any_tracker_call(monkeypatch, capsys):
    def unexpected(*args, **kwargs):
        pytest.fail("the tracker must not be contacted")

    monkeypatch.setattr(JiraAssistant, "from_config", unexpected)

    with pytest.raises(SystemExit) as excinfo:
        TeamVelocityCommand.main(parse("--employees", "john.doe|2019-13-45"))

    assert excinfo.value.code == 1
    assert "Error:" in capsys.readouterr().err


def test_main_writes_the_report(monkeypatch, tmp_path, fake_gateway_factory):
    monkeypatch.setattr(JiraAssistant, "from_config", lambda *args, **kwargs: fake_gateway_factory())
    output_path = tmp_path / "velocity.csv"

    TeamVelocityCommand.main(
        parse(
            "--employees",
            "a|2000-01-01",
            "--lookback-days",
            "40",
            "--cache-file",
            str(tmp_path / "cache.jsonl"),
            "--output",
            str(output_path),
        )
    )

    assert output_path.exists()
    assert (tmp_path / "cache.jsonl").exists()
