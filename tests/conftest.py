"""Test configuration: puts ``src`` on sys.path and keeps logs and reports out of the repo.

The environment is set before anything imports ``config`` because settings are read
once at import time.
"""

import copy
import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

os.environ.setdefault("LOG_OUTPUT", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("OUTPUT_DIR", tempfile.mkdtemp(prefix="velocity-output-"))
os.environ.setdefault("CACHE_BACKEND", "memory")

import pytest  # noqa: E402

import log_config  # noqa: E402,F401

STORY_POINTS = "customfield_10005"


def make_issue(key, points=None, issue_type="Story", labels=(), project="ENG"):
    return {
        "key": key,
        "self": f"https://jira.example.com/rest/api/2/issue/{key}",
        "fields": {
            STORY_POINTS: points,
            "issuetype": {"name": issue_type},
            "labels": list(labels),
            "project": {"key": project, "name": project.title()},
        },
    }


def points_history(*values):
    """Change history setting the story points field to each value in turn."""
    return [
        {"items": [{"field": "Story Points", "fieldId": STORY_POINTS, "toString": str(value)}]}
        for value in values
    ]


class FakeJiraGateway:
    """
    In-memory stand-in for JiraAssistant.

    ``issues_by_user`` maps a username to the issues a search crediting that user
    returns; ``histories`` maps an issue key to ``(fields, histories)``.
    """

    def __init__(
        self,
        issues_by_user=None,
        histories=None,
        sprints=None,
        fields=None,
        failing_users=(),
        failing_histories=(),
    ):
        self.issues_by_user = issues_by_user or {}
        self.histories = histories or {}
        self.sprints = sprints or []
        self.fields = fields or [{"id": STORY_POINTS, "name": "Story Points"}]
        self.failing_users = set(failing_users)
        self.failing_histories = set(failing_histories)
        self.search_calls = []
        self.history_calls = []

    def search_issues(self, jql, fields=()):
        from utils.jira.error import JiraQueryError

        self.search_calls.append(jql)
        for username, issues in self.issues_by_user.items():
            if f'"{username}"' in jql:
                if username in self.failing_users:
                    raise JiraQueryError("Error searching issues: 500", jql=jql, status_code=500)
                return {"total": len(issues), "issues": copy.deepcopy(issues)}
        return {"total": 0, "issues": []}

    def fetch_issue_history(self, issue, fields=()):
        from utils.jira.error import JiraIssueHistoryError

        self.history_calls.append(issue["key"])
        if issue["key"] in self.failing_histories:
            raise JiraIssueHistoryError(
                f"Error getting history for {issue['key']}: GET request returned 404", issue_key=issue["key"]
            )
        current, histories = self.histories.get(issue["key"], (issue.get("fields") or {}, []))
        return copy.deepcopy(current), copy.deepcopy(histories)

    def fetch_board_sprints(self, board_id):
        return copy.deepcopy(self.sprints)

    def fetch_fields(self):
        return copy.deepcopy(self.fields)


@pytest.fixture
def fake_gateway_factory():
    return FakeJiraGateway


@pytest.fixture
def effort_field():
    from domains.jira.story_points import EffortField

    return EffortField(field_id=STORY_POINTS, display_name="Story Points")


@pytest.fixture
def memory_cache():
    from utils.cache_manager.cache_manager import CacheManager

    return CacheManager("memory")


@pytest.fixture
def cache_file(tmp_path):
    return str(tmp_path / "cache" / "queries.jsonl")
