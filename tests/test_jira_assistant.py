import pytest
import requests

from utils.jira.error import JiraApiRequestError, JiraIssueHistoryError, JiraQueryError, JiraSprintFetchError
from utils.jira.jira_api_client import JiraApiClient
from utils.jira.jira_assistant import BOARD_SPRINTS_ENDPOINT, SEARCH_ENDPOINT, JiraAssistant


class ScriptedClient:
    """Returns queued responses per endpoint and records every call."""

    def __init__(self, responses):
        self.responses = {endpoint: list(queue) for endpoint, queue in responses.items()}
        self.calls = []

    def get(self, endpoint, params=None):
        self.calls.append((endpoint, dict(params or {})))
        response = self.responses[endpoint].pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def issues(*keys):
    return [{"key": key, "fields": {}} for key in keys]


def test_search_follows_pages_until_total():
    client = ScriptedClient(
        {
            SEARCH_ENDPOINT: [
                {"startAt": 0, "maxResults": 2, "total": 5, "issues": issues("A-1", "A-2")},
                {"startAt": 2, "maxResults": 2, "total": 5, "issues": issues("A-3", "A-4")},
                {"startAt": 4, "maxResults": 2, "total": 5, "issues": issues("A-5")},
            ]
        }
    )
    assistant = JiraAssistant(client, search_page_size=2)

    result = assistant.search_issues('assignee = "a"', fields=["customfield_10005", "labels"])

    assert result["total"] == 5
    assert [issue["key"] for issue in result["issues"]] == ["A-1", "A-2", "A-3", "A-4", "A-5"]
    assert [params["startAt"] for _, params in client.calls] == [0, 2, 4]
    assert client.calls[0][1]["fields"] == "customfield_10005,labels"


def test_search_with_no_results_is_a_single_request():
    client = ScriptedClient({SEARCH_ENDPOINT: [{"startAt": 0, "maxResults": 100, "total": 0, "issues": []}]})
    assert JiraAssistant(client).search_issues("project = X") == {"total": 0, "issues": []}
    assert len(client.calls) == 1


def test_search_failure_is_a_query_error():
    client = ScriptedClient(
        {SEARCH_ENDPOINT: [JiraApiRequestError("GET request returned 400", endpoint=SEARCH_ENDPOINT, status_code=400)]}
    )
    with pytest.raises(JiraQueryError) as excinfo:
        JiraAssistant(client).search_issues("bad jql")
    assert excinfo.value.metadata["status_code"] == 400


def test_board_sprints_follow_is_last():
    endpoint = BOARD_SPRINTS_ENDPOINT.format(board_id=7)
    client = ScriptedClient(
        {
            endpoint: [
                {"isLast": False, "values": [{"id": 1}, {"id": 2}]},
                {"isLast": True, "values": [{"id": 3}]},
            ]
        }
    )
    sprints = JiraAssistant(client, sprint_page_size=2).fetch_board_sprints(7)
    assert [s["id"] for s in sprints] == [1, 2, 3]
    assert [params["startAt"] for _, params in client.calls] == [0, 2]


def test_board_sprint_failure_is_a_sprint_fetch_error():
    endpoint = BOARD_SPRINTS_ENDPOINT.format(board_id=7)
    client = ScriptedClient({endpoint: [JiraApiRequestError("boom", endpoint=endpoint, status_code=404)]})
    with pytest.raises(JiraSprintFetchError):
        JiraAssistant(client).fetch_board_sprints(7)


def test_issue_history_uses_self_link_and_pages_truncated_changelog():
    self_link = "https://jira.example.com/rest/api/2/issue/10001"
    client = ScriptedClient(
        {
            self_link: [
                {
                    "key": "ENG-1",
                    "fields": {"customfield_10005": 3},
                    "changelog": {"total": 3, "histories": [{"id": "1"}]},
                }
            ],
            "rest/api/2/issue/ENG-1/changelog": [
                {"isLast": False, "values": [{"id": "1"}, {"id": "2"}]},
                {"isLast": True, "values": [{"id": "3"}]},
            ],
        }
    )

    fields, histories = JiraAssistant(client).fetch_issue_history({"key": "ENG-1", "self": self_link})

    assert fields == {"customfield_10005": 3}
    assert [h["id"] for h in histories] == ["1", "2", "3"]
    assert client.calls[0][1]["expand"] == "changelog"


def test_issue_history_failure():
    client = ScriptedClient({"rest/api/2/issue/ENG-1": [JiraApiRequestError("timeout", endpoint="x")]})
    with pytest.raises(JiraIssueHistoryError):
        JiraAssistant(client).fetch_issue_history({"key": "ENG-1"})


def make_response(status_code, body):
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    return response


def test_api_client_turns_error_status_into_request_error(monkeypatch):
    client = JiraApiClient("https://jira.example.com/", "me@example.com", "token")
    monkeypatch.setattr(
        client.session,
        "request",
        lambda method, url, **kwargs: make_response(404, b'{"errorMessages": ["Issue does not exist"]}'),
    )

    with pytest.raises(JiraApiRequestError) as excinfo:
        client.get("rest/api/2/issue/ENG-404")

    assert excinfo.value.status_code == 404
    assert "Issue does not exist" in excinfo.value.message


def test_api_client_parses_json_and_builds_urls(monkeypatch):
    client = JiraApiClient("https://jira.example.com", "me@example.com", "token")
    seen = {}

    def request(method, url, **kwargs):
        seen.update(method=method, url=url, params=kwargs.get("params"))
        return make_response(200, b'{"total": 0}')

    monkeypatch.setattr(client.session, "request", request)

    assert client.get("/rest/api/2/search", params={"jql": "x"}) == {"total": 0}
    assert seen == {"method": "GET", "url": "https://jira.example.com/rest/api/2/search", "params": {"jql": "x"}}
    assert client.url_for("https://other.example.com/a") == "https://other.example.com/a"


def test_api_client_wraps_connection_errors(monkeypatch):
    client = JiraApiClient("https://jira.example.com", "me@example.com", "token")

    def request(method, url, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(client.session, "request", request)
    with pytest.raises(JiraApiRequestError):
        client.get("rest/api/2/field")
