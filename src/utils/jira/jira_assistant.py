from typing import Dict, List, Optional, Sequence, Tuple

from utils.jira.error import (
    JiraApiRequestError,
    JiraIssueHistoryError,
    JiraQueryError,
    JiraSprintFetchError,
)
from utils.jira.jira_api_client import JiraApiClient
from utils.jira.jira_config import JiraConfig
from log_config import log_manager

SEARCH_ENDPOINT = "rest/api/2/search"
FIELDS_ENDPOINT = "rest/api/2/field"
ISSUE_ENDPOINT = "rest/api/2/issue/{key}"
CHANGELOG_ENDPOINT = "rest/api/2/issue/{key}/changelog"
BOARD_SPRINTS_ENDPOINT = "rest/agile/1.0/board/{board_id}/sprint"


class JiraAssistant:
    """
    Read-only gateway over the Jira REST APIs used by the velocity reports.

    Wraps a JiraApiClient and turns paginated endpoints into complete payloads:
    JQL search, per-issue change history, board sprints and the field catalogue.
    """

    _logger = log_manager.get_logger("JiraAssistant")

    def __init__(self, client: JiraApiClient, search_page_size: int = 100, sprint_page_size: int = 50):
        """
        Args:
            client (JiraApiClient): Authenticated API client.
            search_page_size (int): ``maxResults`` requested per search page.
            sprint_page_size (int): ``maxResults`` requested per sprint page.
        """
        self.client = client
        self.search_page_size = search_page_size
        self.sprint_page_size = sprint_page_size

    @classmethod
    def from_config(cls, jira_config: Optional[JiraConfig] = None) -> "JiraAssistant":
        """
        Builds an assistant from environment configuration.

        Raises:
            JiraConfigError: If connection settings are missing.
        """
        jira_config = (jira_config or JiraConfig()).validate()
        client = JiraApiClient(jira_config.base_url, jira_config.email, jira_config.api_token)
        return cls(client)

    def search_issues(self, jql_query: str, fields: Sequence[str] = ()) -> Dict:
        """
        Run a JQL search and accumulate every page.

        Pages are requested until ``total <= startAt + maxResults`` as reported by Jira.

        Args:
            jql_query (str): The JQL query to execute.
            fields (Sequence[str]): Fields to include for each issue.

        Returns:
            Dict: ``{"total": <int>, "issues": [...]}`` with all matching issues.

        Raises:
            JiraQueryError: If any page request fails.
        """
        issues: List[Dict] = []
        start_at = 0
        total = 0

        while True:
            params = {"jql": jql_query, "startAt": start_at, "maxResults": self.search_page_size}
            if fields:
                params["fields"] = ",".join(fields)
            try:
                response = self.client.get(SEARCH_ENDPOINT, params=params)
            except JiraApiRequestError as e:
                raise JiraQueryError(
                    f"Error searching issues: {e.message}",
                    jql=jql_query,
                    status_code=e.status_code,
                ) from e

            if not isinstance(response, dict):
                raise JiraQueryError("No response received from Jira API.", jql=jql_query)

            page = response.get("issues") or []
            issues.extend(page)
            total = int(response.get("total", len(issues)))
            page_start = int(response.get("startAt", start_at))
            page_size = int(response.get("maxResults", self.search_page_size))

            if total <= page_start + page_size or not page:
                break
            start_at = page_start + page_size

        self._logger.debug(f"Search returned {len(issues)} of {total} issues for JQL: {jql_query}")
        return {"total": total, "issues": issues}

    def fetch_issue_history(self, issue: Dict, fields: Sequence[str] = ()) -> Tuple[Dict, List[Dict]]:
        """
        Fetch the current field values and full change history of one issue.

        Args:
            issue (Dict): Raw issue from a search; its ``self`` link is used when present.
            fields (Sequence[str]): Fields to return alongside the changelog.

        Returns:
            Tuple[Dict, List[Dict]]: ``(fields, histories)`` with histories in Jira order.

        Raises:
            JiraIssueHistoryError: If the history cannot be fetched.
        """
        issue_key = issue.get("key")
        endpoint = issue.get("self") or ISSUE_ENDPOINT.format(key=issue_key)
        params = {"expand": "changelog"}
        if fields:
            params["fields"] = ",".join(fields)

        try:
            response = self.client.get(endpoint, params=params)
        except JiraApiRequestError as e:
            raise JiraIssueHistoryError(
                f"Error getting history for {issue_key}: {e.message}",
                issue_key=issue_key,
                endpoint=endpoint,
                status_code=e.status_code,
            ) from e

        if not isinstance(response, dict):
            raise JiraIssueHistoryError(
                f"Empty history response for {issue_key}", issue_key=issue_key, endpoint=endpoint
            )

        changelog = response.get("changelog") or {}
        histories = list(changelog.get("histories") or [])
        total = int(changelog.get("total", len(histories)))
        if total > len(histories):
            histories = self._fetch_full_changelog(issue_key or response.get("key"))

        return response.get("fields") or {}, histories

    def _fetch_full_changelog(self, issue_key: str) -> List[Dict]:
        """Page through the dedicated changelog endpoint when the expanded changelog was truncated."""
        histories: List[Dict] = []
        start_at = 0
        endpoint = CHANGELOG_ENDPOINT.format(key=issue_key)
        while True:
            try:
                response = self.client.get(endpoint, params={"startAt": start_at, "maxResults": 100})
            except JiraApiRequestError as e:
                raise JiraIssueHistoryError(
                    f"Error getting changelog for {issue_key}: {e.message}",
                    issue_key=issue_key,
                    endpoint=endpoint,
                    status_code=e.status_code,
                ) from e
            page = (response or {}).get("values") or []
            histories.extend(page)
            if (response or {}).get("isLast", True) or not page:
                return histories
            start_at += len(page)

    def fetch_board_sprints(self, board_id: int | str) -> List[Dict]:
        """
        List every sprint of a board, following ``isLast`` pagination.

        Args:
            board_id (int | str): Agile board identifier.

        Returns:
            List[Dict]: Raw sprint records (``state``, ``startDate``, ``endDate`` ...).

        Raises:
            JiraSprintFetchError: If a page request fails.
        """
        sprints: List[Dict] = []
        start_at = 0
        endpoint = BOARD_SPRINTS_ENDPOINT.format(board_id=board_id)

        while True:
            try:
                data = self.client.get(endpoint, params={"startAt": start_at, "maxResults": self.sprint_page_size})
            except JiraApiRequestError as e:
                raise JiraSprintFetchError(
                    f"Error listing sprints: {e.message}",
                    board_id=board_id,
                    status_code=e.status_code,
                ) from e

            page = (data or {}).get("values") or []
            sprints.extend(page)
            if (data or {}).get("isLast", True) or not page:
                break
            start_at += len(page)

        self._logger.info(f"Fetched {len(sprints)} sprints for board {board_id}")
        return sprints

    def fetch_fields(self) -> List[Dict]:
        """
        Fetch the field catalogue (ids and display names) of the Jira instance.

        Raises:
            JiraQueryError: If the request fails.
        """
        try:
            response = self.client.get(FIELDS_ENDPOINT)
        except JiraApiRequestError as e:
            raise JiraQueryError(f"Error fetching fields: {e.message}", status_code=e.status_code) from e
        return response if isinstance(response, list) else []
