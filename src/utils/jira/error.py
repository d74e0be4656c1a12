from utils.error.base_custom_error import BaseCustomError


class JiraManagerError(BaseCustomError):
    """
    Base exception class for all Jira gateway errors raised above the HTTP layer.
    """

    pass


class JiraQueryError(JiraManagerError):
    """
    Raised when a JQL search fails. Carries the offending ``jql``.
    """

    def __init__(self, message: str = "Error executing JQL query", **metadata):
        super().__init__(message, **metadata)


class JiraIssueHistoryError(JiraManagerError):
    """
    Raised when the change history of an issue cannot be fetched. Carries ``issue_key``.
    """

    def __init__(self, message: str = "Error getting issue history", **metadata):
        super().__init__(message, **metadata)


class JiraSprintFetchError(JiraManagerError):
    """
    Raised when the sprints of a board cannot be listed. Carries ``board_id``.
    """

    def __init__(self, message: str = "Failed to fetch board sprints", **metadata):
        super().__init__(message, **metadata)


class JiraFieldLookupError(JiraManagerError):
    """
    Raised when a configured field id or name does not exist in the Jira instance.
    """

    def __init__(self, message: str = "Unknown Jira field", **metadata):
        super().__init__(message, **metadata)


class JiraApiClientError(BaseCustomError):
    """
    Base exception class for JiraApiClient.
    """

    pass


class JiraApiRequestError(JiraApiClientError):
    """
    Raised for non-success responses and transport failures during API requests.
    """

    def __init__(self, message: str, endpoint: str, payload=None, params=None, status_code=None):
        super().__init__(
            message,
            endpoint=endpoint,
            payload=payload,
            params=params,
            status_code=status_code,
        )
        self.status_code = status_code
