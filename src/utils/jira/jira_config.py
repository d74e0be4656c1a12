import os

from dotenv import load_dotenv

from utils.jira.error import JiraManagerError

load_dotenv()

DEFAULT_STORY_POINTS_FIELD = "customfield_10005"
DEFAULT_STORY_POINTS_FIELD_NAME = "Story Points"
DEFAULT_ATTRIBUTION_FIELD = "assignee"
DEFAULT_DONE_RESOLUTION = "Done"


class JiraConfigError(JiraManagerError):
    """Raised when required Jira connection settings are missing."""


class JiraConfig:
    """Jira connection and field settings read from the environment."""

    REQUIRED_VARS = ("JIRA_URL", "JIRA_USER_EMAIL", "JIRA_API_TOKEN")

    def __init__(self):
        self._base_url = os.getenv("JIRA_URL")
        self._email = os.getenv("JIRA_USER_EMAIL")
        self._api_token = os.getenv("JIRA_API_TOKEN")
        self._story_points_field = os.getenv("JIRA_STORY_POINTS_FIELD", DEFAULT_STORY_POINTS_FIELD)
        self._story_points_field_name = os.getenv(
            "JIRA_STORY_POINTS_FIELD_NAME", DEFAULT_STORY_POINTS_FIELD_NAME
        )
        self._attribution_field = os.getenv("JIRA_ATTRIBUTION_FIELD", DEFAULT_ATTRIBUTION_FIELD)
        self._done_resolution = os.getenv("JIRA_DONE_RESOLUTION", DEFAULT_DONE_RESOLUTION)
        self._cache_file = os.getenv("JIRA_CACHE_FILE") or None
        self._board_id = os.getenv("JIRA_BOARD_ID") or None

    def missing_vars(self) -> list[str]:
        values = {
            "JIRA_URL": self._base_url,
            "JIRA_USER_EMAIL": self._email,
            "JIRA_API_TOKEN": self._api_token,
        }
        return [name for name in self.REQUIRED_VARS if not values[name]]

    def validate(self) -> "JiraConfig":
        """
        Raises:
            JiraConfigError: Naming every missing connection variable.
        """
        missing = self.missing_vars()
        if missing:
            raise JiraConfigError(
                "Missing required Jira environment configuration",
                missing=", ".join(missing),
            )
        return self

    @property
    def base_url(self):
        return self._base_url

    @property
    def email(self):
        return self._email

    @property
    def api_token(self):
        return self._api_token

    @property
    def story_points_field(self):
        return self._story_points_field

    @property
    def story_points_field_name(self):
        return self._story_points_field_name

    @property
    def attribution_field(self):
        return self._attribution_field

    @property
    def done_resolution(self):
        return self._done_resolution

    @property
    def cache_file(self):
        return self._cache_file

    @property
    def board_id(self):
        return self._board_id
