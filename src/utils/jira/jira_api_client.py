from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth
from urllib3.util.retry import Retry

from utils.jira.error import JiraApiRequestError
from utils.logging.logging_manager import LogManager


class JiraApiClient:
    """
    Thin Jira REST client: one authenticated session, JSON in and out, and every
    non-success response turned into a JiraApiRequestError.
    """

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        timeout: float = 30.0,
        max_retries: int = 3,
    ):
        """
        Initialize the Jira API client.

        Args:
            base_url (str): Root URL of the Jira instance (e.g. https://jira.example.com).
            email (str): The user name or email used for basic authentication.
            api_token (str): The password or API token used for authentication.
            timeout (float): Per-request timeout in seconds.
            max_retries (int): Retries for connection failures and throttling responses.
        """
        self.logger = LogManager.get_instance().get_logger("JiraApiClient")
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.session = self._create_session(email, api_token, max_retries)

    def _create_session(self, email: str, api_token: str, max_retries: int) -> requests.Session:
        """Create a session that retries throttling and gateway errors on reads only."""
        session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            status_forcelist=[429, 502, 503, 504],
            backoff_factor=1,
            allowed_methods=["GET"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.auth = HTTPBasicAuth(email, api_token)
        session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )
        return session

    def url_for(self, endpoint: str) -> str:
        """Absolute URL for an endpoint; absolute URLs (such as an issue's ``self``) pass through."""
        if endpoint.startswith("http://") or endpoint.startswith("https://"):
            return endpoint
        return f"{self.base_url}{endpoint.lstrip('/')}"

    def _handle_response(self, response: requests.Response, endpoint: str):
        """
        Handle the HTTP response from the Jira API.

        Returns:
            dict or None: Parsed JSON response, or None if no content.

        Raises:
            JiraApiRequestError: For non-JSON bodies.
        """
        self.logger.debug(f"HTTP Status: {response.status_code}")

        if response.status_code == 204:
            return None

        try:
            return response.json()
        except ValueError as e:
            self.logger.error(f"Failed to parse JSON response from {endpoint}: {e}")
            raise JiraApiRequestError(
                message="Invalid JSON in response",
                endpoint=endpoint,
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _describe_error(response: requests.Response) -> str:
        try:
            details = response.json()
        except ValueError:
            text = (response.text or "").strip()
            return f" - Response: {text[:500]}" if text else ""
        if isinstance(details, dict):
            if details.get("errorMessages"):
                return f" - {'; '.join(details['errorMessages'])}"
            if details.get("errors"):
                return " - " + "; ".join(f"{field}: {message}" for field, message in details["errors"].items())
        return ""

    def _request(self, method: str, endpoint: str, **kwargs):
        """
        Make an HTTP request to the Jira API.

        Args:
            method (str): HTTP method ('GET', 'POST', ...).
            endpoint (str): Path relative to the Jira root, or an absolute URL.

        Returns:
            dict or None: Parsed JSON response or None if no content.

        Raises:
            JiraApiRequestError: If the request fails or the status is not a success.
        """
        url = self.url_for(endpoint)
        self.logger.debug(f"Sending {method.upper()} request to {url} with params {kwargs.get('params')}")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            self.logger.error(f"{method.upper()} {url} failed: {e}")
            raise JiraApiRequestError(
                message=f"Failed to execute {method.upper()} request: {e}",
                endpoint=endpoint,
                params=kwargs.get("params"),
                payload=kwargs.get("json"),
            ) from e

        if not response.ok:
            error_message = f"{method.upper()} request returned {response.status_code}"
            error_message += self._describe_error(response)
            self.logger.error(error_message)
            raise JiraApiRequestError(
                message=error_message,
                endpoint=endpoint,
                params=kwargs.get("params"),
                payload=kwargs.get("json"),
                status_code=response.status_code,
            )
        return self._handle_response(response, endpoint)

    def get(self, endpoint: str, params: Optional[dict] = None):
        """
        Make a GET request to the Jira API.

        Args:
            endpoint (str): The API endpoint to call.
            params (dict, optional): Query parameters to include in the request.

        Returns:
            dict or None: The JSON response from the API.
        """
        return self._request("GET", endpoint, params=params)

