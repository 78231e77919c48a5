"""
AsanaWriter - task creation against the Asana REST API.

One method per network call:
- create_task: POST /tasks, returns the new task GID
- fetch_permalink: GET /tasks/{gid}, returns permalink + assignee identity

Neither method retries. A 429 surfaces as AsanaRateLimitError carrying the
Retry-After seconds; see taskdesk.resilience for the retry loop.
Uses httpx for HTTP calls (not the asana SDK).
"""

import logging
import os
from dataclasses import dataclass

import httpx

from taskdesk import config

logger = logging.getLogger(__name__)


class AsanaAPIError(Exception):
    """Any failed Asana call. `status` is the HTTP status when there was one."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class AsanaConfigError(AsanaAPIError):
    """No access token configured."""


class AsanaRateLimitError(AsanaAPIError):
    """HTTP 429. `retry_after` is the server-requested wait in seconds."""

    def __init__(self, retry_after: float):
        super().__init__("Rate limit exceeded", status=429)
        self.retry_after = retry_after


class AsanaPermalinkError(AsanaAPIError):
    """The task exists but its permalink could not be retrieved."""


class MaxRetriesExceeded(AsanaAPIError):
    """Every attempt was rate limited."""

    def __init__(self, attempts: int):
        super().__init__(f"Max retries exceeded after {attempts} attempts", status=429)
        self.attempts = attempts


@dataclass(frozen=True)
class Permalink:
    """Result of fetch_permalink."""

    url: str
    assignee_name: str | None = None
    assignee_email: str | None = None


def _retry_after_seconds(response: httpx.Response) -> float:
    raw = response.headers.get("Retry-After")
    try:
        return max(float(raw), 0.0)
    except (TypeError, ValueError):
        return config.DEFAULT_RETRY_AFTER_SECONDS


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
        if isinstance(body, dict) and "errors" in body:
            return str(body["errors"])
    except ValueError:
        pass
    return response.text[:200]


class AsanaWriter:
    """Create tasks in Asana and look up their permalinks."""

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize AsanaWriter.

        Args:
            access_token: Asana token. If None, uses the ASANA_ACCESS_TOKEN env var.
            base_url: API base. Defaults to config.ASANA_API_BASE.
            timeout: Per-request timeout in seconds.

        Raises:
            AsanaConfigError: no token available
        """
        self.token = access_token or os.environ.get(config.ASANA_TOKEN_ENV)
        if not self.token:
            raise AsanaConfigError(f"{config.ASANA_TOKEN_ENV} not configured")
        self.base_url = (base_url or config.ASANA_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else config.ASANA_TIMEOUT_SECONDS

    def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict | None = None,
        params: dict | None = None,
    ) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }
        if json_data is not None:
            headers["Content-Type"] = "application/json"

        try:
            return httpx.request(
                method,
                f"{self.base_url}/{endpoint}",
                headers=headers,
                json=json_data,
                params=params,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"Asana request failed: {method} {endpoint}: {e}")
            raise AsanaAPIError(f"Asana request failed: {e}") from e

    def create_task(self, payload: dict) -> str:
        """
        Create one task.

        Args:
            payload: {name, notes, assignee, due_on, projects: [gid]}

        Returns:
            GID of the created task

        Raises:
            AsanaRateLimitError: 429
            AsanaAPIError: any other non-2xx, or a body without a GID
        """
        response = self._request("POST", "tasks", json_data={"data": payload})

        if response.status_code == 429:
            retry_after = _retry_after_seconds(response)
            logger.warning(f"Asana API rate limited (Retry-After {retry_after}s)")
            raise AsanaRateLimitError(retry_after)

        if response.status_code not in (200, 201):
            error_msg = f"Asana API error {response.status_code}: {_error_detail(response)}"
            logger.error(error_msg)
            raise AsanaAPIError(error_msg, status=response.status_code)

        try:
            gid = (response.json().get("data") or {}).get("gid")
        except (ValueError, AttributeError):
            gid = None
        if not gid:
            raise AsanaAPIError("No task GID returned from Asana", status=response.status_code)
        return str(gid)

    def fetch_permalink(self, task_gid: str) -> Permalink:
        """
        Fetch the permalink and assignee of a created task.

        Raises:
            AsanaPermalinkError: non-2xx or no permalink_url in the response
        """
        response = self._request(
            "GET",
            f"tasks/{task_gid}",
            params={"opt_fields": "permalink_url,assignee.name,assignee.email"},
        )

        if response.status_code != 200:
            error_msg = (
                f"Failed to get task details {response.status_code}: {_error_detail(response)}"
            )
            logger.error(error_msg)
            raise AsanaPermalinkError(error_msg, status=response.status_code)

        try:
            data = response.json().get("data") or {}
        except (ValueError, AttributeError):
            data = {}
        url = data.get("permalink_url")
        if not url:
            raise AsanaPermalinkError("No permalink returned from Asana")

        assignee = data.get("assignee") or {}
        return Permalink(
            url=url,
            assignee_name=assignee.get("name"),
            assignee_email=assignee.get("email"),
        )
