"""Async GitHub REST client for the handful of calls run preparation needs.

Covers the repository's default branch, issue and pull request comments
(the tracking comment) and user profile names (commit co-author lines).

Reference: https://docs.github.com/en/rest
"""

import logging
from typing import Any

import httpx

from agent_action.config import get_settings
from agent_action.schemas.events import RepositoryRef

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"


class GitHubAPIError(Exception):
    """A GitHub REST call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GitHubRateLimitError(GitHubAPIError):
    """The token's rate limit is exhausted."""


class GitHubNotFoundError(GitHubAPIError):
    """The resource does not exist or the token cannot see it."""


def raise_for_github_status(response: httpx.Response, path: str) -> None:
    """Map an error response onto the ``GitHubAPIError`` family."""
    code = response.status_code
    if code < 400:
        return
    if code in (403, 429) and response.headers.get("X-RateLimit-Remaining") == "0":
        reset_at = response.headers.get("X-RateLimit-Reset", "unknown")
        raise GitHubRateLimitError(f"Rate limit exhausted for {path}; resets at {reset_at}", code)
    if code == 404:
        raise GitHubNotFoundError(f"Not found: {path}", code)
    raise GitHubAPIError(f"{code} from {path}: {response.text}", code)


class GitHubClient:
    """
    Async GitHub API client.

    Use as an async context manager; the underlying ``httpx.AsyncClient``
    lives for the duration of the block. Token and base URL default to
    the configured ``GITHUB_TOKEN`` and ``GITHUB_API_BASE_URL``.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.token = token or settings.github_token
        self.base_url = (base_url or settings.github_api_base_url).rstrip("/")
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

        if not self.token:
            logger.warning("No GitHub token configured, requests are anonymous")

    async def __aenter__(self) -> "GitHubClient":
        headers = {"Accept": "application/vnd.github+json", "X-GitHub-Api-Version": API_VERSION}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(30.0, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            GitHubRateLimitError: rate limit exhausted
            GitHubNotFoundError: 404
            GitHubAPIError: any other error status
        """
        if self._http is None:
            raise RuntimeError("GitHubClient used outside 'async with' block")

        response = await self._http.request(method, path, **kwargs)
        raise_for_github_status(response, path)
        return response.json()

    async def get_repository(self, repository: RepositoryRef) -> dict[str, Any]:
        return await self._call("GET", f"/repos/{repository.full_name}")

    async def get_default_branch(self, repository: RepositoryRef) -> str:
        logger.debug("Fetching default branch", extra={"repo": repository.full_name})
        data = await self.get_repository(repository)
        return data["default_branch"]

    async def create_issue_comment(
        self, repository: RepositoryRef, issue_number: int, body: str
    ) -> dict[str, Any]:
        """Comment on an issue or pull request; the result includes its ``id``."""
        comment = await self._call(
            "POST",
            f"/repos/{repository.full_name}/issues/{issue_number}/comments",
            json={"body": body},
        )
        logger.info(
            "Created comment",
            extra={"repo": repository.full_name, "issue": issue_number, "comment_id": comment.get("id")},
        )
        return comment

    async def update_issue_comment(
        self, repository: RepositoryRef, comment_id: int, body: str
    ) -> dict[str, Any]:
        return await self._call(
            "PATCH",
            f"/repos/{repository.full_name}/issues/comments/{comment_id}",
            json={"body": body},
        )

    async def get_user_display_name(self, login: str) -> str | None:
        """The user's profile name, or ``None`` when unset or unknown."""
        try:
            user = await self._call("GET", f"/users/{login}")
        except GitHubNotFoundError:
            return None
        return user.get("name") or None
