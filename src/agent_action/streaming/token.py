"""Short-lived identity token minting and caching.

GitHub Actions mints audience-scoped OIDC tokens on request. Minting is
comparatively expensive, so relays cache one token and reuse it across
many small batches until it ages out.
"""
import logging
import time
from collections.abc import Awaitable, Callable
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

TokenGetter = Callable[[str], Awaitable[str]]


class TokenFetchError(Exception):
    """Raised when an identity token cannot be obtained."""


class OIDCTokenProvider:
    """
    Fetches OIDC tokens from the Actions runtime.

    The runner exposes ``ACTIONS_ID_TOKEN_REQUEST_URL`` and
    ``ACTIONS_ID_TOKEN_REQUEST_TOKEN`` when the workflow has
    ``id-token: write``; both are passed in explicitly.
    """

    def __init__(
        self,
        request_url: str,
        request_token: str,
        *,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.request_url = request_url
        self.request_token = request_token
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def __call__(self, audience: str) -> str:
        if not self.request_url or not self.request_token:
            raise TokenFetchError(
                "OIDC token request URL/token not available; "
                "add 'id-token: write' to the workflow permissions"
            )

        separator = "&" if "?" in self.request_url else "?"
        url = f"{self.request_url}{separator}audience={quote(audience, safe='')}"
        headers = {"Authorization": f"Bearer {self.request_token}", "Accept": "application/json"}

        try:
            if self._client is not None:
                response = await self._client.get(url, headers=headers, timeout=self.timeout_seconds)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            raise TokenFetchError(f"OIDC token request failed: {e}") from e

        if response.status_code >= 400:
            raise TokenFetchError(f"OIDC token request returned {response.status_code}")

        try:
            value = response.json().get("value")
        except ValueError as e:
            raise TokenFetchError("OIDC token response was not JSON") from e

        if not value:
            raise TokenFetchError("OIDC token response had no value")
        return value


class CachedToken:
    """
    A single cached bearer token with lazy refresh.

    The token is reused while younger than ``lifetime_seconds``; the first
    ``get()`` after that fetches a new one. Nothing refreshes in the
    background. A failed fetch leaves the previous token and its timestamp
    untouched.
    """

    def __init__(
        self,
        token_getter: TokenGetter,
        audience: str,
        lifetime_seconds: float = 4 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._token_getter = token_getter
        self.audience = audience
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock
        self._token: str | None = None
        self._fetched_at = 0.0

    @property
    def is_stale(self) -> bool:
        return self._token is None or self._clock() - self._fetched_at >= self.lifetime_seconds

    async def get(self) -> str:
        if not self.is_stale:
            return self._token  # type: ignore[return-value]

        now = self._clock()
        try:
            token = await self._token_getter(self.audience)
        except Exception as e:
            raise TokenFetchError(f"Failed to get OIDC token: {e}") from e

        self._token = token
        self._fetched_at = now
        logger.debug("Fetched new OIDC token", extra={"audience": self.audience})
        return token
