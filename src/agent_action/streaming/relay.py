"""Output relay: batches assistant output lines and POSTs them to a progress endpoint.

The relay sits between the assistant process and a remote endpoint. It must
never block or crash the producer:

- lines are buffered and sent in batches of ``batch_size``
- a partial batch is sent after ``batch_timeout_seconds`` of quiet
- ``close()`` sends whatever is left and makes further output a no-op
- every send failure (token, timeout, status, network) is logged and dropped

Batches are sent in the order flushes are triggered, but each send is an
independent request, so a receiver can see them arrive out of order. Enable
``sequence_numbers`` to stamp each payload with a per-relay counter.
"""
import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from agent_action.config import DEFAULT_OIDC_AUDIENCE
from agent_action.schemas.progress import utc_timestamp
from agent_action.streaming.token import CachedToken, TokenGetter

logger = logging.getLogger(__name__)


@dataclass
class RelaySettings:
    """Configuration for one output relay."""

    endpoint: str
    headers: dict[str, str] = field(default_factory=dict)
    batch_size: int = 10
    batch_timeout_seconds: float = 1.0
    request_timeout_seconds: float = 5.0
    token_lifetime_seconds: float = 4 * 60
    audience: str = DEFAULT_OIDC_AUDIENCE
    sequence_numbers: bool = False


def parse_stream_headers(headers_input: str | None) -> dict[str, str]:
    """Parse a JSON object of extra headers; blank or invalid input yields ``{}``."""
    if not headers_input or not headers_input.strip():
        return {}
    try:
        parsed = json.loads(headers_input)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse stream headers as JSON", extra={"error": str(e)})
        return {}
    if not isinstance(parsed, dict):
        logger.error("Stream headers must be a JSON object")
        return {}
    return {str(key): str(value) for key, value in parsed.items()}


class OutputRelay:
    """
    Buffered, best-effort streaming of output lines to an HTTP endpoint.

    Each relay owns its buffer and its cached token; nothing is shared
    between instances.
    """

    def __init__(
        self,
        settings: RelaySettings,
        token_getter: TokenGetter,
        *,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self._token = CachedToken(
            token_getter,
            audience=settings.audience,
            lifetime_seconds=settings.token_lifetime_seconds,
            clock=clock,
        )
        self._client = client
        self._owns_client = client is None
        self._buffer: list[str] = []
        self._timer: asyncio.TimerHandle | None = None
        self._timer_flushes: set[asyncio.Task[None]] = set()
        self._sequence = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_lines(self) -> list[str]:
        return list(self._buffer)

    async def __aenter__(self) -> "OutputRelay":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def add_output(self, data: str) -> None:
        """
        Buffer a raw chunk of output.

        The chunk may hold several lines or a partial line; empty segments
        are dropped. Reaching the batch size flushes inline, so a fast
        producer waits on the send instead of growing the buffer.
        """
        if self._closed:
            return

        lines = [line for line in data.split("\n") if line]
        if not lines:
            return
        self._buffer.extend(lines)

        if len(self._buffer) >= self.settings.batch_size:
            await self.flush()
        else:
            self._arm_timer()

    async def flush(self) -> None:
        """Send the current buffer. Never raises."""
        if not self._buffer:
            return

        self._cancel_timer()

        # Swap before any await so concurrent output lands in a fresh buffer
        output, self._buffer = self._buffer, []
        sequence = None
        if self.settings.sequence_numbers:
            self._sequence += 1
            sequence = self._sequence

        try:
            await self._send(output, sequence)
        except Exception as e:
            logger.warning(
                "Failed to stream output",
                extra={
                    "endpoint": self.settings.endpoint,
                    "lines": len(output),
                    "error": str(e) or type(e).__name__,
                },
            )

    async def close(self) -> None:
        """Flush what is left and stop accepting output."""
        self._cancel_timer()

        while self._buffer:
            await self.flush()

        self._closed = True

        # In-flight timer flushes are allowed to finish, not cancelled
        if self._timer_flushes:
            await asyncio.gather(*self._timer_flushes, return_exceptions=True)

        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _send(self, output: list[str], sequence: int | None) -> None:
        token = await self._token.get()

        payload: dict[str, Any] = {"timestamp": utc_timestamp(), "output": output}
        if sequence is not None:
            payload["sequence"] = sequence

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
            **self.settings.headers,
        }

        response = await asyncio.wait_for(
            self._get_client().post(self.settings.endpoint, json=payload, headers=headers),
            timeout=self.settings.request_timeout_seconds,
        )
        if response.is_error:
            logger.warning(
                "Progress endpoint rejected output batch",
                extra={
                    "endpoint": self.settings.endpoint,
                    "status_code": response.status_code,
                    "lines": len(output),
                },
            )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    def _arm_timer(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.settings.batch_timeout_seconds, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self.flush())
        self._timer_flushes.add(task)
        task.add_done_callback(self._timer_flushes.discard)
