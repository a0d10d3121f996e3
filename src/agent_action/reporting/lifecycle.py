"""
Workflow lifecycle reporting to the system progress endpoint.

Reports are coarse-grained (initializing, starting, complete, failed) and
fire-and-forget: each call schedules a background send and returns
immediately. A failed send is logged and never reaches the caller.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx

from agent_action.schemas.progress import (
    AssistantCompleteData,
    AssistantCompleteEvent,
    AssistantStartingEvent,
    FailurePhase,
    ProgressEvent,
    WorkflowError,
    WorkflowFailedData,
    WorkflowFailedEvent,
    WorkflowInitializingData,
    WorkflowInitializingEvent,
)
from agent_action.schemas.stream import StreamConfig

logger = logging.getLogger(__name__)

REMOTE_AGENT_MODE = "remote-agent"


@dataclass
class SystemProgressConfig:
    """Where and how lifecycle events are delivered."""

    endpoint: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout_seconds: float = 5.0


class SystemProgressReporter:
    """
    Emits lifecycle events for one workflow run.

    The bearer token is supplied by the caller and used as-is; this
    reporter does not fetch or refresh tokens.
    """

    def __init__(
        self,
        config: SystemProgressConfig,
        token: str,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self._token = token
        self._client = client
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def report_workflow_initialized(
        self,
        branch: str,
        base_branch: str,
        session_id: str | None = None,
    ) -> asyncio.Task[None] | None:
        return self._report(
            "workflow_initializing",
            lambda: WorkflowInitializingEvent(
                data=WorkflowInitializingData(
                    branch=branch,
                    base_branch=base_branch,
                    session_id=session_id or None,
                )
            ),
        )

    def report_assistant_starting(self) -> asyncio.Task[None] | None:
        return self._report("claude_starting", AssistantStartingEvent)

    def report_assistant_complete(
        self, exit_code: int, duration_ms: int
    ) -> asyncio.Task[None] | None:
        return self._report(
            "claude_complete",
            lambda: AssistantCompleteEvent(
                data=AssistantCompleteData(exit_code=exit_code, duration_ms=duration_ms)
            ),
        )

    def report_workflow_failed(
        self,
        phase: FailurePhase | str,
        error: BaseException | str,
        code: str,
    ) -> asyncio.Task[None] | None:
        """``phase`` may be a ``FailurePhase``, its wire value, or ``"execution"``."""
        return self._report(
            "workflow_failed",
            lambda: WorkflowFailedEvent(
                data=WorkflowFailedData(
                    error=WorkflowError(phase=FailurePhase(phase), message=str(error), code=code)
                )
            ),
        )

    async def drain(self) -> None:
        """Wait for every in-flight send to finish. Used at shutdown."""
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def _report(
        self, event_type: str, build: Callable[[], ProgressEvent]
    ) -> asyncio.Task[None] | None:
        # pydantic's ValidationError is a ValueError
        try:
            event = build()
        except ValueError as e:
            logger.warning(
                "Dropping malformed system progress event",
                extra={"event_type": event_type, "error": str(e)},
            )
            return None
        return self._send(event)

    def _send(self, event: ProgressEvent) -> asyncio.Task[None] | None:
        payload = event.to_payload()
        logger.info(
            "Sending system progress event",
            extra={"event_type": event.event_type, "payload": payload},
        )

        try:
            task = asyncio.get_running_loop().create_task(self._post(payload))
        except RuntimeError as e:
            logger.warning(
                "Cannot send system progress event without a running event loop",
                extra={"event_type": event.event_type, "error": str(e)},
            )
            return None

        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _post(self, payload: dict[str, Any]) -> None:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._token}",
            **self.config.headers,
        }
        try:
            if self._client is not None:
                response = await asyncio.wait_for(
                    self._client.post(self.config.endpoint, json=payload, headers=headers),
                    timeout=self.config.timeout_seconds,
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await asyncio.wait_for(
                        client.post(self.config.endpoint, json=payload, headers=headers),
                        timeout=self.config.timeout_seconds,
                    )
        except Exception as e:
            logger.warning(
                "Failed to send system progress event",
                extra={
                    "event_type": payload.get("event_type"),
                    "error": str(e) or type(e).__name__,
                },
            )
            return

        if response.is_error:
            logger.warning(
                "System progress endpoint returned an error status",
                extra={
                    "event_type": payload.get("event_type"),
                    "status_code": response.status_code,
                },
            )


def conclusion_exit_code(conclusion: str | None) -> int:
    """Only an explicit ``success`` conclusion counts as exit code 0."""
    return 0 if conclusion == "success" else 1


async def report_completion_from_stream_config(
    mode: str | None,
    stream_config_json: str | None,
    conclusion: str | None,
    start_time_ms: str | int | None,
    *,
    client: httpx.AsyncClient | None = None,
    now_ms: int | None = None,
) -> bool:
    """
    Report assistant completion using the config written by the prepare step.

    Skips (returning ``False``) outside remote-agent mode, or when the stream
    config is missing, invalid, has no system progress endpoint or carries
    no bearer token. Waits for the send so the caller can exit afterwards.
    """
    if mode != REMOTE_AGENT_MODE:
        logger.info("Not in remote-agent mode, skipping completion reporting")
        return False

    stream_config = StreamConfig.from_json(stream_config_json)
    if stream_config is None:
        logger.info("No stream config available, skipping completion reporting")
        return False

    if not stream_config.system_progress_endpoint:
        logger.info("No system progress endpoint configured, skipping completion reporting")
        return False

    token = stream_config.bearer_token
    if token is None:
        logger.error("No valid Authorization header in stream config")
        return False

    exit_code = conclusion_exit_code(conclusion)
    duration_ms = 0
    if start_time_ms not in (None, ""):
        try:
            current_ms = now_ms if now_ms is not None else int(time.time() * 1000)
            duration_ms = max(0, current_ms - int(start_time_ms))  # type: ignore[arg-type]
        except ValueError:
            logger.warning("Invalid start time, reporting zero duration", extra={"start_time": start_time_ms})

    reporter = SystemProgressReporter(
        SystemProgressConfig(
            endpoint=stream_config.system_progress_endpoint,
            headers=stream_config.headers,
        ),
        token,
        client=client,
    )
    logger.info(
        "Reporting assistant completion",
        extra={"exit_code": exit_code, "duration_ms": duration_ms},
    )
    reporter.report_assistant_complete(exit_code, duration_ms)
    await reporter.drain()
    return True
