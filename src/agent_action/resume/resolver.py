"""Fetching prior conversation state from a resume endpoint.

Resuming is opportunistic. Any problem with the endpoint or its response
means "nothing to resume" and the run starts fresh.
"""
import asyncio
import logging

import httpx
from pydantic import ValidationError

from agent_action.schemas.resume import ResumeResponse, ResumeState

logger = logging.getLogger(__name__)

DEFAULT_RESUME_TIMEOUT_SECONDS = 10.0


async def fetch_resume_data(
    endpoint: str,
    headers: dict[str, str] | None = None,
    *,
    timeout_seconds: float = DEFAULT_RESUME_TIMEOUT_SECONDS,
    client: httpx.AsyncClient | None = None,
) -> ResumeState | None:
    """
    GET the resume endpoint and parse ``{"log": [...], "branch"?: "..."}``.

    Returns ``None`` on a non-2xx status, a body that is not JSON, a body
    without a valid ``log`` list, a timeout or a network error. Never raises.
    """
    logger.info("Attempting to resume session", extra={"endpoint": endpoint})

    try:
        if client is not None:
            response = await asyncio.wait_for(
                client.get(endpoint, headers=headers or {}), timeout=timeout_seconds
            )
        else:
            async with httpx.AsyncClient() as owned:
                response = await asyncio.wait_for(
                    owned.get(endpoint, headers=headers or {}), timeout=timeout_seconds
                )
    except Exception as e:
        logger.warning(
            "Failed to fetch resume data",
            extra={"endpoint": endpoint, "error": str(e) or type(e).__name__},
        )
        return None

    if response.is_error:
        logger.info(
            "Resume endpoint returned an error status",
            extra={"endpoint": endpoint, "status_code": response.status_code},
        )
        return None

    try:
        data = ResumeResponse.model_validate_json(response.content)
    except ValidationError as e:
        logger.info(
            "Resume endpoint returned an invalid body",
            extra={"endpoint": endpoint, "errors": e.error_count()},
        )
        return None

    logger.info(
        "Fetched resume data",
        extra={"messages": len(data.log), "branch": data.branch},
    )
    return ResumeState(messages=data.log, branch_name=data.branch or None)
