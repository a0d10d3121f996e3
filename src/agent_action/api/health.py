"""Health check endpoint for monitoring and load balancer probes."""
import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from agent_action.modes.registry import VALID_MODES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthStatus(BaseModel):
    """Health check response."""

    status: Literal["healthy"]
    version: str
    modes: list[str]


@router.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    """Returns 200 while the service is running."""
    from agent_action import __version__

    return HealthStatus(status="healthy", version=__version__, modes=sorted(VALID_MODES))
