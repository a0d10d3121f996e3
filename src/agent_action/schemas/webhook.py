"""Response schemas for the webhook endpoint."""
from typing import Literal

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Classification result for one webhook delivery."""

    status: Literal["classified", "ignored"]
    message: str
    delivery_id: str | None = None
    event: str | None = None
    mode: str | None = None
    description: str | None = None
    should_trigger: bool | None = None
    creates_tracking_comment: bool | None = None
