"""GitHub webhook handler.

Receives GitHub events, validates signatures, parses the payload into a
trigger event and reports which execution mode would handle it. Nothing
is executed here; the Actions workflow does the actual run.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from agent_action.config import Settings, get_settings
from agent_action.core.logging import mode_ctx, run_id_ctx
from agent_action.core.security import GitHubDelivery, get_verified_delivery
from agent_action.modes.registry import get_mode
from agent_action.schemas.webhook import WebhookResponse
from agent_action.services.event_parser import GitHubEventParser, UnsupportedEventError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/github", response_model=WebhookResponse)
async def github_webhook(
    delivery: GitHubDelivery = Depends(get_verified_delivery),
    settings: Settings = Depends(get_settings),
) -> WebhookResponse:
    """
    Classify a GitHub webhook delivery.

    Returns:
        - 200 ``classified``: the selected mode and whether it would run
        - 200 ``ignored``: event name this action does not handle
        - 400: Invalid payload
        - 401: Invalid signature (handled by dependency)
    """
    run_id_ctx.set(delivery.delivery_id)

    logger.info(
        "Received GitHub webhook",
        extra={"event_name": delivery.event_name, "delivery_id": delivery.delivery_id},
    )

    try:
        payload = json.loads(delivery.body)
    except json.JSONDecodeError as e:
        logger.warning(
            "Invalid JSON payload",
            extra={"error": str(e), "delivery_id": delivery.delivery_id},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        )
    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payload must be a JSON object",
        )

    try:
        event = GitHubEventParser().parse(
            delivery.event_name,
            payload,
            settings.trigger_inputs(),
            run_id=delivery.delivery_id,
        )
    except UnsupportedEventError:
        logger.debug(
            "Ignoring unsupported event type",
            extra={"event_name": delivery.event_name, "delivery_id": delivery.delivery_id},
        )
        return WebhookResponse(
            status="ignored",
            message=f"Event type '{delivery.event_name}' is not processed",
            delivery_id=delivery.delivery_id,
            event=delivery.event_name,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    mode = get_mode(event)
    mode_ctx.set(mode.name.value)
    should_trigger = mode.should_trigger(event)

    logger.info(
        "Classified GitHub event",
        extra={
            "event_name": delivery.event_name,
            "mode": mode.name.value,
            "should_trigger": should_trigger,
        },
    )

    return WebhookResponse(
        status="classified",
        message=mode.description,
        delivery_id=delivery.delivery_id,
        event=event.kind.value,
        mode=mode.name.value,
        description=mode.description,
        should_trigger=should_trigger,
        creates_tracking_comment=mode.creates_tracking_comment,
    )
