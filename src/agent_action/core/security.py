"""Webhook signature verification for inbound GitHub deliveries.

GitHub signs every delivery with HMAC-SHA256 over the raw body.
Reference: https://docs.github.com/en/webhooks/using-webhooks/validating-webhook-deliveries
"""
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from agent_action.config import Settings, get_settings

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


class WebhookSignatureError(Exception):
    """Raised when webhook signature verification fails."""


@dataclass(frozen=True)
class GitHubDelivery:
    """A webhook delivery whose signature has been checked."""

    body: bytes
    event_name: str
    delivery_id: str
    signature_verified: bool


def sign_payload(payload: bytes, secret: str) -> str:
    """Compute the ``X-Hub-Signature-256`` header value for a payload."""
    digest = hmac.new(
        key=secret.encode("utf-8"),
        msg=payload,
        digestmod=hashlib.sha256,
    ).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_github_signature(
    payload: bytes,
    signature_header: str | None,
    secret: str,
) -> bool:
    """
    Verify a GitHub webhook signature.

    Raises:
        WebhookSignatureError: If signature is missing, malformed, or invalid
    """
    if not signature_header:
        raise WebhookSignatureError("Missing X-Hub-Signature-256 header")

    if not signature_header.startswith(SIGNATURE_PREFIX):
        raise WebhookSignatureError("Invalid signature format")

    if not hmac.compare_digest(signature_header, sign_payload(payload, secret)):
        raise WebhookSignatureError("Signature mismatch")

    return True


def _missing_header(name: str) -> HTTPException:
    logger.warning("Missing webhook header", extra={"header": name})
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Missing {name} header",
    )


async def get_verified_delivery(
    request: Request,
    x_hub_signature_256: Annotated[str | None, Header()] = None,
    x_github_event: Annotated[str | None, Header()] = None,
    x_github_delivery: Annotated[str | None, Header()] = None,
    settings: Settings = Depends(get_settings),
) -> GitHubDelivery:
    """
    FastAPI dependency yielding a verified GitHub delivery.

    Signature checking is skipped outside production when no secret is
    configured, so local replays of captured payloads work.

    Raises:
        HTTPException 400: If the event or delivery header is missing
        HTTPException 401: If signature verification fails
        HTTPException 500: If production runs without a secret
    """
    if not x_github_event:
        raise _missing_header("X-GitHub-Event")
    if not x_github_delivery:
        raise _missing_header("X-GitHub-Delivery")

    body = await request.body()

    if not settings.github_webhook_secret:
        if settings.is_production:
            logger.error("Webhook secret not configured in production")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Server configuration error",
            )
        logger.warning("Webhook signature verification skipped (no secret configured)")
        return GitHubDelivery(body, x_github_event, x_github_delivery, signature_verified=False)

    try:
        verify_github_signature(body, x_hub_signature_256, settings.github_webhook_secret)
    except WebhookSignatureError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={
                "delivery_id": x_github_delivery,
                "event": x_github_event,
                "error": str(e),
            },
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Signature verification failed: {e}",
        ) from e

    return GitHubDelivery(body, x_github_event, x_github_delivery, signature_verified=True)
