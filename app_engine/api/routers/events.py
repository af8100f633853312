"""Events router -- account and upload events from the Users service."""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app_engine.api.deps import get_services
from app_engine.api.rate_limit import event_limiter
from app_engine.config import settings
from app_engine.errors import envelope
from app_engine.services.registry import Services
from app_engine.webhooks import verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])


@router.post("/events")
async def receive_event(
    request: Request,
    services: Services = Depends(get_services),
) -> dict:
    """Apply a signed lifecycle event.

    Validates the X-Users-Signature header before touching the body.
    Rate-limited per client IP.
    """
    client_ip = request.client.host if request.client else "unknown"
    if not event_limiter.is_allowed(client_ip):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
            headers={"Retry-After": str(event_limiter.retry_after(client_ip))},
        )

    signature = request.headers.get("X-Users-Signature", "")
    body = await request.body()
    if not verify_signature(body, signature, settings.USERS_WEBHOOK_SECRET):
        logger.warning("Rejected event with bad signature from %s", client_ip)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid event signature",
        )

    try:
        event = json.loads(body)
    except ValueError:
        return envelope("Event body is not valid JSON", error=True)

    handled = await services.events.dispatch(event)
    if not handled:
        return envelope("Event ignored")
    return envelope(f"Event '{event['type']}' processed")
