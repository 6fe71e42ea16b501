import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from app.core.config import settings
from app.core.deps import get_dispatcher
from app.core.exceptions import MalformedRequestError
from app.core.rate_limit import limiter
from app.schemas.webhook import WebhookAck, parse_webhook_payload
from app.services.webhook import WebhookDispatcher
from app.services.webhook_queue import submit_webhook_event

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


@router.post("/webhook", response_model=WebhookAck)
@limiter.exempt
async def pluggy_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
):
    """Acknowledge a Pluggy notification and hand it to the dispatcher."""
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Webhook body must be valid JSON")
    try:
        payload = parse_webhook_payload(body)
    except MalformedRequestError as exc:
        logger.warning("Rejected webhook: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))

    await submit_webhook_event(payload, dispatcher, background_tasks, settings.webhook_processing)
    return WebhookAck(event=payload.event, event_id=payload.event_id)
