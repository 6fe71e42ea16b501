"""Decides when an accepted webhook is processed relative to the HTTP response.

- ``background``: FastAPI BackgroundTasks, runs after the 200 is sent
- ``celery``: handed to a worker through Redis
- ``inline``: awaited before responding
"""

import asyncio
import logging

from fastapi import BackgroundTasks

from app.schemas.webhook import WebhookPayload
from app.services.webhook import WebhookDispatcher
from app.worker import celery_app

logger = logging.getLogger(__name__)


async def submit_webhook_event(
    payload: WebhookPayload,
    dispatcher: WebhookDispatcher,
    background_tasks: BackgroundTasks,
    mode: str = "background",
) -> None:
    if mode == "inline":
        await dispatcher.dispatch(payload)
    elif mode == "celery":
        process_webhook_event.delay(payload.model_dump(by_alias=True, exclude_none=True))
        logger.debug("Queued webhook %s (%s) for a worker", payload.event, payload.event_id)
    else:
        background_tasks.add_task(dispatcher.dispatch, payload)


async def _process(body: dict) -> None:
    from app.core.config import settings
    from app.core.runtime import sync_runtime

    payload = WebhookPayload.model_validate(body)
    async with sync_runtime(settings) as runtime:
        await runtime.dispatcher.dispatch(payload)


@celery_app.task(name="app.services.webhook_queue.process_webhook_event")
def process_webhook_event(body: dict):
    """Run one webhook through the dispatcher inside a worker."""
    asyncio.run(_process(body))
