"""Inbound Pluggy webhook envelope."""
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from app.core.exceptions import MalformedRequestError


class WebhookPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    event: str
    event_id: str
    item_id: str | None = None
    id: str | None = None
    account_id: str | None = None
    transaction_ids: list[str] | None = None
    connector_id: int | str | None = None
    client_user_id: str | None = None
    triggered_by: str | None = None
    error: Any = None
    data: Any = None
    # Payment events
    payment_intent_id: str | None = None
    payment_request_id: str | None = None
    scheduled_payment_id: str | None = None
    automatic_pix_payment_id: str | None = None
    payment_refund_id: str | None = None

    @property
    def target_item_id(self) -> str | None:
        return self.item_id or self.id


class WebhookAck(BaseModel):
    received: bool = True
    event: str
    event_id: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def parse_webhook_payload(body: Any) -> WebhookPayload:
    """Validate a decoded JSON body. Raises MalformedRequestError."""
    if not isinstance(body, dict):
        raise MalformedRequestError("Webhook body must be a JSON object")
    for key in ("event", "eventId"):
        if not isinstance(body.get(key), str):
            raise MalformedRequestError(f"Webhook body is missing string field '{key}'")
    try:
        return WebhookPayload.model_validate(body)
    except ValidationError as exc:
        raise MalformedRequestError(f"Invalid webhook body: {exc.errors()[0]['msg']}") from exc
