"""Pluggy webhook dispatcher.

Routes each event to one handler. ``dispatch`` never raises: handler errors are
logged and swallowed because Pluggy has already been answered and redelivery
of the same event is harmless.
"""

import logging

from app.core.exceptions import NotFoundError
from app.schemas.webhook import WebhookPayload
from app.services import mappers
from app.services.pluggy_client import PluggyClient
from app.services.store import PersistenceGateway
from app.services.sync import ItemSynchronizer

logger = logging.getLogger(__name__)

_ROUTES = {
    "item/created": "item_sync",
    "item/updated": "item_sync",
    "item/login_succeeded": "item_sync",
    "item/deleted": "item_deleted",
    "item/error": "item_status",
    "item/waiting_user_input": "item_status",
    "connector/status_updated": "connector",
    # Pluggy sends full transaction state on update too; both are plain upserts
    "transactions/created": "transactions_upsert",
    "transactions/updated": "transactions_upsert",
    "transactions/deleted": "transactions_deleted",
}

_PAYMENT_PREFIXES = (
    "payment_intent/",
    "payment_request/",
    "scheduled_payment/",
    "automatic_pix_payment/",
    "payment_refund/",
)


def route_for(event: str) -> str | None:
    """Handler category for an event name, or None when unhandled."""
    if event in _ROUTES:
        return _ROUTES[event]
    if event.startswith(_PAYMENT_PREFIXES):
        return "payment"
    return None


class WebhookDispatcher:
    def __init__(
        self,
        gateway: PersistenceGateway,
        provider: PluggyClient | None,
        synchronizer: ItemSynchronizer,
    ):
        self.gateway = gateway
        self.provider = provider
        self.synchronizer = synchronizer
        self._handlers = {
            "item_sync": self._handle_item_sync,
            "item_deleted": self._handle_item_deleted,
            "item_status": self._handle_item_status,
            "connector": self._handle_connector,
            "transactions_upsert": self._handle_transactions_upsert,
            "transactions_deleted": self._handle_transactions_deleted,
            "payment": self._handle_payment,
        }

    async def dispatch(self, payload: WebhookPayload) -> None:
        route = route_for(payload.event)
        if route is None:
            logger.warning("Unhandled Pluggy webhook event %s (%s)", payload.event, payload.event_id)
            return
        logger.info("Pluggy webhook %s (%s)", payload.event, payload.event_id)
        try:
            await self._handlers[route](payload)
        except Exception:
            logger.exception(
                "Pluggy webhook %s (%s) failed", payload.event, payload.event_id
            )

    def _provider_ready(self, payload: WebhookPayload) -> bool:
        if self.provider is None:
            logger.warning(
                "Pluggy not configured; ignoring %s (%s)", payload.event, payload.event_id
            )
            return False
        return True

    @staticmethod
    def _item_id(payload: WebhookPayload) -> str | None:
        item_id = payload.target_item_id
        if not item_id:
            logger.warning("Webhook %s (%s) has no item id", payload.event, payload.event_id)
        return item_id

    async def _refresh_item(self, item_id: str, payload: WebhookPayload) -> None:
        item = await self.provider.fetch_item(item_id)
        await self.gateway.items.upsert(mappers.map_item(item, payload.client_user_id))

    # ── item events ──────────────────────────────────────────────────────

    async def _handle_item_sync(self, payload: WebhookPayload) -> None:
        item_id = self._item_id(payload)
        if not item_id or not self._provider_ready(payload):
            return
        await self._refresh_item(item_id, payload)
        report = await self.synchronizer.sync_item(item_id)
        if report.errors:
            logger.warning("Item %s synced with %d errors", item_id, len(report.errors))

    async def _handle_item_deleted(self, payload: WebhookPayload) -> None:
        item_id = self._item_id(payload)
        if not item_id:
            return
        try:
            await self.gateway.delete_item(item_id)
        except NotFoundError:
            logger.info("Item %s already absent", item_id)

    async def _handle_item_status(self, payload: WebhookPayload) -> None:
        item_id = self._item_id(payload)
        if not item_id or not self._provider_ready(payload):
            return
        await self._refresh_item(item_id, payload)

    async def _handle_connector(self, payload: WebhookPayload) -> None:
        logger.info("Connector %s status updated: %s", payload.connector_id, payload.data)

    # ── transaction events ───────────────────────────────────────────────

    async def _handle_transactions_upsert(self, payload: WebhookPayload) -> None:
        if not self._provider_ready(payload):
            return
        if payload.account_id:
            account_ids = [payload.account_id]
        else:
            item_id = self._item_id(payload)
            if not item_id:
                return
            try:
                accounts = await self.provider.fetch_accounts(item_id)
            except NotFoundError:
                accounts = []
            account_ids = [a.id for a in accounts]

        wanted = set(payload.transaction_ids or [])
        for account_id in account_ids:
            # A failure skips only that account
            try:
                await self._upsert_account_transactions(account_id, wanted)
            except Exception:
                logger.exception(
                    "Transaction upsert failed for account %s (%s)", account_id, payload.event_id
                )

    async def _upsert_account_transactions(self, account_id: str, wanted: set[str]) -> None:
        try:
            transactions = await self.provider.fetch_all_transactions(account_id)
        except NotFoundError:
            logger.info("No transactions for account %s", account_id)
            return
        if wanted:
            transactions = [t for t in transactions if t.id in wanted]
        saved = await self.gateway.transactions.upsert_many(
            mappers.map_transaction(t, account_id) for t in transactions
        )
        logger.info("Upserted %d transactions for account %s", len(saved), account_id)

    async def _handle_transactions_deleted(self, payload: WebhookPayload) -> None:
        ids = payload.transaction_ids or []
        if not ids:
            return
        deleted = await self.gateway.transactions.delete_many(ids)
        logger.info("Deleted %d of %d transactions", deleted, len(ids))

    # ── payments ─────────────────────────────────────────────────────────

    async def _handle_payment(self, payload: WebhookPayload) -> None:
        logger.info(
            "Payment webhook %s received (%s); payments are not synced",
            payload.event, payload.event_id,
        )
