"""Async Pluggy REST client.

One instance is built by the composition root (``app.core.runtime``) and
injected wherever Pluggy data is needed. ``has_pluggy_credentials`` is the
capability check: when it is False no client is built and callers skip their
work instead of failing.
"""

import logging
import time
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from app.core.config import Settings
from app.core.exceptions import (
    ConfigurationError,
    NotFoundError,
    ProviderError,
    ProviderPayloadError,
    TransientFetchError,
)
from app.schemas.pluggy import (
    PluggyAccount,
    PluggyConnectToken,
    PluggyConnectTokenOptions,
    PluggyCreditCardBill,
    PluggyIdentity,
    PluggyInvestment,
    PluggyInvestmentTransaction,
    PluggyItem,
    PluggyLoan,
    PluggyModel,
    PluggyPage,
    PluggyTransaction,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=PluggyModel)


def has_pluggy_credentials(settings: Settings) -> bool:
    return bool(settings.pluggy_client_id and settings.pluggy_client_secret)


class PluggyClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = "https://api.pluggy.ai",
        page_size: int = 500,
        api_key_ttl_seconds: int = 7000,
        webhook_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not client_id or not client_secret:
            raise ConfigurationError("Missing Pluggy credentials (client id / client secret)")
        self._client_id = client_id
        self._client_secret = client_secret
        self._page_size = page_size
        self._api_key_ttl = api_key_ttl_seconds
        self._webhook_url = webhook_url or None
        self._api_key: str | None = None
        self._api_key_expires_at = 0.0
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "PluggyClient":
        return cls(
            client_id=settings.pluggy_client_id,
            client_secret=settings.pluggy_client_secret,
            base_url=settings.pluggy_api_url,
            page_size=settings.pluggy_page_size,
            api_key_ttl_seconds=settings.pluggy_api_key_ttl_seconds,
            webhook_url=settings.pluggy_webhook_url,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # ─── Transport ────────────────────────────────────────────────────────

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransientFetchError(f"Pluggy {method} {path} timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise TransientFetchError(f"Pluggy {method} {path} failed: {exc}") from exc

        if resp.is_success:
            return resp
        detail = resp.text[:200]
        if resp.status_code == 404:
            raise NotFoundError(f"Pluggy {path} not found")
        if resp.status_code == 429 or resp.status_code >= 500:
            raise TransientFetchError(
                f"Pluggy {method} {path} returned {resp.status_code}: {detail}",
                status_code=resp.status_code,
            )
        raise ProviderError(
            f"Pluggy {method} {path} returned {resp.status_code}: {detail}",
            status_code=resp.status_code,
        )

    async def _get_api_key(self) -> str:
        if self._api_key and time.monotonic() < self._api_key_expires_at:
            return self._api_key
        resp = await self._send(
            "POST",
            "/auth",
            json={"clientId": self._client_id, "clientSecret": self._client_secret},
        )
        api_key = resp.json().get("apiKey")
        if not api_key:
            raise ProviderPayloadError("Pluggy /auth response has no apiKey")
        self._api_key = api_key
        self._api_key_expires_at = time.monotonic() + self._api_key_ttl
        logger.debug("Obtained new Pluggy API key")
        return api_key

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        api_key = await self._get_api_key()
        query = {k: v for k, v in (params or {}).items() if v is not None}
        resp = await self._send("GET", path, params=query, headers={"X-API-KEY": api_key})
        return resp.json()

    async def _post_json(self, path: str, body: dict[str, Any]) -> Any:
        api_key = await self._get_api_key()
        resp = await self._send("POST", path, json=body, headers={"X-API-KEY": api_key})
        return resp.json()

    @staticmethod
    def _parse(model: type[M], data: Any, path: str) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise ProviderPayloadError(f"Unexpected Pluggy payload from {path}: {exc}") from exc

    async def _get_page(
        self, model: type[M], path: str, params: dict[str, Any] | None = None
    ) -> PluggyPage[M]:
        return self._parse(PluggyPage[model], await self._get_json(path, params), path)

    async def _get_all_pages(
        self, model: type[M], path: str, params: dict[str, Any] | None = None
    ) -> list[M]:
        results: list[M] = []
        page_number = 1
        while True:
            page = await self._get_page(
                model, path, {**(params or {}), "page": page_number, "pageSize": self._page_size}
            )
            results.extend(page.results)
            total_pages = page.total_pages or 1
            if page_number >= total_pages or not page.results:
                return results
            page_number += 1

    # ─── Resources ────────────────────────────────────────────────────────

    async def fetch_item(self, item_id: str) -> PluggyItem:
        path = f"/items/{item_id}"
        return self._parse(PluggyItem, await self._get_json(path), path)

    async def fetch_accounts(self, item_id: str) -> list[PluggyAccount]:
        page = await self._get_page(PluggyAccount, "/accounts", {"itemId": item_id})
        return page.results

    async def fetch_transactions(
        self,
        account_id: str,
        from_: str | None = None,
        to: str | None = None,
        page: int | None = None,
        page_size: int | None = None,
    ) -> PluggyPage[PluggyTransaction]:
        return await self._get_page(
            PluggyTransaction,
            "/transactions",
            {"accountId": account_id, "from": from_, "to": to, "page": page, "pageSize": page_size},
        )

    async def fetch_all_transactions(
        self, account_id: str, from_: str | None = None, to: str | None = None
    ) -> list[PluggyTransaction]:
        return await self._get_all_pages(
            PluggyTransaction, "/transactions", {"accountId": account_id, "from": from_, "to": to}
        )

    async def fetch_credit_card_bills(self, account_id: str) -> list[PluggyCreditCardBill]:
        return await self._get_all_pages(PluggyCreditCardBill, "/bills", {"accountId": account_id})

    async def fetch_identity_by_item(self, item_id: str) -> PluggyIdentity | None:
        data = await self._get_json("/identity", {"itemId": item_id})
        if not data:
            return None
        return self._parse(PluggyIdentity, data, "/identity")

    async def fetch_investments(self, item_id: str) -> list[PluggyInvestment]:
        return await self._get_all_pages(PluggyInvestment, "/investments", {"itemId": item_id})

    async def fetch_investment_transactions(
        self, investment_id: str
    ) -> list[PluggyInvestmentTransaction]:
        return await self._get_all_pages(
            PluggyInvestmentTransaction, f"/investments/{investment_id}/transactions"
        )

    async def fetch_loans(self, item_id: str) -> list[PluggyLoan]:
        return await self._get_all_pages(PluggyLoan, "/loans", {"itemId": item_id})

    # ─── Connect ──────────────────────────────────────────────────────────

    async def create_connect_token(
        self,
        item_id: str | None = None,
        options: PluggyConnectTokenOptions | dict | None = None,
    ) -> PluggyConnectToken:
        """Token for the Pluggy Connect widget.

        Pass ``item_id`` to update an existing item instead of creating one. The
        configured webhook URL is used when ``options`` does not name one.
        """
        if isinstance(options, dict):
            options = PluggyConnectTokenOptions.model_validate(options)
        options = options or PluggyConnectTokenOptions()
        if options.webhook_url is None and self._webhook_url:
            options = options.model_copy(update={"webhook_url": self._webhook_url})

        body: dict[str, Any] = {}
        if item_id:
            body["itemId"] = item_id
        dumped = options.model_dump(by_alias=True, exclude_none=True)
        if dumped:
            body["options"] = dumped
        data = await self._post_json("/connect_token", body)
        token = self._parse(PluggyConnectToken, data, "/connect_token")
        logger.info("Created Pluggy connect token%s", f" for item {item_id}" if item_id else "")
        return token
