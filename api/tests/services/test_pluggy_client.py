"""
PluggyClient against httpx.MockTransport: auth caching, paging and error mapping.
"""
import json

import httpx
import pytest

from app.core.config import Settings
from app.core.exceptions import (
    ConfigurationError,
    NotFoundError,
    ProviderError,
    ProviderPayloadError,
    TransientFetchError,
)
from app.services.pluggy_client import PluggyClient, has_pluggy_credentials


class PluggyStub:
    """Routes requests to canned responses and records what was asked."""

    def __init__(self, routes: dict | None = None):
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []
        self.auth_calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/auth":
            self.auth_calls += 1
            body = json.loads(request.content)
            assert body == {"clientId": "cid", "clientSecret": "secret"}
            return httpx.Response(200, json={"apiKey": f"key-{self.auth_calls}"})
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if callable(route):
            return route(request)
        # Fresh copy per request; a Response is consumed once it is read
        return httpx.Response(route.status_code, content=route.content, headers=route.headers)


def _client(stub: PluggyStub, **kwargs) -> PluggyClient:
    return PluggyClient("cid", "secret", transport=httpx.MockTransport(stub), **kwargs)


def _page(results, page=1, total_pages=1):
    return {"total": len(results), "totalPages": total_pages, "page": page, "results": results}


class TestConstruction:
    def test_missing_credentials_raise(self):
        with pytest.raises(ConfigurationError):
            PluggyClient("", "secret")

    def test_has_pluggy_credentials(self):
        assert has_pluggy_credentials(Settings(pluggy_client_id="a", pluggy_client_secret="b"))
        assert not has_pluggy_credentials(Settings(pluggy_client_id="a", pluggy_client_secret=""))


class TestAuth:
    @pytest.mark.asyncio
    async def test_api_key_is_cached_and_sent(self):
        stub = PluggyStub({"/items/IT1": httpx.Response(200, json={"id": "IT1", "status": "UPDATED"})})
        client = _client(stub)

        await client.fetch_item("IT1")
        await client.fetch_item("IT1")

        assert stub.auth_calls == 1
        assert stub.requests[-1].headers["X-API-KEY"] == "key-1"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_api_key_renewed_after_ttl(self):
        stub = PluggyStub({"/items/IT1": httpx.Response(200, json={"id": "IT1"})})
        client = _client(stub, api_key_ttl_seconds=0)

        await client.fetch_item("IT1")
        await client.fetch_item("IT1")

        assert stub.auth_calls == 2
        assert stub.requests[-1].headers["X-API-KEY"] == "key-2"
        await client.aclose()


class TestFetches:
    @pytest.mark.asyncio
    async def test_fetch_item_parses_camel_case(self):
        stub = PluggyStub({"/items/IT1": httpx.Response(200, json={
            "id": "IT1", "status": "UPDATED", "clientUserId": "u-1",
            "connector": {"id": 201, "name": "Banco", "imageUrl": "https://img"},
        })})
        item = await _client(stub).fetch_item("IT1")
        assert item.client_user_id == "u-1"
        assert item.connector.image_url == "https://img"

    @pytest.mark.asyncio
    async def test_fetch_accounts_sends_item_id(self):
        stub = PluggyStub({"/accounts": httpx.Response(200, json=_page(
            [{"id": "AC1", "type": "BANK", "name": "Conta"}]
        ))})
        accounts = await _client(stub).fetch_accounts("IT1")
        assert [a.id for a in accounts] == ["AC1"]
        assert stub.requests[-1].url.params["itemId"] == "IT1"

    @pytest.mark.asyncio
    async def test_fetch_transactions_single_page_with_filters(self):
        stub = PluggyStub({"/transactions": httpx.Response(200, json=_page(
            [{"id": "T1", "amount": 5, "type": "DEBIT", "date": "2024-03-05T00:00:00.000Z"}],
            page=2, total_pages=3,
        ))})
        page = await _client(stub).fetch_transactions("AC1", from_="2024-03-01", page=2)
        assert page.total_pages == 3
        assert page.results[0].id == "T1"
        params = stub.requests[-1].url.params
        assert params["accountId"] == "AC1"
        assert params["from"] == "2024-03-01"
        assert params["page"] == "2"
        assert "to" not in params

    @pytest.mark.asyncio
    async def test_fetch_all_transactions_walks_pages(self):
        def transactions(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            return httpx.Response(200, json=_page(
                [{"id": f"T{page}", "amount": 1, "type": "CREDIT"}], page=page, total_pages=3
            ))

        stub = PluggyStub({"/transactions": transactions})
        result = await _client(stub, page_size=1).fetch_all_transactions("AC1")
        assert [t.id for t in result] == ["T1", "T2", "T3"]
        assert stub.requests[-1].url.params["pageSize"] == "1"

    @pytest.mark.asyncio
    async def test_fetch_investment_transactions_walks_pages(self):
        def inv_tx(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            return httpx.Response(200, json=_page(
                [{"id": f"X{page}", "type": "BUY"}], page=page, total_pages=2
            ))

        stub = PluggyStub({"/investments/INV1/transactions": inv_tx})
        result = await _client(stub).fetch_investment_transactions("INV1")
        assert [t.id for t in result] == ["X1", "X2"]

    @pytest.mark.asyncio
    async def test_fetch_identity(self):
        stub = PluggyStub({"/identity": httpx.Response(200, json={"id": "ID1", "fullName": "Maria"})})
        identity = await _client(stub).fetch_identity_by_item("IT1")
        assert identity.full_name == "Maria"

    @pytest.mark.asyncio
    async def test_fetch_bills_walks_pages(self):
        def bills(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            return httpx.Response(200, json=_page([{"id": f"B{page}"}], page=page, total_pages=2))

        stub = PluggyStub({"/bills": bills})
        result = await _client(stub, page_size=1).fetch_credit_card_bills("AC2")
        assert [b.id for b in result] == ["B1", "B2"]
        assert stub.requests[-1].url.params["accountId"] == "AC2"
        assert stub.requests[-1].url.params["pageSize"] == "1"

    @pytest.mark.asyncio
    async def test_fetch_loans_walks_pages(self):
        def loans(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            return httpx.Response(200, json=_page([{"id": f"L{page}"}], page=page, total_pages=3))

        result = await _client(PluggyStub({"/loans": loans})).fetch_loans("IT1")
        assert [loan.id for loan in result] == ["L1", "L2", "L3"]

    @pytest.mark.asyncio
    async def test_fetch_loans_reads_cet(self):
        stub = PluggyStub({"/loans": httpx.Response(200, json=_page([{"id": "L1", "CET": 0.5}]))})
        loans = await _client(stub).fetch_loans("IT1")
        assert loans[0].cet == 0.5


class TestConnectToken:
    @staticmethod
    def _stub() -> PluggyStub:
        def connect_token(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.headers["X-API-KEY"] == "key-1"
            return httpx.Response(200, json={"accessToken": "ct-1"})

        return PluggyStub({"/connect_token": connect_token})

    @staticmethod
    def _body(stub: PluggyStub) -> dict:
        return json.loads(stub.requests[-1].content)

    @pytest.mark.asyncio
    async def test_new_item_without_options(self):
        stub = self._stub()
        token = await _client(stub).create_connect_token()
        assert token.access_token == "ct-1"
        assert self._body(stub) == {}

    @pytest.mark.asyncio
    async def test_forwards_item_and_options(self):
        stub = self._stub()
        await _client(stub).create_connect_token(
            "IT1",
            {"webhookUrl": "https://hooks/pluggy", "clientUserId": "u-1", "avoidDuplicates": True},
        )
        assert self._body(stub) == {
            "itemId": "IT1",
            "options": {
                "webhookUrl": "https://hooks/pluggy",
                "clientUserId": "u-1",
                "avoidDuplicates": True,
            },
        }

    @pytest.mark.asyncio
    async def test_configured_webhook_url_is_the_default(self):
        stub = self._stub()
        client = _client(stub, webhook_url="https://default/webhook")

        await client.create_connect_token(options={"clientUserId": "u-1"})
        assert self._body(stub)["options"] == {
            "webhookUrl": "https://default/webhook", "clientUserId": "u-1",
        }

        await client.create_connect_token(options={"webhookUrl": "https://other"})
        assert self._body(stub)["options"] == {"webhookUrl": "https://other"}

    @pytest.mark.asyncio
    async def test_missing_access_token_is_payload_error(self):
        stub = PluggyStub({"/connect_token": httpx.Response(200, json={"error": "nope"})})
        with pytest.raises(ProviderPayloadError):
            await _client(stub).create_connect_token()


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_404_is_not_found(self):
        with pytest.raises(NotFoundError):
            await _client(PluggyStub()).fetch_item("missing")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_throttling_and_server_errors_are_transient(self, status):
        stub = PluggyStub({"/loans": httpx.Response(status, text="busy")})
        with pytest.raises(TransientFetchError) as exc_info:
            await _client(stub).fetch_loans("IT1")
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_other_client_errors_are_provider_errors(self):
        stub = PluggyStub({"/loans": httpx.Response(403, json={"message": "forbidden"})})
        with pytest.raises(ProviderError) as exc_info:
            await _client(stub).fetch_loans("IT1")
        assert not isinstance(exc_info.value, TransientFetchError)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_network_failure_is_transient(self):
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        stub = PluggyStub({"/accounts": boom})
        with pytest.raises(TransientFetchError):
            await _client(stub).fetch_accounts("IT1")

    @pytest.mark.asyncio
    async def test_unexpected_shape_is_payload_error(self):
        stub = PluggyStub({"/accounts": httpx.Response(200, json=_page([{"id": "AC1"}]))})
        with pytest.raises(ProviderPayloadError):
            await _client(stub).fetch_accounts("IT1")
