"""
Shared fixtures: an in-memory SQLite store and a fake Pluggy client.

Run with:
    cd api && python -m pytest tests -v
"""
import asyncio
import os

# Settings are read at import time; point them at SQLite before anything imports app.*
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["PLUGGY_CLIENT_ID"] = ""
os.environ["PLUGGY_CLIENT_SECRET"] = ""
os.environ["WEBHOOK_PROCESSING"] = "background"

import pytest
import pytest_asyncio
from sqlalchemy.pool import NullPool, StaticPool

from app.core.database import Base, create_engine_for, create_session_factory
from app.core.exceptions import NotFoundError
from app.models import pluggy as _models  # noqa: F401  registers tables
from app.schemas.pluggy import (
    PluggyAccount,
    PluggyConnectToken,
    PluggyCreditCardBill,
    PluggyIdentity,
    PluggyInvestment,
    PluggyInvestmentTransaction,
    PluggyItem,
    PluggyLoan,
    PluggyPage,
    PluggyTransaction,
)
from app.services.store import PersistenceGateway


class FakePluggy:
    """In-memory stand-in for PluggyClient.

    ``failures`` maps a method name, or ``(method name, key)``, to the exception
    that call should raise. Unknown items and identities raise NotFoundError.
    """

    def __init__(self):
        self.items: dict[str, PluggyItem] = {}
        self.accounts: dict[str, list[PluggyAccount]] = {}
        self.transactions: dict[str, list[PluggyTransaction]] = {}
        self.bills: dict[str, list[PluggyCreditCardBill]] = {}
        self.identities: dict[str, PluggyIdentity] = {}
        self.investments: dict[str, list[PluggyInvestment]] = {}
        self.investment_transactions: dict[str, list[PluggyInvestmentTransaction]] = {}
        self.loans: dict[str, list[PluggyLoan]] = {}
        self.failures: dict = {}
        self.calls: list[tuple[str, str]] = []
        self.connect_token_options = None
        self.closed = False

    def _record(self, name: str, key: str) -> None:
        self.calls.append((name, key))
        exc = self.failures.get((name, key)) or self.failures.get(name)
        if exc is not None:
            raise exc

    def called(self, name: str) -> list[str]:
        return [key for n, key in self.calls if n == name]

    def seed(self, item_id: str = "IT1") -> "FakePluggy":
        """One item with a BANK and a CREDIT account and one of everything else."""
        self.items[item_id] = PluggyItem.model_validate({
            "id": item_id,
            "status": "UPDATED",
            "clientUserId": "user-1",
            "connector": {"id": 201, "name": "Banco Teste", "imageUrl": "https://img/201.png"},
            "createdAt": "2024-01-01T10:00:00.000Z",
            "updatedAt": "2024-03-05T08:00:00.000Z",
        })
        self.accounts[item_id] = [
            PluggyAccount.model_validate(
                {"id": "AC1", "type": "BANK", "subtype": "CHECKING_ACCOUNT", "name": "Conta", "balance": 1500.25}
            ),
            PluggyAccount.model_validate(
                {"id": "AC2", "type": "CREDIT", "subtype": "CREDIT_CARD", "name": "Cartao", "balance": -320.0}
            ),
        ]
        self.transactions["AC1"] = [
            PluggyTransaction.model_validate(
                {"id": f"T{n}", "date": f"2024-03-0{n}T12:00:00.000Z", "description": f"tx {n}",
                 "amount": 10.0 * n, "type": "DEBIT", "status": "POSTED"}
            )
            for n in (1, 2, 3)
        ]
        self.transactions["AC2"] = [
            PluggyTransaction.model_validate(
                {"id": "T4", "date": "2024-03-04", "amount": 99.9, "type": "DEBIT"}
            )
        ]
        self.bills["AC2"] = [
            PluggyCreditCardBill.model_validate(
                {"id": "B1", "dueDate": "2024-04-10T00:00:00.000Z", "totalAmount": 320.0}
            )
        ]
        self.identities[item_id] = PluggyIdentity.model_validate(
            {"id": "ID1", "fullName": "Maria Silva", "birthDate": "1990-05-20T00:00:00.000Z"}
        )
        self.investments[item_id] = [
            PluggyInvestment.model_validate(
                {"id": "INV1", "name": "CDB Banco Teste", "type": "FIXED_INCOME", "annualRate": 12.5}
            )
        ]
        self.investment_transactions["INV1"] = [
            PluggyInvestmentTransaction.model_validate(
                {"id": "IT-TX1", "date": "2024-02-01", "type": "BUY", "amount": 1000.0}
            )
        ]
        self.loans[item_id] = [
            PluggyLoan.model_validate({"id": "L1", "contractNumber": "C-1", "CET": 0.21})
        ]
        return self

    async def fetch_item(self, item_id):
        self._record("fetch_item", item_id)
        if item_id not in self.items:
            raise NotFoundError(f"Pluggy /items/{item_id} not found")
        return self.items[item_id]

    async def fetch_accounts(self, item_id):
        self._record("fetch_accounts", item_id)
        return list(self.accounts.get(item_id, []))

    async def fetch_transactions(self, account_id, from_=None, to=None, page=None, page_size=None):
        self._record("fetch_transactions", account_id)
        results = self.transactions.get(account_id, [])
        return PluggyPage[PluggyTransaction](total=len(results), total_pages=1, page=1, results=results)

    async def fetch_all_transactions(self, account_id, from_=None, to=None):
        self._record("fetch_all_transactions", account_id)
        return list(self.transactions.get(account_id, []))

    async def fetch_credit_card_bills(self, account_id):
        self._record("fetch_credit_card_bills", account_id)
        return list(self.bills.get(account_id, []))

    async def fetch_identity_by_item(self, item_id):
        self._record("fetch_identity_by_item", item_id)
        if item_id not in self.identities:
            raise NotFoundError(f"Pluggy /identity for {item_id} not found")
        return self.identities[item_id]

    async def fetch_investments(self, item_id):
        self._record("fetch_investments", item_id)
        return list(self.investments.get(item_id, []))

    async def fetch_investment_transactions(self, investment_id):
        self._record("fetch_investment_transactions", investment_id)
        return list(self.investment_transactions.get(investment_id, []))

    async def fetch_loans(self, item_id):
        self._record("fetch_loans", item_id)
        return list(self.loans.get(item_id, []))

    async def create_connect_token(self, item_id=None, options=None):
        self._record("create_connect_token", item_id or "")
        self.connect_token_options = options
        return PluggyConnectToken(access_token=f"token-{item_id or 'new'}")

    async def aclose(self):
        self.closed = True


async def _create_schema(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def fake_pluggy() -> FakePluggy:
    return FakePluggy().seed()


@pytest_asyncio.fixture
async def sessionmaker():
    """Fresh in-memory database per test; StaticPool keeps the one connection alive."""
    engine = create_engine_for(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await _create_schema(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def gateway(sessionmaker) -> PersistenceGateway:
    return PersistenceGateway(sessionmaker)


@pytest.fixture
def file_sessionmaker(tmp_path):
    """File-backed database for sync tests that run the app on TestClient's own loop."""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'pluggy.db'}", poolclass=NullPool)
    asyncio.run(_create_schema(engine))
    yield create_session_factory(engine)
    asyncio.run(engine.dispose())
