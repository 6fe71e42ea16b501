"""
ItemSynchronizer with a fake Pluggy client and an in-memory store.
"""
import pytest

from app.core.exceptions import NotFoundError, ProviderError, TransientFetchError
from app.schemas.pluggy import PluggyIdentity, PluggyInvestment
from app.schemas.records import ItemRecord
from app.services.sync import ItemSynchronizer


@pytest.fixture
def synchronizer(fake_pluggy, gateway) -> ItemSynchronizer:
    return ItemSynchronizer(fake_pluggy, gateway)


async def _store_item(gateway, item_id: str = "IT1") -> None:
    await gateway.items.upsert(ItemRecord(item_id=item_id, status="UPDATED"))


class TestSyncItem:
    @pytest.mark.asyncio
    async def test_full_sync(self, synchronizer, gateway, fake_pluggy):
        await _store_item(gateway)

        report = await synchronizer.sync_item("IT1")

        assert report.ok
        assert (report.accounts, report.transactions, report.bills) == (2, 4, 1)
        assert (report.identities, report.investments, report.investment_transactions, report.loans) == (1, 1, 1, 1)
        assert {a.account_id for a in await gateway.accounts.get_by_parent("IT1")} == {"AC1", "AC2"}
        assert len(await gateway.transactions.get_by_parent("AC1")) == 3
        assert (await gateway.bills.get("B1")).account_id == "AC2"
        assert (await gateway.identities.get("ID1")).full_name == "Maria Silva"
        assert (await gateway.investment_transactions.get("IT-TX1")).investment_id == "INV1"
        assert (await gateway.loans.get("L1")).contract_number == "C-1"

    @pytest.mark.asyncio
    async def test_resync_is_idempotent(self, synchronizer, gateway):
        await _store_item(gateway)
        await synchronizer.sync_item("IT1")
        second = await synchronizer.sync_item("IT1")
        assert second.ok
        assert len(await gateway.transactions.get_by_parent()) == 4
        assert len(await gateway.accounts.get_by_parent()) == 2

    @pytest.mark.asyncio
    async def test_bills_only_fetched_for_credit_accounts(self, synchronizer, gateway, fake_pluggy):
        await _store_item(gateway)
        await synchronizer.sync_item("IT1")
        assert fake_pluggy.called("fetch_credit_card_bills") == ["AC2"]

    @pytest.mark.asyncio
    async def test_accounts_not_found_means_no_accounts(self, synchronizer, gateway, fake_pluggy):
        await _store_item(gateway)
        fake_pluggy.failures["fetch_accounts"] = NotFoundError("no accounts")

        report = await synchronizer.sync_item("IT1")

        assert report.ok
        assert report.accounts == 0
        assert fake_pluggy.called("fetch_all_transactions") == []
        assert report.loans == 1

    @pytest.mark.asyncio
    async def test_account_fetch_failure_propagates(self, synchronizer, gateway, fake_pluggy):
        await _store_item(gateway)
        fake_pluggy.failures["fetch_accounts"] = TransientFetchError("503", status_code=503)
        with pytest.raises(TransientFetchError):
            await synchronizer.sync_item("IT1")

    @pytest.mark.asyncio
    async def test_account_upsert_failure_skips_per_account_step(self, synchronizer, fake_pluggy):
        # Item row missing, so the accounts' foreign key fails
        report = await synchronizer.sync_item("IT1")

        assert report.errors[0].step == "accounts"
        assert fake_pluggy.called("fetch_all_transactions") == []
        # Later steps still ran
        assert fake_pluggy.called("fetch_loans") == ["IT1"]

    @pytest.mark.asyncio
    async def test_transaction_failure_isolated_per_account(self, synchronizer, gateway, fake_pluggy):
        await _store_item(gateway)
        fake_pluggy.failures[("fetch_all_transactions", "AC1")] = TransientFetchError("timeout")

        report = await synchronizer.sync_item("IT1")

        assert [(e.step, e.resource_id) for e in report.errors] == [("transactions", "AC1")]
        assert await gateway.transactions.get("T4") is not None
        assert await gateway.bills.get("B1") is not None
        assert report.identities == 1

    @pytest.mark.asyncio
    async def test_missing_identity_is_skipped(self, synchronizer, gateway, fake_pluggy):
        await _store_item(gateway)
        fake_pluggy.identities.clear()

        report = await synchronizer.sync_item("IT1")

        assert report.ok
        assert report.identities == 0
        assert report.investments == 1

    @pytest.mark.asyncio
    async def test_changed_identity_id_keeps_one_identity(self, synchronizer, gateway, fake_pluggy):
        await _store_item(gateway)
        await synchronizer.sync_item("IT1")
        fake_pluggy.identities["IT1"] = PluggyIdentity.model_validate({"id": "ID2", "fullName": "Maria S."})

        report = await synchronizer.sync_item("IT1")

        assert report.ok
        rows = await gateway.identities.get_by_parent("IT1")
        assert [(r.identity_id, r.full_name) for r in rows] == [("ID2", "Maria S.")]

    @pytest.mark.asyncio
    async def test_investment_transactions_isolated_per_investment(self, synchronizer, gateway, fake_pluggy):
        await _store_item(gateway)
        fake_pluggy.investments["IT1"].append(PluggyInvestment.model_validate({"id": "INV2", "name": "Fundo"}))
        fake_pluggy.failures[("fetch_investment_transactions", "INV1")] = ProviderError("bad", status_code=400)

        report = await synchronizer.sync_item("IT1")

        assert report.investments == 2
        assert [(e.step, e.resource_id) for e in report.errors] == [("investment_transactions", "INV1")]
        assert fake_pluggy.called("fetch_investment_transactions") == ["INV1", "INV2"]

    @pytest.mark.asyncio
    async def test_loan_failure_does_not_affect_other_steps(self, synchronizer, gateway, fake_pluggy):
        await _store_item(gateway)
        fake_pluggy.failures["fetch_loans"] = TransientFetchError("429", status_code=429)

        report = await synchronizer.sync_item("IT1")

        assert [e.step for e in report.errors] == ["loans"]
        assert report.transactions == 4
        assert report.investments == 1

    @pytest.mark.asyncio
    async def test_without_provider_returns_empty_report(self, gateway):
        report = await ItemSynchronizer(None, gateway).sync_item("IT1")
        assert report.ok
        assert report.accounts == 0
