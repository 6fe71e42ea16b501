"""Pluggy item sync: fetch every resource under an item and upsert it.

Steps after the account upsert are isolated from each other: a failure is
logged, recorded on the ``SyncReport`` and the next step still runs. Replaying
a sync is always safe because every write is an upsert on the natural key.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from app.core.exceptions import NotFoundError
from app.services import mappers
from app.services.pluggy_client import PluggyClient
from app.services.store import PersistenceGateway
from app.worker import celery_app

logger = logging.getLogger(__name__)


@dataclass
class SyncError:
    step: str
    resource_id: str
    message: str


@dataclass
class SyncReport:
    item_id: str
    accounts: int = 0
    transactions: int = 0
    bills: int = 0
    identities: int = 0
    investments: int = 0
    investment_transactions: int = 0
    loans: int = 0
    errors: list[SyncError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def record_error(self, step: str, resource_id: str, exc: Exception) -> None:
        logger.error("Sync step %s failed for %s: %s", step, resource_id, exc)
        self.errors.append(SyncError(step=step, resource_id=resource_id, message=str(exc)))


class ItemSynchronizer:
    def __init__(self, provider: PluggyClient | None, gateway: PersistenceGateway):
        self.provider = provider
        self.gateway = gateway

    async def sync_item(self, item_id: str) -> SyncReport:
        """Sync accounts, transactions, bills, identity, investments and loans.

        Only an account fetch failure other than 404 propagates.
        """
        report = SyncReport(item_id=item_id)
        if self.provider is None:
            logger.warning("Pluggy not configured; skipping sync of item %s", item_id)
            return report

        logger.info("Syncing Pluggy item %s", item_id)
        try:
            accounts = await self.provider.fetch_accounts(item_id)
        except NotFoundError:
            logger.info("No accounts found for item %s", item_id)
            accounts = []

        try:
            saved = await self.gateway.accounts.upsert_many(
                mappers.map_account(a, item_id) for a in accounts
            )
            report.accounts = len(saved)
        except Exception as exc:
            report.record_error("accounts", item_id, exc)
        else:
            for account in accounts:
                await self._sync_account(account, report)

        await self._sync_identity(item_id, report)
        await self._sync_investments(item_id, report)
        await self._sync_loans(item_id, report)

        logger.info(
            "Item %s synced: %d accounts, %d transactions, %d bills, %d investments, "
            "%d loans, %d errors",
            item_id, report.accounts, report.transactions, report.bills,
            report.investments, report.loans, len(report.errors),
        )
        return report

    async def _sync_account(self, account, report: SyncReport) -> None:
        try:
            transactions = await self.provider.fetch_all_transactions(account.id)
            saved = await self.gateway.transactions.upsert_many(
                mappers.map_transaction(t, account.id) for t in transactions
            )
            report.transactions += len(saved)
        except NotFoundError:
            logger.info("No transactions for account %s", account.id)
        except Exception as exc:
            report.record_error("transactions", account.id, exc)

        if account.type != "CREDIT":
            return
        try:
            bills = await self.provider.fetch_credit_card_bills(account.id)
            saved = await self.gateway.bills.upsert_many(
                mappers.map_bill(b, account.id) for b in bills
            )
            report.bills += len(saved)
        except NotFoundError:
            logger.info("No bills for account %s", account.id)
        except Exception as exc:
            report.record_error("bills", account.id, exc)

    async def _sync_identity(self, item_id: str, report: SyncReport) -> None:
        try:
            identity = await self.provider.fetch_identity_by_item(item_id)
            if identity is None:
                return
            await self.gateway.identities.upsert(mappers.map_identity(identity, item_id))
            report.identities += 1
        except NotFoundError:
            logger.info("No identity for item %s", item_id)
        except Exception as exc:
            report.record_error("identity", item_id, exc)

    async def _sync_investments(self, item_id: str, report: SyncReport) -> None:
        try:
            investments = await self.provider.fetch_investments(item_id)
            saved = await self.gateway.investments.upsert_many(
                mappers.map_investment(i, item_id) for i in investments
            )
            report.investments += len(saved)
        except NotFoundError:
            logger.info("No investments for item %s", item_id)
            return
        except Exception as exc:
            report.record_error("investments", item_id, exc)
            return

        for investment in investments:
            try:
                transactions = await self.provider.fetch_investment_transactions(investment.id)
                saved = await self.gateway.investment_transactions.upsert_many(
                    mappers.map_investment_transaction(t, investment.id) for t in transactions
                )
                report.investment_transactions += len(saved)
            except NotFoundError:
                logger.info("No transactions for investment %s", investment.id)
            except Exception as exc:
                report.record_error("investment_transactions", investment.id, exc)

    async def _sync_loans(self, item_id: str, report: SyncReport) -> None:
        try:
            loans = await self.provider.fetch_loans(item_id)
            saved = await self.gateway.loans.upsert_many(
                mappers.map_loan(loan, item_id) for loan in loans
            )
            report.loans += len(saved)
        except NotFoundError:
            logger.info("No loans for item %s", item_id)
        except Exception as exc:
            report.record_error("loans", item_id, exc)


# ─── Celery tasks ─────────────────────────────────────────────────────────────


async def _sync_one(item_id: str) -> SyncReport:
    from app.core.config import settings
    from app.core.runtime import sync_runtime

    async with sync_runtime(settings) as runtime:
        return await runtime.synchronizer.sync_item(item_id)


async def _sync_all() -> list[SyncReport]:
    from app.core.config import settings
    from app.core.runtime import sync_runtime

    reports = []
    async with sync_runtime(settings) as runtime:
        items = await runtime.gateway.items.get_by_parent()
        for item in items:
            try:
                reports.append(await runtime.synchronizer.sync_item(item.item_id))
            except Exception:
                logger.exception("Scheduled sync failed for item %s", item.item_id)
    return reports


@celery_app.task(name="app.services.sync.sync_all_items")
def sync_all_items():
    """Sync every stored Pluggy item. Scheduled daily by Celery beat."""
    logger.info("Starting scheduled sync for all Pluggy items")
    reports = asyncio.run(_sync_all())
    failed = sum(1 for r in reports if not r.ok)
    logger.info("Scheduled sync finished: %d items, %d with errors", len(reports), failed)
    return {"items": len(reports), "with_errors": failed}


@celery_app.task(name="app.services.sync.sync_item")
def sync_item(item_id: str):
    """Sync a single Pluggy item on demand."""
    report = asyncio.run(_sync_one(item_id))
    return {"item_id": item_id, "errors": len(report.errors)}
