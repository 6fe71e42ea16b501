"""Persistence gateway: idempotent upserts keyed on natural ids.

Each ``RecordGateway`` wraps one table. Writes use ``INSERT ... ON CONFLICT
(natural_key) DO UPDATE`` so replaying the same record is always safe and the
last write wins. Every call opens its own session and commits on its own.
"""

import logging
import uuid
from typing import Generic, Iterable, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import NotFoundError, PersistenceError
from app.models.pluggy import (
    Account,
    CreditCardBill,
    Identity,
    Investment,
    InvestmentTransaction,
    Item,
    Loan,
    Transaction,
)
from app.schemas.records import (
    AccountRecord,
    CreditCardBillRecord,
    IdentityRecord,
    InvestmentRecord,
    InvestmentTransactionRecord,
    ItemRecord,
    LoanRecord,
    Record,
    TransactionRecord,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

# Timestamps the database fills in when a record leaves them empty
_DB_TIMESTAMPS = ("created_at", "updated_at")

# asyncpg refuses statements with more bind parameters than this
MAX_BIND_PARAMS = 32767


def _error_code(exc: SQLAlchemyError) -> str | None:
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode", "sqlite_errorname"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    return getattr(exc, "code", None)


def _persistence_error(action: str, table: str, exc: SQLAlchemyError) -> PersistenceError:
    message = f"Failed to {action} {table}: {getattr(exc, 'orig', None) or exc}"
    return PersistenceError(message, code=_error_code(exc))


class RecordGateway(Generic[R]):
    """Upsert/read/delete access to one table, keyed by its natural id."""

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        model,
        record_cls: type[R],
        max_bind_params: int = MAX_BIND_PARAMS,
    ):
        self._sessionmaker = sessionmaker
        self.model = model
        self.record_cls = record_cls
        self.key = model.NATURAL_KEY
        self.parent_key = model.PARENT_KEY
        self.max_bind_params = max_bind_params

    @property
    def table(self) -> str:
        return self.model.__tablename__

    # ── helpers ──────────────────────────────────────────────────────────

    def _dedupe(self, records: Iterable[R]) -> list[R]:
        """One record per natural key, the last one seen wins.

        ON CONFLICT DO UPDATE cannot touch the same row twice in one statement.
        """
        latest: dict[str, R] = {}
        for record in records:
            latest[getattr(record, self.key)] = record
        return list(latest.values())

    def _chunks(self, rows: list[dict]) -> list[list[dict]]:
        size = max(1, self.max_bind_params // len(rows[0]))
        return [rows[i:i + size] for i in range(0, len(rows), size)]

    async def _before_upsert(self, session: AsyncSession, records: list[R]) -> None:
        """Hook run inside the upsert transaction, before any row is written."""

    def _rows(self, records: list[R]) -> list[dict]:
        rows = [r.model_dump() for r in records]
        # Multi-row VALUES need identical keys; keep a timestamp only if every row has one
        for ts in _DB_TIMESTAMPS:
            if any(row.get(ts) is None for row in rows):
                for row in rows:
                    row.pop(ts, None)
        for row in rows:
            row["id"] = uuid.uuid4()
        return rows

    def _upsert_statement(self, session: AsyncSession, rows: list[dict]):
        dialect = session.bind.dialect.name
        insert = sqlite_insert if dialect == "sqlite" else pg_insert
        stmt = insert(self.model).values(rows)
        set_ = {
            col: stmt.excluded[col]
            for col in rows[0]
            if col not in ("id", self.key, "created_at")
        }
        if "updated_at" not in set_:
            set_["updated_at"] = func.now()
        return (
            stmt.on_conflict_do_update(index_elements=[self.key], set_=set_)
            .returning(self.model)
        )

    # ── writes ───────────────────────────────────────────────────────────

    async def upsert(self, record: R) -> R:
        rows = await self.upsert_many([record])
        return rows[0]

    async def upsert_many(self, records: Iterable[R]) -> list[R]:
        """Upsert a batch in one transaction, split so no statement exceeds the bind limit."""
        records = self._dedupe(records)
        if not records:
            return []
        rows = self._rows(records)
        out: list[R] = []
        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    await self._before_upsert(session, records)
                    for chunk in self._chunks(rows):
                        result = await session.execute(
                            self._upsert_statement(session, chunk),
                            execution_options={"populate_existing": True},
                        )
                        out.extend(
                            self.record_cls.model_validate(row) for row in result.scalars().all()
                        )
        except SQLAlchemyError as exc:
            err = _persistence_error("upsert", self.table, exc)
            logger.error("%s (%d rows)", err, len(rows))
            raise err from exc
        logger.debug("Upserted %d %s", len(out), self.table)
        return out

    async def delete_by_key(self, key: str) -> None:
        """Delete one row. Raises NotFoundError when nothing matched."""
        column = getattr(self.model, self.key)
        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    result = await session.execute(delete(self.model).where(column == key))
        except SQLAlchemyError as exc:
            err = _persistence_error("delete", self.table, exc)
            logger.error("%s", err)
            raise err from exc
        if result.rowcount == 0:
            raise NotFoundError(f"{self.table}.{self.key}={key} not found")

    async def delete_many(self, keys: Iterable[str]) -> int:
        keys = list(keys)
        if not keys:
            return 0
        column = getattr(self.model, self.key)
        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    result = await session.execute(delete(self.model).where(column.in_(keys)))
        except SQLAlchemyError as exc:
            err = _persistence_error("delete", self.table, exc)
            logger.error("%s", err)
            raise err from exc
        return result.rowcount

    # ── reads ────────────────────────────────────────────────────────────

    async def get(self, key: str) -> R | None:
        column = getattr(self.model, self.key)
        try:
            async with self._sessionmaker() as session:
                row = (
                    await session.execute(select(self.model).where(column == key))
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise _persistence_error("read", self.table, exc) from exc
        return self.record_cls.model_validate(row) if row else None

    async def get_by_parent(
        self, parent_key: str | None = None, limit: int | None = None, offset: int = 0
    ) -> list[R]:
        """Rows under ``parent_key`` (all rows when None), newest first."""
        query = select(self.model)
        if parent_key is not None:
            query = query.where(getattr(self.model, self.parent_key) == parent_key)
        query = query.order_by(self.model.created_at.desc(), self.model.id).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        try:
            async with self._sessionmaker() as session:
                rows = (await session.execute(query)).scalars().all()
        except SQLAlchemyError as exc:
            raise _persistence_error("read", self.table, exc) from exc
        return [self.record_cls.model_validate(r) for r in rows]


class IdentityGateway(RecordGateway[IdentityRecord]):
    """Identities are one per item: a new identity id replaces the item's old row."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        super().__init__(sessionmaker, Identity, IdentityRecord)

    def _dedupe(self, records: Iterable[IdentityRecord]) -> list[IdentityRecord]:
        latest: dict[str, IdentityRecord] = {}
        for record in super()._dedupe(records):
            latest[record.item_id] = record
        return list(latest.values())

    async def _before_upsert(self, session: AsyncSession, records: list[IdentityRecord]) -> None:
        for record in records:
            result = await session.execute(
                delete(Identity).where(
                    Identity.item_id == record.item_id,
                    Identity.identity_id != record.identity_id,
                )
            )
            if result.rowcount:
                logger.info(
                    "Replaced identity for item %s with %s", record.item_id, record.identity_id
                )


class PersistenceGateway:
    """All record gateways plus the item-level cascade delete."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self.sessionmaker = sessionmaker
        self.items: RecordGateway[ItemRecord] = RecordGateway(sessionmaker, Item, ItemRecord)
        self.accounts: RecordGateway[AccountRecord] = RecordGateway(sessionmaker, Account, AccountRecord)
        self.transactions: RecordGateway[TransactionRecord] = RecordGateway(
            sessionmaker, Transaction, TransactionRecord
        )
        self.bills: RecordGateway[CreditCardBillRecord] = RecordGateway(
            sessionmaker, CreditCardBill, CreditCardBillRecord
        )
        self.identities = IdentityGateway(sessionmaker)
        self.investments: RecordGateway[InvestmentRecord] = RecordGateway(
            sessionmaker, Investment, InvestmentRecord
        )
        self.investment_transactions: RecordGateway[InvestmentTransactionRecord] = RecordGateway(
            sessionmaker, InvestmentTransaction, InvestmentTransactionRecord
        )
        self.loans: RecordGateway[LoanRecord] = RecordGateway(sessionmaker, Loan, LoanRecord)

    async def delete_item(self, item_id: str) -> None:
        """Delete an item and everything under it, children first, in one transaction.

        Raises NotFoundError if the item row itself did not exist.
        """
        account_ids = select(Account.account_id).where(Account.item_id == item_id)
        investment_ids = select(Investment.investment_id).where(Investment.item_id == item_id)
        try:
            async with self.sessionmaker() as session:
                async with session.begin():
                    await session.execute(
                        delete(InvestmentTransaction).where(
                            InvestmentTransaction.investment_id.in_(investment_ids)
                        )
                    )
                    await session.execute(delete(Investment).where(Investment.item_id == item_id))
                    await session.execute(delete(Loan).where(Loan.item_id == item_id))
                    await session.execute(delete(Identity).where(Identity.item_id == item_id))
                    await session.execute(
                        delete(CreditCardBill).where(CreditCardBill.account_id.in_(account_ids))
                    )
                    await session.execute(
                        delete(Transaction).where(Transaction.account_id.in_(account_ids))
                    )
                    await session.execute(delete(Account).where(Account.item_id == item_id))
                    result = await session.execute(delete(Item).where(Item.item_id == item_id))
        except SQLAlchemyError as exc:
            err = _persistence_error("delete", "items", exc)
            logger.error("%s", err)
            raise err from exc
        if result.rowcount == 0:
            raise NotFoundError(f"items.item_id={item_id} not found")
        logger.info("Deleted item %s and its dependent rows", item_id)

    async def delete_account(self, account_id: str) -> None:
        """Delete an account with its transactions and bills in one transaction."""
        try:
            async with self.sessionmaker() as session:
                async with session.begin():
                    await session.execute(
                        delete(CreditCardBill).where(CreditCardBill.account_id == account_id)
                    )
                    await session.execute(
                        delete(Transaction).where(Transaction.account_id == account_id)
                    )
                    result = await session.execute(
                        delete(Account).where(Account.account_id == account_id)
                    )
        except SQLAlchemyError as exc:
            err = _persistence_error("delete", "accounts", exc)
            logger.error("%s", err)
            raise err from exc
        if result.rowcount == 0:
            raise NotFoundError(f"accounts.account_id={account_id} not found")
