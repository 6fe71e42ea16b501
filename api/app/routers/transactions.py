from datetime import date

from fastapi import APIRouter, Depends, Query, Response

from app.core.deps import get_gateway, get_runtime, require_provider
from app.core.runtime import SyncRuntime
from app.schemas.records import TransactionRecord
from app.services.store import PersistenceGateway

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("")
async def list_transactions(
    account_id: str,
    from_: date | None = Query(None, alias="from"),
    to: date | None = None,
    page: int | None = Query(None, ge=1),
    page_size: int | None = Query(None, ge=1, le=500),
    from_db: bool = False,
    limit: int | None = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    runtime: SyncRuntime = Depends(get_runtime),
):
    """One page from Pluggy, or stored rows (newest first) with ``from_db``."""
    if from_db:
        return await runtime.gateway.transactions.get_by_parent(
            account_id, limit=limit, offset=offset
        )
    return await require_provider(runtime).fetch_transactions(
        account_id,
        from_=from_.isoformat() if from_ else None,
        to=to.isoformat() if to else None,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=list[TransactionRecord])
async def save_transactions(
    body: list[TransactionRecord], gateway: PersistenceGateway = Depends(get_gateway)
):
    return await gateway.transactions.upsert_many(body)


@router.delete("/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: str, gateway: PersistenceGateway = Depends(get_gateway)
):
    await gateway.transactions.delete_by_key(transaction_id)
    return Response(status_code=204)
