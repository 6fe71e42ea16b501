from fastapi import APIRouter, Depends, Response

from app.core.deps import get_gateway, get_runtime, require_provider
from app.core.runtime import SyncRuntime
from app.schemas.records import AccountRecord
from app.services.store import PersistenceGateway

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("")
async def list_accounts(
    item_id: str,
    from_db: bool = False,
    runtime: SyncRuntime = Depends(get_runtime),
):
    if from_db:
        return await runtime.gateway.accounts.get_by_parent(item_id)
    return await require_provider(runtime).fetch_accounts(item_id)


@router.post("", response_model=list[AccountRecord])
async def save_accounts(
    body: list[AccountRecord], gateway: PersistenceGateway = Depends(get_gateway)
):
    return await gateway.accounts.upsert_many(body)


@router.delete("/{account_id}", status_code=204)
async def delete_account(account_id: str, gateway: PersistenceGateway = Depends(get_gateway)):
    """Delete an account and its transactions and bills. 404 when unknown."""
    await gateway.delete_account(account_id)
    return Response(status_code=204)
