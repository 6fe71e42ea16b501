from fastapi import APIRouter, Depends

from app.core.deps import get_gateway, get_runtime, require_provider
from app.core.runtime import SyncRuntime
from app.schemas.records import CreditCardBillRecord
from app.services.store import PersistenceGateway

router = APIRouter(prefix="/bills", tags=["bills"])


@router.get("")
async def list_bills(
    account_id: str,
    from_db: bool = False,
    runtime: SyncRuntime = Depends(get_runtime),
):
    if from_db:
        return await runtime.gateway.bills.get_by_parent(account_id)
    return await require_provider(runtime).fetch_credit_card_bills(account_id)


@router.post("", response_model=list[CreditCardBillRecord])
async def save_bills(
    body: list[CreditCardBillRecord], gateway: PersistenceGateway = Depends(get_gateway)
):
    return await gateway.bills.upsert_many(body)
