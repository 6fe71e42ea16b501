from fastapi import APIRouter, Depends

from app.core.deps import get_gateway, get_runtime, require_provider
from app.core.runtime import SyncRuntime
from app.schemas.records import InvestmentRecord
from app.services.store import PersistenceGateway

router = APIRouter(prefix="/investments", tags=["investments"])


@router.get("")
async def list_investments(
    item_id: str,
    from_db: bool = False,
    runtime: SyncRuntime = Depends(get_runtime),
):
    if from_db:
        return await runtime.gateway.investments.get_by_parent(item_id)
    return await require_provider(runtime).fetch_investments(item_id)


@router.get("/{investment_id}/transactions")
async def list_investment_transactions(
    investment_id: str,
    from_db: bool = False,
    runtime: SyncRuntime = Depends(get_runtime),
):
    if from_db:
        return await runtime.gateway.investment_transactions.get_by_parent(investment_id)
    return await require_provider(runtime).fetch_investment_transactions(investment_id)


@router.post("", response_model=list[InvestmentRecord])
async def save_investments(
    body: list[InvestmentRecord], gateway: PersistenceGateway = Depends(get_gateway)
):
    return await gateway.investments.upsert_many(body)
