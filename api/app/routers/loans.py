from fastapi import APIRouter, Depends

from app.core.deps import get_gateway, get_runtime, require_provider
from app.core.runtime import SyncRuntime
from app.schemas.records import LoanRecord
from app.services.store import PersistenceGateway

router = APIRouter(prefix="/loans", tags=["loans"])


@router.get("")
async def list_loans(
    item_id: str,
    from_db: bool = False,
    runtime: SyncRuntime = Depends(get_runtime),
):
    if from_db:
        return await runtime.gateway.loans.get_by_parent(item_id)
    return await require_provider(runtime).fetch_loans(item_id)


@router.post("", response_model=list[LoanRecord])
async def save_loans(body: list[LoanRecord], gateway: PersistenceGateway = Depends(get_gateway)):
    return await gateway.loans.upsert_many(body)
