from fastapi import APIRouter, Depends, HTTPException

from app.core.deps import get_gateway, get_runtime, require_provider
from app.core.runtime import SyncRuntime
from app.schemas.records import IdentityRecord
from app.services.store import PersistenceGateway

router = APIRouter(prefix="/identity", tags=["identity"])


@router.get("")
async def get_identity(
    item_id: str,
    from_db: bool = False,
    runtime: SyncRuntime = Depends(get_runtime),
):
    if from_db:
        rows = await runtime.gateway.identities.get_by_parent(item_id, limit=1)
        identity = rows[0] if rows else None
    else:
        identity = await require_provider(runtime).fetch_identity_by_item(item_id)
    if identity is None:
        raise HTTPException(status_code=404, detail="Identity not found")
    return identity


@router.post("", response_model=IdentityRecord)
async def save_identity(body: IdentityRecord, gateway: PersistenceGateway = Depends(get_gateway)):
    return await gateway.identities.upsert(body)
