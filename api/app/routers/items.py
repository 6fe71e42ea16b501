import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from app.core.deps import get_gateway, get_provider, get_runtime, require_provider
from app.core.exceptions import NotFoundError
from app.core.runtime import SyncRuntime
from app.schemas.records import ItemRecord
from app.services import mappers
from app.services.pluggy_client import PluggyClient
from app.services.store import PersistenceGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["items"])


class SyncErrorResponse(BaseModel):
    step: str
    resource_id: str
    message: str

    model_config = {"from_attributes": True}


class SyncResponse(BaseModel):
    item_id: str
    accounts: int
    transactions: int
    bills: int
    identities: int
    investments: int
    investment_transactions: int
    loans: int
    errors: list[SyncErrorResponse] = []

    model_config = {"from_attributes": True}


class ItemSaveResponse(BaseModel):
    item: ItemRecord
    sync: SyncResponse


@router.get("", response_model=list[ItemRecord])
async def list_items(
    user_id: str | None = None,
    limit: int | None = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    return await gateway.items.get_by_parent(user_id, limit=limit, offset=offset)


@router.get("/{item_id}")
async def get_item(
    item_id: str,
    from_db: bool = False,
    runtime: SyncRuntime = Depends(get_runtime),
):
    if from_db:
        record = await runtime.gateway.items.get(item_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Item not found")
        return record
    return await require_provider(runtime).fetch_item(item_id)


@router.post("", response_model=ItemSaveResponse)
async def save_item(body: ItemRecord, runtime: SyncRuntime = Depends(get_runtime)):
    """Store an item record, then sync everything under it."""
    item = await runtime.gateway.items.upsert(body)
    report = await runtime.synchronizer.sync_item(item.item_id)
    return ItemSaveResponse(item=item, sync=SyncResponse.model_validate(report))


@router.post("/{item_id}/sync", response_model=SyncResponse)
async def sync_item(
    item_id: str,
    runtime: SyncRuntime = Depends(get_runtime),
    provider: PluggyClient = Depends(get_provider),
):
    """Re-fetch an item from Pluggy and sync it on demand."""
    item = await provider.fetch_item(item_id)
    await runtime.gateway.items.upsert(mappers.map_item(item))
    report = await runtime.synchronizer.sync_item(item_id)
    return SyncResponse.model_validate(report)


@router.delete("/{item_id}", status_code=204)
async def delete_item(item_id: str, gateway: PersistenceGateway = Depends(get_gateway)):
    try:
        await gateway.delete_item(item_id)
    except NotFoundError:
        logger.info("Delete of unknown item %s", item_id)
    return Response(status_code=204)
