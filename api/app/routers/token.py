from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.core.deps import get_provider
from app.schemas.pluggy import PluggyConnectToken, PluggyConnectTokenOptions
from app.services.pluggy_client import PluggyClient

router = APIRouter(tags=["connect"])


class ConnectTokenRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    item_id: str | None = None
    options: PluggyConnectTokenOptions | None = None


@router.post("/token", response_model=PluggyConnectToken)
async def create_connect_token(
    body: ConnectTokenRequest | None = None,
    provider: PluggyClient = Depends(get_provider),
):
    """Connect token for the Pluggy widget; answers 503 without Pluggy credentials."""
    body = body or ConnectTokenRequest()
    return await provider.create_connect_token(body.item_id, body.options)
