"""FastAPI dependencies resolving the runtime built in ``app.main``'s lifespan."""

from fastapi import Request

from app.core.exceptions import ConfigurationError
from app.core.runtime import SyncRuntime
from app.services.pluggy_client import PluggyClient
from app.services.store import PersistenceGateway
from app.services.sync import ItemSynchronizer
from app.services.webhook import WebhookDispatcher


def get_runtime(request: Request) -> SyncRuntime:
    return request.app.state.runtime


def get_gateway(request: Request) -> PersistenceGateway:
    return get_runtime(request).gateway


def require_provider(runtime: SyncRuntime) -> PluggyClient:
    """Pluggy client, or 503 via ConfigurationError when credentials are missing."""
    provider = runtime.provider
    if provider is None:
        raise ConfigurationError("Pluggy credentials are not configured")
    return provider


def get_provider(request: Request) -> PluggyClient:
    return require_provider(get_runtime(request))


def get_synchronizer(request: Request) -> ItemSynchronizer:
    return get_runtime(request).synchronizer


def get_dispatcher(request: Request) -> WebhookDispatcher:
    return get_runtime(request).dispatcher
