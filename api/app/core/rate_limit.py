from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Shared by main.py and routers that need a tighter or exempt limit.
# storage_uri defaults to in-memory; point it at Redis to share limits across workers.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    storage_uri=settings.rate_limit_storage_uri,
)
