import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.deps import get_runtime
from app.core.runtime import SyncRuntime

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(runtime: SyncRuntime = Depends(get_runtime)):
    return {
        "status": "ok",
        "pluggy_configured": runtime.provider is not None,
        "webhook_processing": settings.webhook_processing,
    }


@router.get("/health/db")
async def health_db(runtime: SyncRuntime = Depends(get_runtime)):
    try:
        async with runtime.gateway.sessionmaker() as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Database health check failed: %s", exc)
        return JSONResponse(status_code=503, content={"status": "error", "database": "unreachable"})
    return {"status": "ok", "database": "connected"}
