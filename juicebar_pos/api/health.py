"""
Juice Bar POS — Health endpoint
"""
import asyncio
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from juicebar_pos.core.config import get_settings
from juicebar_pos.db.store import RecordStore, get_store

settings = get_settings()
router = APIRouter(tags=["health"])


async def _ping(store: RecordStore) -> None:
    async with store.transaction() as uow:
        await uow.session.execute(text("SELECT 1"))


@router.get("/health")
async def health_check(store: RecordStore = Depends(get_store)):
    deps: dict[str, str] = {}
    healthy = True

    try:
        await asyncio.wait_for(_ping(store), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps["database"] = "ok"
    except Exception as e:
        deps["database"] = f"error: {str(e)[:100]}"
        healthy = False

    return JSONResponse(
        content={
            "status": "healthy" if healthy else "degraded",
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "dependencies": deps,
        },
        status_code=200 if healthy else 503,
    )
