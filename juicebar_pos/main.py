"""
Juice Bar POS — FastAPI entrypoint
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from juicebar_pos.core.config import get_settings
from juicebar_pos.core.errors import (
    InsufficientStockError,
    NotFoundError,
    POSError,
    StorageTransactionError,
    ValidationError,
)
from juicebar_pos.db.database import create_schema, engine
from juicebar_pos.db.store import get_store
from juicebar_pos.engine.channels import close_channel
from juicebar_pos.engine.seed import ensure_seeded
from juicebar_pos.api import dashboard, health, inventory, notifications, products, recipes, sales

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_schema(engine)
    if settings.SEED_ON_STARTUP:
        await ensure_seeded(get_store())
    yield
    await close_channel()
    await engine.dispose()


app = FastAPI(
    title="Juice Bar POS",
    description="Single-shop point of sale: recipe-driven inventory deduction and cost-based pricing.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True,
                   allow_methods=["*"], allow_headers=["*"])

if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")


# ── Error mapping ─────────────────────────────────────────────────────────────
_STATUS_BY_ERROR = [
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (ValidationError, 422),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StorageTransactionError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


@app.exception_handler(POSError)
async def pos_error_handler(request: Request, exc: POSError):
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            break
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


app.include_router(products.router)
app.include_router(inventory.router)
app.include_router(recipes.router)
app.include_router(sales.router)
app.include_router(notifications.router)
app.include_router(dashboard.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("juicebar_pos.main:app", host=settings.HOST, port=settings.PORT)
