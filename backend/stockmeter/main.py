"""
StockMeter Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockmeter.api.errors import register_exception_handlers
from stockmeter.api.v1 import router as api_v1_router
from stockmeter.core.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")

    from stockmeter.db.database import close_db, init_db
    from stockmeter.services.admission import get_audit_recorder
    from stockmeter.services.cache import close_redis, init_redis

    await init_db()
    await init_redis()

    yield

    logger.info("Shutting down...")
    await get_audit_recorder().drain()
    await close_redis()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    StockMeter Historical Stock Data API

    ## Access
    - Every `/api/v1/stocks` request needs an `X-API-Key` header
    - Requests are metered per day and per minute according to the plan
    - Historical depth is limited by the plan's data range

    ## Analytics
    - SMA / EMA / RSI over daily closes, rounded to 2 decimals
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    from stockmeter.api.deps import get_quota_store
    from stockmeter.services.quota import QuotaStoreUnavailable

    quota_ok = True
    try:
        await get_quota_store().peek("__health__")
    except QuotaStoreUnavailable as e:
        logger.warning(f"Quota store health check failed: {e}")
        quota_ok = False

    return {
        "status": "healthy" if quota_ok else "degraded",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "quota_store": "up" if quota_ok else "down",
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "StockMeter API",
        "docs": "/docs",
        "health": "/health",
    }
