"""
Ad Account Monitor: FastAPI Backend
Mirrors ad platform accounts and daily metrics into PostgreSQL and forwards
campaign pause/activate actions back to the platform.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from admonitor.config import ConfigurationError, get_settings
from admonitor.database import init_db, check_db_connection
from admonitor.auth import require_user
from admonitor.dependencies import build_platform_client
from admonitor.routers import accounts, auth, campaigns, cron, sync

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Ad Account Monitor...")
    try:
        await init_db()
        logger.info("Database initialized, all tables ready.")
    except Exception as e:
        logger.error(f"Startup failed (DB/init): {e}", exc_info=True)
        # Still yield so app can serve /api/health (degraded) and logs are visible
    try:
        build_platform_client()
    except ConfigurationError as e:
        # Platform-backed endpoints will answer 500 until this is fixed
        logger.error(f"Ad platform not configured: {e}")
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Ad Account Monitor",
    description="Ad account monitoring and campaign control",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Auth (login/logout public; whoami requires the token) ─────────────
app.include_router(auth.router, prefix="/api")

# ── Register Routers (all require auth) ──────────────────────────────
_auth = [Depends(require_user)]
app.include_router(accounts.router, prefix="/api/accounts", tags=["Accounts"], dependencies=_auth)
app.include_router(campaigns.router, prefix="/api/campaigns", tags=["Campaigns"], dependencies=_auth)
app.include_router(sync.router, prefix="/api/sync", tags=["Sync"], dependencies=_auth)
app.include_router(cron.router, prefix="/api")  # No auth, uses CRON_SECRET


@app.get("/api/health")
async def health_check():
    db_ok = await check_db_connection()
    return {
        "status": "healthy" if db_ok else "degraded",
        "service": "Ad Account Monitor",
        "database": "connected" if db_ok else "disconnected",
        "mode": settings.app_mode.lower(),
    }
