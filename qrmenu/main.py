"""
FastAPI Application Entry Point

QR Menu Platform - restaurant back-office, public QR menu and kitchen
order workflow.

Endpoints:
    - /api/*: JSON API (auth, CRUD, orders, settings, public menu)
    - /kitchen, /order-status: display pages
    - /ws/kitchen, /ws/order-status: live order events
    - /uploads/*: uploaded media
    - /health: system health check

Run with:
    uvicorn qrmenu.main:app --port 8001
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import redis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

# Windows-specific event loop policy (psycopg async needs a selector loop)
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from qrmenu.api import api_router, display_router
from qrmenu.core.config import get_settings, setup_logging
from qrmenu.schemas import HealthResponse
from qrmenu.storage import get_storage

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    Path(settings.upload_directory).mkdir(parents=True, exist_ok=True)

    storage = get_storage()
    await storage.startup()
    logger.info(f"Storage ready: {storage.backend_name}")

    insecure = settings.validate_production_config()
    if insecure:
        logger.warning(f"Production is running on development defaults: {insecure}")

    logger.info("Application ready!")

    yield

    logger.info("Shutting down...")
    await storage.shutdown()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Restaurant menu management platform: admin back-office, QR-driven "
        "public menu, Kitchen Display and Order Status Screen."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    session_cookie=settings.session_cookie_name,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.is_production,
)

app.include_router(api_router)
app.include_router(display_router)
app.mount(
    "/uploads",
    StaticFiles(directory=settings.upload_directory, check_dir=False),
    name="uploads",
)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "kitchen": "/kitchen",
        "order_status": "/order-status",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check() -> HealthResponse:
    """Verify storage and Redis are reachable."""
    storage = get_storage()
    storage_status = "healthy" if await storage.ping() else "unhealthy"

    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2, socket_connect_timeout=2)
        r.ping()
        r.close()
    except redis.RedisError as e:
        redis_status = f"unhealthy: {e}"
        logger.error(f"Redis health check failed: {e}")

    overall = "operational" if storage_status == redis_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall,
        storage=f"{storage_status} ({storage.backend_name})",
        redis=redis_status,
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )
