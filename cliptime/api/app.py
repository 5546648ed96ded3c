"""FastAPI application factory"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from cliptime import __version__
from cliptime.api.core.config import get_settings
from cliptime.api.core.database import get_database_manager, init_database_manager
from cliptime.api.core.dependencies import (
    CronUnauthorized,
    close_api_clients,
    init_services,
    shutdown_services,
)
from cliptime.api.core.logging import setup_logging
from cliptime.api.routers import clips_router, cron_router, leaderboard_router
from cliptime.shared.database import DatabaseManager

logger = logging.getLogger(__name__)

# Track server start time
_start_time: float = 0.0
_heartbeat_task: asyncio.Task | None = None
_db_retry_task: asyncio.Task | None = None


async def _heartbeat(interval: int = 300) -> None:
    """Periodic heartbeat: log uptime and DB status"""
    while True:
        await asyncio.sleep(interval)
        uptime = int(time.time() - _start_time)
        db_ok = await get_database_manager().check_health()
        logger.info(f"Heartbeat: uptime={uptime}s, db={db_ok}")


async def _db_retry_loop(db_manager: DatabaseManager) -> None:
    """Background loop to retry DB connection after a failed startup."""
    delay = 5
    max_delay = 60
    while True:
        await asyncio.sleep(delay)
        if db_manager.is_connected:
            logger.info("DB retry loop: pool already connected, stopping")
            return
        try:
            await db_manager.connect()
        except asyncio.CancelledError:
            return
        except Exception as e:
            delay = min(delay * 2, max_delay)
            logger.warning(
                f"DB background retry failed: {type(e).__name__}: {e}, next retry in {delay}s"
            )
            continue
        logger.info("Database connected (background retry)")
        init_services(db_manager.pool)
        return


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown"""
    global _start_time, _heartbeat_task, _db_retry_task
    _start_time = time.time()

    settings = get_settings()
    logger.info("Starting cliptime API server")
    logger.info(f"Environment: {settings.environment}")

    # Wait up to 30s for the pool before accepting requests; clip routes
    # answer 503 until services exist.
    db_manager = init_database_manager(settings.database_url)
    try:
        await asyncio.wait_for(db_manager.connect(), timeout=30)
        logger.info("Database connected")
        init_services(db_manager.pool)
    except TimeoutError:
        logger.warning("DB connection timed out during startup, retrying in background")
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager))
    except Exception as e:
        logger.error(
            f"DB connection failed during startup: {type(e).__name__}: {e}, retrying in background"
        )
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager))

    if settings.enable_keep_alive:
        _heartbeat_task = asyncio.create_task(_heartbeat(settings.keep_alive_interval))
        logger.info(f"Heartbeat started (interval={settings.keep_alive_interval}s)")

    yield

    logger.info("Shutting down cliptime API server")
    if _db_retry_task:
        _db_retry_task.cancel()
    if _heartbeat_task:
        _heartbeat_task.cancel()
    try:
        await shutdown_services()
        await close_api_clients()
        await db_manager.disconnect()
    except Exception as e:
        logger.exception(f"Error during shutdown: {e}")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    settings = get_settings()

    setup_logging(settings)

    app = FastAPI(
        title="cliptime API",
        description="Clip-to-broadcast timestamp correlation for YouTube live chat",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Chat bots call from anywhere
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CronUnauthorized)
    async def cron_unauthorized(request: Request, exc: CronUnauthorized) -> JSONResponse:
        logger.warning(f"Rejected cron call to {request.url.path}: bad secret")
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    app.include_router(clips_router.router)
    app.include_router(cron_router.router)
    app.include_router(leaderboard_router.router)

    @app.get("/")
    async def root():
        """Root endpoint - minimal service info"""
        return {"service": "cliptime", "status": "running"}

    # Liveness probe, always 200
    @app.get("/health")
    async def health():
        """Liveness check (no DB dependency)"""
        return {
            "status": "healthy",
            "time": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "uptime_seconds": int(time.time() - _start_time),
        }

    @app.get("/status")
    async def status():
        """Readiness / status endpoint, includes actual DB health check"""
        db_manager = get_database_manager()
        return {
            "service": "cliptime",
            "version": __version__,
            "uptime_seconds": int(time.time() - _start_time),
            "db_connected": await db_manager.check_health(),
            "pooler_mode": db_manager.pooler_mode,
            "environment": settings.environment,
        }

    @app.api_route("/ping", methods=["GET", "HEAD"], response_class=PlainTextResponse)
    async def ping():
        """Ping endpoint"""
        return "pong"

    logger.info("FastAPI application configured")

    return app
