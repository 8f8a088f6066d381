"""
Global Edge Tokenization API — Application entry-point.

Initializes the FastAPI application, registers middleware, exception handlers,
routers, and manages the application lifecycle (DB table creation on startup).
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlmodel import SQLModel

from globaledge.api.v1.api import api_router
from globaledge.core.config import settings
from globaledge.core.exceptions import add_exception_handlers
from globaledge.core.logging import setup_logging
from globaledge.core.resilience import CircuitState, backoff_delays, db_circuit_breaker
from globaledge.db.session import AsyncSessionLocal, engine
from globaledge.integration.sources import ServingMode, serving_mode
from globaledge.middleware import RequestIDMiddleware, RequestTimingMiddleware

setup_logging()
logger = logging.getLogger(__name__)

STARTUP_DB_RETRIES = 4
STARTUP_DB_BASE_DELAY = 2.0
STARTUP_DB_MAX_DELAY = 16.0


# ────────────────────────────────────────────────────────────────────────────
# Application lifespan
# ────────────────────────────────────────────────────────────────────────────


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
      - Imports all SQLModel table models so metadata is populated.
      - Creates tables, retrying on the shared back-off schedule.
      - If the database stays unreachable the app still starts, in the
        serving mode the fallback switch selects (see ``/health``).

    Shutdown:
      - Disposes of the connection pool.
    """
    import globaledge.models  # noqa: F401

    delays = backoff_delays(
        STARTUP_DB_RETRIES, STARTUP_DB_BASE_DELAY, STARTUP_DB_MAX_DELAY, jitter=False
    )
    attempt = 1
    while True:
        try:
            logger.info("Connecting to database (attempt %d)…", attempt)
            await create_tables()
            logger.info("Database tables ready")
            break
        except Exception as exc:
            delay = next(delays, None)
            if delay is None:
                mode = serving_mode(False, settings.MOCK_FALLBACK_ENABLED)
                logger.error(
                    "Database unreachable after %d attempts (%s); starting in %s "
                    "mode, reads: %s, writes: %s",
                    attempt,
                    exc,
                    mode.value.upper(),
                    mode.reads,
                    mode.writes,
                )
                break
            logger.warning(
                "Database connection failed (attempt %d): %s, retrying in %.0fs…",
                attempt,
                exc,
                delay,
            )
            await asyncio.sleep(delay)
            attempt += 1

    yield

    logger.info("Shutting down, disposing connection pool")
    await engine.dispose()


# ────────────────────────────────────────────────────────────────────────────
# FastAPI application instance
# ────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description=(
        "Asset tokenization platform API: users, tokenized assets, investments, "
        "KYC, security forms, waitlist, search and reports."
    ),
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# ── Middleware (order matters: outermost = first to execute) ──
app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Global error handlers ──
add_exception_handlers(app)

# ── API routers ──
app.include_router(api_router, prefix=settings.API_V1_STR)


# ── Health check ──


async def database_reachable() -> bool:
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Health check could not reach the database: %s", exc)
        return False
    return True


@app.get("/health", tags=["Health"])
async def health_check() -> JSONResponse:
    """
    Liveness / readiness check.

    The database counts as up when ``SELECT 1`` succeeds and the breaker is
    not open, since an open breaker sends every call to the fallback path.
    ``mode`` states where reads and writes go right now; only
    ``unavailable`` answers 503.
    """
    db_healthy = await database_reachable()
    breaker = db_circuit_breaker.get_status()
    database_up = db_healthy and breaker["state"] != CircuitState.OPEN.value
    mode = serving_mode(database_up, settings.MOCK_FALLBACK_ENABLED)

    body = {
        "status": "ok" if mode is ServingMode.NORMAL else mode.value,
        "version": "1.0.0",
        "mode": mode.value,
        "reads": mode.reads,
        "writes": mode.writes,
        "database": db_healthy,
        "circuitBreaker": breaker,
        "mockFallbackEnabled": settings.MOCK_FALLBACK_ENABLED,
    }
    status_code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if mode is ServingMode.UNAVAILABLE
        else status.HTTP_200_OK
    )
    return JSONResponse(status_code=status_code, content=body)
