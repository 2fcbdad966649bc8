"""FastAPI application entrypoint: lifespan, routers, middleware."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from herbarium.config import get_settings
from herbarium.database import async_session_factory, engine
from herbarium.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from herbarium.middleware.rate_limit import RateLimitMiddleware
from herbarium.models import Base
from herbarium.routes import data, greenhouses, plants, users
from herbarium.services.plant_service import PlantService

SERVICE_NAME = "herbarium"
VERSION = "0.1.0"

logger = structlog.get_logger("herbarium")


async def _prepare_schema(create_schema: bool) -> bool:
    """Optionally create tables, then make sure the default plant type exists."""
    if create_schema:
        async with engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        seeded = await PlantService(session).ensure_default_type()
        await session.commit()
    return seeded


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Check the database and prepare the schema
      3. Connect to Redis when rate limiting is enabled

    Shutdown:
      1. Close Redis connection pool
      2. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "herbarium_starting",
        log_level=settings.log_level,
        rate_limit_enabled=settings.rate_limit_enabled,
    )

    redis: Redis | None = None
    app.state.redis = None
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

        seeded = await _prepare_schema(settings.create_schema_on_startup)
        logger.info("schema_ready", default_type_seeded=seeded)

        if settings.rate_limit_enabled:
            redis = Redis.from_url(settings.redis_url, decode_responses=True)
            await redis.ping()
            app.state.redis = redis
    except Exception as exc:
        logger.exception("startup_failure", error=str(exc))
        raise

    yield

    logger.info("herbarium_shutting_down")
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="Herbarium API",
    description=(
        "Greenhouse monitoring backend: users, greenhouses, plants, "
        "sensor readings and actuator states."
    ),
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ─────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)


# ── Health checks ──────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Liveness: the API process is up."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": VERSION,
    }


async def _run_readiness_checks(app: FastAPI) -> dict[str, Any]:
    checks: dict[str, str] = {}
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as exc:
        logger.warning("readiness_database_failed", error=str(exc))
        checks["database"] = "error"

    redis = getattr(app.state, "redis", None)
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            logger.warning("readiness_redis_failed", error=str(exc))
            checks["redis"] = "error"

    degraded = any(value == "error" for value in checks.values())
    return {"status": "degraded" if degraded else "ok", "checks": checks}


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    """Readiness: database and (when enabled) Redis answer."""
    payload = await _run_readiness_checks(app)
    status_code = 503 if payload["status"] == "degraded" else 200
    return JSONResponse(status_code=status_code, content=payload)


# ── Router registration ────────────────────────────────────────────────────
app.include_router(users.router, prefix="/api/v1")
app.include_router(greenhouses.router, prefix="/api/v1")
app.include_router(plants.router, prefix="/api/v1")
app.include_router(data.router, prefix="/api/v1")
