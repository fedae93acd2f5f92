"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from sitmon.agent import app_lifespan
from sitmon.api.router import api_router
from sitmon.config import get_settings
from sitmon.core.dependencies import AppStateDep
from sitmon.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: builds stores and the refresh scheduler."""
    settings = get_settings()
    setup_logging(settings)

    async with app_lifespan(settings) as state:
        app.state.monitor = state
        logger.info("Situation Monitor ready", env=settings.env)
        yield


app = FastAPI(
    title="Situation Monitor",
    description="Trading signals from monitored social-media accounts",
    version="0.1.0",
    lifespan=lifespan,
)

# Infrastructure (no prefix, not versioned)


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check: always ok if process is running."""
    return {"status": "ok"}


@app.get("/ready")
async def ready(state: AppStateDep) -> dict[str, str]:
    """Readiness check: verifies storage is reachable."""
    checks: dict[str, str] = {}
    if state.redis is not None:
        try:
            await state.redis.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            checks["redis"] = "error"
    else:
        checks["redis"] = "disabled"
    checks["ai"] = "ok" if state.completion is not None else "disabled"
    checks["scheduler"] = "ok" if state.scheduler and state.scheduler.running else "disabled"
    status = "ready" if all(v != "error" for v in checks.values()) else "not_ready"
    return {"status": status, **checks}


# Domain API
app.include_router(api_router, prefix="/api/v1")
