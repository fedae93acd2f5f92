"""System status and config endpoints."""

from fastapi import APIRouter

from sitmon.config import get_settings
from sitmon.core.dependencies import AppStateDep

router = APIRouter()


@router.get("/status")
async def system_status(state: AppStateDep) -> dict[str, object]:
    return {
        "accounts": len(state.accounts),
        "signals": len(state.signals),
        "positions": len(state.watchlist),
        "is_refreshing": state.refresh.is_refreshing,
        "scheduler_running": state.scheduler is not None and state.scheduler.running,
        "ai_enabled": state.completion is not None,
        "analysis_enabled": state.analyzer is not None,
        "twitter_enabled": state.twitter.has_credentials,
    }


@router.get("/config")
async def system_config() -> dict[str, object]:
    settings = get_settings()
    return {
        "env": settings.env,
        "storage_backend": settings.storage_backend,
        "ai_backend": settings.ai_backend,
        "llm_provider": settings.llm_provider,
        "refresh_max_posts": settings.refresh_max_posts,
        "refresh_concurrency": settings.refresh_concurrency,
        "refresh_interval_seconds": settings.refresh_interval_seconds,
        "twitter_enabled": settings.twitter_bearer_token is not None,
    }
