"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from sitmon.agent import AppState
from sitmon.config import Settings, get_settings
from sitmon.processing.accounts import AccountRegistry
from sitmon.processing.analysis import SignalAnalyzer
from sitmon.processing.importer import TweetImporter
from sitmon.processing.refresh import RefreshOrchestrator
from sitmon.processing.signals import SignalStore
from sitmon.processing.watchlist import Watchlist

# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]


async def get_app_state(request: Request) -> AppState:
    """Get AppState from app.state (set during lifespan)."""
    return request.app.state.monitor  # type: ignore[no-any-return]


AppStateDep = Annotated[AppState, Depends(get_app_state)]


def get_signal_store(state: AppStateDep) -> SignalStore:
    return state.signals


def get_account_registry(state: AppStateDep) -> AccountRegistry:
    return state.accounts


def get_watchlist(state: AppStateDep) -> Watchlist:
    return state.watchlist


def get_refresh(state: AppStateDep) -> RefreshOrchestrator:
    return state.refresh


def get_importer(state: AppStateDep) -> TweetImporter:
    return state.importer


def get_analyzer(state: AppStateDep) -> SignalAnalyzer:
    """Get the deep analyzer; 503 when no LLM provider key is configured."""
    if state.analyzer is None:
        raise HTTPException(
            status_code=503,
            detail="Deep analysis not available (no ANTHROPIC_API_KEY or OPENAI_API_KEY)",
        )
    return state.analyzer


# Annotated dependencies for use in route handlers
SignalStoreDep = Annotated[SignalStore, Depends(get_signal_store)]
AccountRegistryDep = Annotated[AccountRegistry, Depends(get_account_registry)]
WatchlistDep = Annotated[Watchlist, Depends(get_watchlist)]
RefreshDep = Annotated[RefreshOrchestrator, Depends(get_refresh)]
ImporterDep = Annotated[TweetImporter, Depends(get_importer)]
AnalyzerDep = Annotated[SignalAnalyzer, Depends(get_analyzer)]
