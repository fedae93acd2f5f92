"""Runtime lifecycle for the monitor.

Provides ``app_lifespan()`` - an async context manager that builds storage,
clients, stores and the optional scheduled refresh job, and tears them down
in reverse order. The FastAPI app calls it from its own lifespan; running
this module directly starts the scheduler without the HTTP server.

Usage:
    uv run -m sitmon.agent

Configuration (set in .env):
    - TWITTER_BEARER_TOKEN: Post source (mock accounts without it)
    - TOOLKIT_URL or ANTHROPIC_API_KEY/OPENAI_API_KEY: AI classification
    - STORAGE_BACKEND=redis, REDIS_URL: Durable storage
    - REFRESH_INTERVAL_SECONDS: Scheduled refresh (0 disables)
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from sitmon.agent.scheduler import create_scheduler, refresh_job
from sitmon.config import Settings, get_settings
from sitmon.core.constants import ACCOUNTS_KEY, POSITIONS_KEY, REFRESH_JOB_ID, SIGNALS_KEY
from sitmon.core.exceptions import SitmonError
from sitmon.core.logging import get_logger, setup_logging
from sitmon.ingestion.twitter import TwitterClient
from sitmon.processing.accounts import AccountRegistry
from sitmon.processing.analysis import SignalAnalyzer
from sitmon.processing.classifier import AccountClassifier, SignalClassifier
from sitmon.processing.common.completion import create_completion_service
from sitmon.processing.importer import TweetImporter
from sitmon.processing.refresh import RefreshOrchestrator
from sitmon.processing.signals import SignalStore
from sitmon.processing.watchlist import Watchlist
from sitmon.storage.kv import MemoryKeyValueStore, RedisKeyValueStore, storage_key
from sitmon.storage.redis import close_redis, init_redis

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from sitmon.processing.common.completion import (
        PydanticAICompletionClient,
        ToolkitCompletionClient,
    )
    from sitmon.storage.kv import KeyValueStore

logger = get_logger(__name__)


@dataclass
class AppState:
    """Holds references to all running resources."""

    settings: Settings
    kv: KeyValueStore
    redis: Redis | None
    twitter: TwitterClient
    completion: ToolkitCompletionClient | PydanticAICompletionClient | None
    signals: SignalStore
    accounts: AccountRegistry
    watchlist: Watchlist
    refresh: RefreshOrchestrator
    importer: TweetImporter
    analyzer: SignalAnalyzer | None = None
    scheduler: AsyncIOScheduler | None = None


async def seed_accounts(state: AppState) -> int:
    """Add configured seed accounts that are not tracked yet."""
    added = 0
    for handle in state.settings.seed_accounts:
        if state.accounts.find_by_username(handle) is not None:
            continue
        try:
            await state.accounts.add_account(handle)
            added += 1
        except SitmonError as e:
            logger.warning("Failed to seed account", handle=handle, error=e.message)
    return added


@asynccontextmanager
async def app_lifespan(settings: Settings | None = None) -> AsyncIterator[AppState]:
    """Build every runtime resource and release it on exit."""
    settings = settings or get_settings()

    redis: Redis | None = None
    kv: KeyValueStore
    twitter: TwitterClient | None = None
    completion: ToolkitCompletionClient | PydanticAICompletionClient | None = None
    scheduler: AsyncIOScheduler | None = None
    state: AppState | None = None

    try:
        # 1. Storage
        if settings.storage_backend == "redis":
            redis = await init_redis(settings.redis_url)
            kv = RedisKeyValueStore(redis)
        else:
            logger.warning("Using in-memory storage, state is lost on restart")
            kv = MemoryKeyValueStore()

        # 2. Clients
        token = settings.twitter_bearer_token
        twitter = TwitterClient(
            bearer_token=token.get_secret_value() if token else None,
            base_url=settings.twitter_api_base_url,
            timeout=settings.twitter_timeout,
        )
        if not twitter.has_credentials:
            logger.warning("No Twitter bearer token, accounts will be mocked")
        completion = create_completion_service(settings)

        # 3. Stores
        prefix = settings.storage_key_prefix
        signals = SignalStore(
            SignalClassifier(completion), kv=kv, key=storage_key(prefix, SIGNALS_KEY)
        )
        accounts = AccountRegistry(
            twitter,
            AccountClassifier(completion),
            signals,
            kv=kv,
            key=storage_key(prefix, ACCOUNTS_KEY),
        )
        watchlist = Watchlist(kv=kv, key=storage_key(prefix, POSITIONS_KEY))

        await accounts.load()
        await signals.load()
        await watchlist.load()

        state = AppState(
            settings=settings,
            kv=kv,
            redis=redis,
            twitter=twitter,
            completion=completion,
            signals=signals,
            accounts=accounts,
            watchlist=watchlist,
            refresh=RefreshOrchestrator(
                accounts,
                twitter,
                signals,
                max_posts=settings.refresh_max_posts,
                concurrency=settings.refresh_concurrency,
            ),
            importer=TweetImporter(watchlist, twitter),
            analyzer=SignalAnalyzer(settings) if settings.llm_configured else None,
        )

        if settings.seed_accounts:
            seeded = await seed_accounts(state)
            logger.info("Seed accounts processed", added=seeded)

        # 4. Scheduled refresh
        if settings.refresh_interval_seconds > 0:
            scheduler = create_scheduler()
            scheduler.add_job(
                refresh_job,
                IntervalTrigger(seconds=settings.refresh_interval_seconds),
                args=[state.refresh],
                id=REFRESH_JOB_ID,
                max_instances=1,
                misfire_grace_time=None,
                next_run_time=datetime.now(UTC) + timedelta(seconds=5),
            )
            scheduler.start()
            state.scheduler = scheduler
            logger.info("Refresh scheduled", interval_seconds=settings.refresh_interval_seconds)

        logger.info(
            "Monitor started",
            storage=settings.storage_backend,
            accounts=len(accounts),
            signals=len(signals),
            positions=len(watchlist),
            ai_enabled=completion is not None,
        )
        yield state

    finally:
        logger.info("Shutting down monitor...")

        if scheduler and scheduler.running:
            scheduler.shutdown(wait=False)
            logger.debug("Scheduler stopped")

        if state is not None:
            for store in (state.accounts, state.signals, state.watchlist):
                await store.flush()
            logger.debug("Pending writes flushed")

        if completion:
            try:
                await completion.close()
            except Exception as e:
                logger.error("Failed to close completion client", error=str(e))

        if twitter:
            await twitter.close()

        if redis:
            await close_redis()

        logger.info("Monitor shutdown complete")


async def run_agent() -> None:
    """Run the scheduler without the HTTP server until interrupted."""
    settings = get_settings()
    setup_logging(settings)
    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)

    async with app_lifespan(settings) as state:
        if state.scheduler is None:
            logger.info("REFRESH_INTERVAL_SECONDS is 0, running a single refresh")
            await refresh_job(state.refresh)
            return
        await shutdown_event.wait()


if __name__ == "__main__":
    asyncio.run(run_agent())
