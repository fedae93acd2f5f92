"""Job scheduler for periodic refresh passes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from sitmon.core.logging import get_logger

if TYPE_CHECKING:
    from sitmon.processing.refresh import RefreshOrchestrator

logger = get_logger(__name__)


def create_scheduler() -> AsyncIOScheduler:
    """Create a new scheduler instance."""
    return AsyncIOScheduler(timezone="UTC")


async def refresh_job(orchestrator: RefreshOrchestrator) -> None:
    """Run one scheduled refresh pass."""
    try:
        result = await orchestrator.refresh_all()
        if result.skipped:
            logger.debug("Scheduled refresh skipped, pass already running")
            return
        logger.info(
            "Scheduled refresh complete",
            accounts_processed=result.accounts_processed,
            new_signals=len(result.new_signals),
            errors=len(result.errors),
        )
    except Exception:
        logger.exception("Scheduled refresh failed")
