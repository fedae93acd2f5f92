"""Refresh orchestrator: fetch, classify and store new signals.

One pass walks every active account, fetches its most recent posts and runs
each through the signal store. Accounts are isolated from each other: a
failure is logged, recorded in the result, and the pass moves on.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sitmon.core.constants import DEFAULT_REFRESH_MAX_POSTS
from sitmon.core.logging import get_logger

if TYPE_CHECKING:
    from sitmon.ingestion.twitter import PostSource
    from sitmon.processing.accounts import AccountRegistry
    from sitmon.processing.models import Account, Signal
    from sitmon.processing.signals import SignalStore

logger = get_logger(__name__)


@dataclass
class RefreshResult:
    """Outcome of one refresh pass."""

    new_signals: list[Signal] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)  # account_id -> message
    accounts_processed: int = 0
    skipped: bool = False


class RefreshOrchestrator:
    """Runs refresh passes over the account registry.

    Only one pass runs at a time; a trigger while a pass is in flight returns
    immediately with ``skipped=True``.
    """

    def __init__(
        self,
        registry: AccountRegistry,
        post_source: PostSource,
        signal_store: SignalStore,
        max_posts: int = DEFAULT_REFRESH_MAX_POSTS,
        concurrency: int = 1,
    ) -> None:
        self._registry = registry
        self._post_source = post_source
        self._signal_store = signal_store
        self.max_posts = max_posts
        self.concurrency = max(concurrency, 1)
        self._refreshing = False

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    async def refresh_all(self, accounts: list[Account] | None = None) -> RefreshResult:
        """Run one refresh pass.

        Args:
            accounts: Accounts to refresh; defaults to every active account

        Returns:
            New signals in discovery order, per-account errors, and counts
        """
        if self._refreshing:
            logger.info("Refresh already in progress, skipping")
            return RefreshResult(skipped=True)

        self._refreshing = True
        try:
            targets = accounts if accounts is not None else self._registry.active()
            result = RefreshResult()
            logger.info("Refresh started", accounts=len(targets), concurrency=self.concurrency)

            if self.concurrency == 1:
                for account in targets:
                    await self._refresh_account(account, result)
            else:
                sem = asyncio.Semaphore(self.concurrency)

                async def _bounded(account: Account) -> list[Signal]:
                    async with sem:
                        partial = RefreshResult()
                        await self._refresh_account(account, partial)
                        if account.id in partial.errors:
                            result.errors[account.id] = partial.errors[account.id]
                        return partial.new_signals

                # Merge in account order so results do not depend on scheduling
                batches = await asyncio.gather(*(_bounded(a) for a in targets))
                for batch in batches:
                    result.new_signals.extend(batch)
                result.accounts_processed = len(targets)

            logger.info(
                "Refresh complete",
                accounts_processed=result.accounts_processed,
                new_signals=len(result.new_signals),
                errors=len(result.errors),
            )
            return result
        finally:
            self._refreshing = False

    def _is_tracked(self, account: Account) -> bool:
        return self._registry.get(account.id) is not None

    async def _refresh_account(self, account: Account, result: RefreshResult) -> None:
        """Fetch and process one account's posts, recording any failure.

        An account removed while its posts are in flight is dropped without
        storing anything. A post that fails is logged and the rest of the
        account's posts are still processed.
        """
        log = logger.bind(account_id=account.id, handle=account.handle)
        result.accounts_processed += 1
        try:
            posts = await self._post_source.fetch_recent_posts(
                account.external_id, account.username, self.max_posts
            )
        except Exception as e:
            log.exception("Account refresh failed")
            result.errors[account.id] = str(e) or type(e).__name__
            return

        failures: list[str] = []
        for index, post in enumerate(posts):
            if not self._is_tracked(account):
                log.info("Account removed during refresh", dropped_posts=len(posts) - index)
                return
            try:
                processed = await self._signal_store.process_post(post, account)
            except Exception as e:
                log.exception("Post processing failed", post_id=post.post_id, index=index)
                failures.append(str(e) or type(e).__name__)
                continue
            if processed.is_new and processed.signal is not None:
                result.new_signals.append(processed.signal)

        if failures:
            result.errors[account.id] = (
                f"{len(failures)} of {len(posts)} posts failed: {failures[-1]}"
            )
            return

        log.debug("Account refreshed", posts=len(posts))
