"""Signal store: at most one signal per source post.

``process_post`` is the dedup point of the pipeline. A post that already has
a signal is returned as-is; a post being classified right now is awaited
rather than classified a second time, so the check-and-insert on the post id
is atomic even when several refresh workers overlap.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sitmon.core.constants import SIGNAL_ID_PREFIX
from sitmon.core.exceptions import SignalNotFoundError
from sitmon.core.logging import get_logger
from sitmon.processing.models import Category, Signal, new_id, utcnow
from sitmon.storage.repository import JsonCollection

if TYPE_CHECKING:
    from sitmon.ingestion.twitter import Post
    from sitmon.processing.classifier import SignalClassifier
    from sitmon.processing.models import Account
    from sitmon.storage.kv import KeyValueStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of processing one post."""

    signal: Signal | None
    is_new: bool


class SignalStore:
    """Owns Signal lifetime; keyed by id, deduplicated by source post id."""

    def __init__(
        self,
        classifier: SignalClassifier,
        kv: KeyValueStore | None = None,
        key: str = "signals",
    ) -> None:
        self._classifier = classifier
        self._signals: JsonCollection[Signal] = JsonCollection(Signal, key, kv)
        self._by_post: dict[str, str] = {}
        self._inflight: dict[str, asyncio.Future[Signal | None]] = {}
        # Accounts removed in this process; classifications finishing late are dropped
        self._removed_accounts: set[str] = set()

    async def load(self) -> int:
        """Load persisted signals and rebuild the post index."""
        count = await self._signals.load()
        self._reindex()
        return count

    def _reindex(self) -> None:
        self._by_post = {s.post_id: s.id for s in self._signals}

    def __len__(self) -> int:
        return len(self._signals)

    def get(self, signal_id: str) -> Signal | None:
        return self._signals.get(signal_id)

    def require(self, signal_id: str) -> Signal:
        """Get a signal or raise SignalNotFoundError."""
        signal = self._signals.get(signal_id)
        if signal is None:
            raise SignalNotFoundError(f"Signal '{signal_id}' not found")
        return signal

    def get_by_post(self, post_id: str) -> Signal | None:
        signal_id = self._by_post.get(post_id)
        return self._signals.get(signal_id) if signal_id else None

    async def process_post(self, post: Post, account: Account) -> ProcessResult:
        """Classify a post once and store it if it is a signal.

        Args:
            post: Source post
            account: Account the post belongs to (category is inherited)

        Returns:
            ProcessResult; ``is_new`` is True only for the call that created
            the signal
        """
        existing = self.get_by_post(post.post_id)
        if existing is not None:
            logger.debug("Post already processed", post_id=post.post_id, signal_id=existing.id)
            return ProcessResult(signal=existing, is_new=False)

        pending = self._inflight.get(post.post_id)
        if pending is not None:
            logger.debug("Post classification in flight, awaiting", post_id=post.post_id)
            signal = await asyncio.shield(pending)
            return ProcessResult(signal=signal, is_new=False)

        future: asyncio.Future[Signal | None] = asyncio.get_running_loop().create_future()
        self._inflight[post.post_id] = future
        try:
            signal = await self._classify_and_store(post, account)
        except BaseException as e:
            future.set_exception(e)
            # Waiters re-raise; mark retrieved so a lone failure is not reported as unhandled
            future.exception()
            raise
        else:
            future.set_result(signal)
        finally:
            self._inflight.pop(post.post_id, None)

        return ProcessResult(signal=signal, is_new=signal is not None)

    async def _classify_and_store(self, post: Post, account: Account) -> Signal | None:
        analysis = await self._classifier.classify_signal(post.text, account.handle)

        if account.id in self._removed_accounts:
            logger.debug("Account removed during classification", post_id=post.post_id)
            return None

        if not analysis.is_actionable:
            logger.debug(
                "Not a valid signal, skipping",
                post_id=post.post_id,
                is_signal=analysis.is_signal,
                reasoning=analysis.reasoning,
            )
            return None

        signal = Signal(
            id=new_id(SIGNAL_ID_PREFIX),
            account_id=account.id,
            account_handle=account.handle,
            account_name=account.name,
            post_id=post.post_id,
            post_url=post.url,
            content=post.text,
            tickers=analysis.tickers,
            sentiment=analysis.sentiment,
            confidence=analysis.confidence,
            category=account.category,
            entry_price=analysis.entry_price,
            target_price=analysis.target_price,
            stop_price=analysis.stop_price,
            posted_at=post.posted_at,
            created_at=utcnow(),
        )
        self._signals.insert(signal)
        self._by_post[signal.post_id] = signal.id

        logger.info(
            "Signal created",
            signal_id=signal.id,
            post_id=signal.post_id,
            handle=account.handle,
            tickers=signal.tickers,
            sentiment=signal.sentiment.value,
            confidence=signal.confidence.value,
        )
        return signal

    def list(
        self,
        category: Category | str | None = None,
        limit: int | None = None,
    ) -> list[Signal]:
        """List signals, most recent post first.

        Args:
            category: Restrict to one category; None or "all" means no filter
            limit: Cap on the number of signals returned
        """
        signals = self._signals.list()
        if category is not None and category != "all":
            wanted = Category(category)
            signals = [s for s in signals if s.category == wanted]
        signals.sort(key=lambda s: s.posted_at, reverse=True)
        if limit is not None:
            signals = signals[: max(limit, 0)]
        return signals

    def clear(self) -> int:
        """Remove every signal and return how many were removed."""
        count = self._signals.clear()
        self._by_post.clear()
        logger.info("Signals cleared", count=count)
        return count

    def remove_for_account(self, account_id: str) -> int:
        """Remove every signal materialized from an account's posts."""
        self._removed_accounts.add(account_id)
        removed = self._signals.remove_where(lambda s: s.account_id == account_id)
        for signal in removed:
            self._by_post.pop(signal.post_id, None)
        if removed:
            logger.info("Signals removed for account", account_id=account_id, count=len(removed))
        return len(removed)

    async def flush(self) -> None:
        await self._signals.flush()
