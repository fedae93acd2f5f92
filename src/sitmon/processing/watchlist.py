"""Watchlist of user-tracked positions, unique per normalized ticker.

Positions are kept in a JSON collection with a ticker index for O(1) lookup:
- "$aapl", "AAPL" and " aapl " all resolve to the same position
- Re-adding a tracked ticker updates it in place (sentiment overwritten,
  only the options the caller supplied are merged)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sitmon.core.constants import POSITION_ID_PREFIX
from sitmon.core.exceptions import InvalidInputError, PositionNotFoundError
from sitmon.core.logging import get_logger
from sitmon.processing.models import (
    AiAnalysis,
    PositionSentiment,
    WatchlistPosition,
    new_id,
    normalize_ticker,
    utcnow,
)
from sitmon.storage.repository import JsonCollection

if TYPE_CHECKING:
    from sitmon.storage.kv import KeyValueStore

logger = get_logger(__name__)

# Fields update_position accepts; id, ticker and added_at are immutable
_UPDATABLE_FIELDS = frozenset(
    {"sentiment", "notes", "source_signal_id", "source_post_url", "entry_price", "ai_analysis"}
)


class Watchlist:
    """Manage watchlist positions."""

    def __init__(self, kv: KeyValueStore | None = None, key: str = "positions") -> None:
        """Initialize the watchlist.

        Args:
            kv: Optional durable store; positions stay in memory without it
            key: Storage key of the positions collection
        """
        self._positions: JsonCollection[WatchlistPosition] = JsonCollection(
            WatchlistPosition, key, kv
        )
        self._by_ticker: dict[str, str] = {}

    async def load(self) -> int:
        count = await self._positions.load()
        self._by_ticker = {p.ticker: p.id for p in self._positions}
        return count

    def __len__(self) -> int:
        return len(self._positions)

    async def add_position(
        self,
        ticker: str,
        sentiment: PositionSentiment | str,
        *,
        notes: str | None = None,
        source_signal_id: str | None = None,
        source_post_url: str | None = None,
        entry_price: float | None = None,
    ) -> WatchlistPosition:
        """Add a ticker to the watchlist or update the existing position.

        Args:
            ticker: Ticker in any case, with or without "$"
            sentiment: Direction; overwrites the existing one on re-add
            notes: Free-form notes
            source_signal_id: Signal the position was created from
            source_post_url: Post the position was created from
            entry_price: Reference entry price

        Returns:
            The created or updated position

        Raises:
            InvalidInputError: Ticker is empty after normalization
        """
        symbol = normalize_ticker(ticker)
        if not symbol:
            raise InvalidInputError("Ticker must not be empty")
        sentiment = PositionSentiment(sentiment)

        options = {
            "notes": notes,
            "source_signal_id": source_signal_id,
            "source_post_url": source_post_url,
            "entry_price": entry_price,
        }
        provided = {k: v for k, v in options.items() if v is not None}

        existing = self.get_position_by_ticker(symbol)
        if existing is not None:
            updated = existing.model_copy(update={"sentiment": sentiment, **provided})
            self._positions.replace(updated)
            logger.info(
                "Position updated",
                position_id=updated.id,
                ticker=symbol,
                sentiment=sentiment.value,
            )
            return updated

        position = WatchlistPosition(
            id=new_id(POSITION_ID_PREFIX),
            ticker=symbol,
            sentiment=sentiment,
            added_at=utcnow(),
            **provided,
        )
        self._positions.insert(position)
        self._by_ticker[symbol] = position.id
        logger.info("Position added", position_id=position.id, ticker=symbol, sentiment=sentiment.value)
        return position

    async def remove_position(self, position_id: str) -> bool:
        """Remove a position by id.

        Returns:
            True if the position existed
        """
        removed = self._positions.remove(position_id)
        if removed is None:
            return False
        self._by_ticker.pop(removed.ticker, None)
        logger.info("Position removed", position_id=position_id, ticker=removed.ticker)
        return True

    def has_position(self, ticker: str) -> bool:
        return normalize_ticker(ticker) in self._by_ticker

    def get_position_by_ticker(self, ticker: str) -> WatchlistPosition | None:
        position_id = self._by_ticker.get(normalize_ticker(ticker))
        return self._positions.get(position_id) if position_id else None

    def get(self, position_id: str) -> WatchlistPosition | None:
        return self._positions.get(position_id)

    def list(self) -> list[WatchlistPosition]:
        """All positions, most recently added first."""
        return sorted(self._positions.list(), key=lambda p: p.added_at, reverse=True)

    async def update_position(self, position_id: str, **updates: Any) -> WatchlistPosition:
        """Update mutable fields of a position.

        Raises:
            PositionNotFoundError: Unknown position id
            InvalidInputError: Unknown or immutable field
        """
        position = self._positions.get(position_id)
        if position is None:
            raise PositionNotFoundError(f"Position not found: {position_id}")

        unknown = set(updates) - _UPDATABLE_FIELDS
        if unknown:
            raise InvalidInputError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        merged = position.model_dump()
        merged.update(updates)
        updated = WatchlistPosition.model_validate(merged)
        self._positions.replace(updated)
        logger.info("Position updated", position_id=position_id, fields=sorted(updates))
        return updated

    async def update_ai_analysis(
        self, position_id: str, analysis: AiAnalysis
    ) -> WatchlistPosition:
        """Attach a deep analysis to a position, replacing any previous one."""
        return await self.update_position(position_id, ai_analysis=analysis)

    async def flush(self) -> None:
        await self._positions.flush()
