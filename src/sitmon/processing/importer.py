"""Import positions from a single post.

Works on pasted text or a post URL. Tickers and sentiment come from the
keyword extractor only; no LLM is involved. The caller reviews the preview
and picks which tickers to add to the watchlist.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from sitmon.core.exceptions import InvalidInputError, PostSourceError, TweetImportError
from sitmon.core.logging import get_logger
from sitmon.processing.extractor import detect_sentiment, extract_post_id, extract_tickers
from sitmon.processing.models import PositionSentiment, normalize_ticker

if TYPE_CHECKING:
    from sitmon.ingestion.twitter import PostSource
    from sitmon.processing.models import WatchlistPosition
    from sitmon.processing.watchlist import Watchlist

logger = get_logger(__name__)


class ImportPreview(BaseModel):
    """What would be imported from a post."""

    tickers: list[str] = Field(default_factory=list)
    sentiment: PositionSentiment
    content: str
    source_url: str | None = None


class TweetImporter:
    """Preview posts and add their tickers to the watchlist."""

    def __init__(self, watchlist: Watchlist, post_source: PostSource | None = None) -> None:
        self._watchlist = watchlist
        self._post_source = post_source

    def preview_text(self, text: str, source_url: str | None = None) -> ImportPreview:
        """Extract tickers and sentiment from text.

        Raises:
            InvalidInputError: Text is blank
        """
        if not text.strip():
            raise InvalidInputError("Text must not be empty")
        return ImportPreview(
            tickers=sorted(extract_tickers(text)),
            sentiment=detect_sentiment(text),
            content=text,
            source_url=source_url,
        )

    async def preview_url(self, url: str) -> ImportPreview:
        """Fetch a post by URL and preview it.

        Raises:
            TweetImportError: URL is not a post URL or the post cannot be fetched
        """
        post_id = extract_post_id(url)
        if post_id is None:
            raise TweetImportError("Invalid tweet URL. Please use a valid Twitter/X link.")
        if self._post_source is None:
            raise TweetImportError("Post source not configured. Paste the post text instead.")

        try:
            post = await self._post_source.get_post_by_id(post_id)
        except PostSourceError as e:
            logger.warning("Could not fetch post for import", post_id=post_id, error=e.message)
            raise TweetImportError(
                f"{e.message}. Use pasted text to import the post content."
            ) from e

        return self.preview_text(post.text, source_url=url.strip())

    async def import_positions(
        self,
        preview: ImportPreview,
        tickers: list[str] | None = None,
        sentiment: PositionSentiment | str | None = None,
    ) -> list[WatchlistPosition]:
        """Add selected tickers from a preview to the watchlist.

        Args:
            preview: Result of ``preview_text`` or ``preview_url``
            tickers: Tickers to add; defaults to every ticker in the preview
            sentiment: Override for the detected sentiment

        Returns:
            The created or updated positions

        Raises:
            InvalidInputError: Nothing selected
        """
        selected = preview.tickers if tickers is None else tickers
        symbols = list(dict.fromkeys(s for s in (normalize_ticker(t) for t in selected) if s))
        if not symbols:
            raise InvalidInputError("Select at least one ticker to import")

        direction = PositionSentiment(sentiment) if sentiment is not None else preview.sentiment
        positions = [
            await self._watchlist.add_position(
                symbol,
                direction,
                notes=preview.content,
                source_post_url=preview.source_url,
            )
            for symbol in symbols
        ]
        logger.info("Positions imported", tickers=symbols, sentiment=direction.value)
        return positions
