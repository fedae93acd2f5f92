"""Data models for the signal pipeline.

Persisted records (accounts, signals, watchlist positions) and the transient
AI response envelopes the classifiers validate:

- Account: a monitored social-media identity
- Signal: one classified trading idea, tied 1:1 to a source post
- WatchlistPosition: a user-owned, ticker-keyed record of interest
- SignalAnalysis / AccountClassification: AI responses after validation
"""

import math
import secrets
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sitmon.core.constants import DEFAULT_ACCOUNT_CONFIDENCE


def utcnow() -> datetime:
    return datetime.now(UTC)


def new_id(prefix: str) -> str:
    """Generate a short random id such as ``sig_3f9a1c0d2b7e``."""
    return f"{prefix}{secrets.token_hex(6)}"


def normalize_ticker(raw: str) -> str:
    """Canonical ticker key: ``$`` stripped, trimmed, uppercase."""
    return raw.replace("$", "").strip().upper()


# =============================================================================
# Enums
# =============================================================================


class Category(str, Enum):
    """Account category, inherited by every signal from that account."""

    stocks = "stocks"
    crypto = "crypto"
    politics = "politics"
    general = "general"


class Sentiment(str, Enum):
    """Direction of a classified signal."""

    bullish = "bullish"
    bearish = "bearish"
    neutral = "neutral"


class Confidence(str, Enum):
    """Classifier-reported certainty of a signal."""

    high = "high"
    medium = "medium"
    low = "low"


class PositionSentiment(str, Enum):
    """Watchlist positions are always directional."""

    bullish = "bullish"
    bearish = "bearish"


class ScamRisk(str, Enum):
    """Pump-and-dump risk from deep analysis."""

    low = "low"
    medium = "medium"
    high = "high"


# =============================================================================
# Persisted records
# =============================================================================


class Account(BaseModel):
    """A monitored social-media account.

    ``id`` and ``external_id`` are immutable; ``handle`` is display metadata
    and is never used to key relationships.
    """

    id: str
    handle: str  # "@name"
    external_id: str
    name: str
    category: Category = Category.general
    bio: str = ""
    followers_count: int = 0
    is_active: bool = True
    added_at: datetime = Field(default_factory=utcnow)

    @property
    def username(self) -> str:
        return self.handle.lstrip("@")


class Signal(BaseModel):
    """A trading idea extracted from exactly one source post."""

    id: str
    account_id: str
    account_handle: str
    account_name: str
    post_id: str
    post_url: str
    content: str
    tickers: list[str] = Field(min_length=1)
    sentiment: Sentiment
    confidence: Confidence
    category: Category
    entry_price: float | None = None
    target_price: float | None = None
    stop_price: float | None = None
    posted_at: datetime
    created_at: datetime = Field(default_factory=utcnow)


class AiAnalysis(BaseModel):
    """Deep AI analysis attached to a watchlist position."""

    summary: str
    bull_case: str
    scam_risk: ScamRisk
    scam_indicators: list[str] = Field(default_factory=list)
    analyzed_at: datetime = Field(default_factory=utcnow)


class WatchlistPosition(BaseModel):
    """A user-curated watchlist entry, unique per normalized ticker.

    ``source_signal_id`` is a non-owning reference; the signal may be deleted
    later and the position keeps the dangling id.
    """

    id: str
    ticker: str
    sentiment: PositionSentiment
    notes: str | None = None
    source_signal_id: str | None = None
    source_post_url: str | None = None
    entry_price: float | None = None
    ai_analysis: AiAnalysis | None = None
    added_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# AI response envelopes
# =============================================================================


def _coerce_price(value: Any) -> float | None:
    """Positive finite number, or None. Accepts "$1,234.5" style strings."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").strip()
        if not value:
            return None
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, int | float):
        return None
    price = float(value)
    if not math.isfinite(price) or price <= 0:
        return None
    return price


class SignalAnalysis(BaseModel):
    """Validated signal-classifier response.

    Every field falls back to its safe default on its own when the model
    returns it missing or malformed, so one bad field never rejects the rest.
    Built from the camelCase keys the prompt asks for.
    """

    is_signal: bool = Field(default=False, alias="isSignal")
    tickers: list[str] = Field(default_factory=list)
    sentiment: Sentiment = Sentiment.neutral
    confidence: Confidence = Confidence.low
    entry_price: float | None = Field(default=None, alias="entryPrice")
    target_price: float | None = Field(default=None, alias="targetPrice")
    stop_price: float | None = Field(default=None, alias="stopPrice")
    reasoning: str = "Analyzed by AI"

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("is_signal", mode="before")
    @classmethod
    def _coerce_is_signal(cls, v: Any) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return False

    @field_validator("tickers", mode="before")
    @classmethod
    def _coerce_tickers(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        tickers: list[str] = []
        for item in v:
            if not isinstance(item, str):
                continue
            ticker = normalize_ticker(item)
            if ticker and ticker not in tickers:
                tickers.append(ticker)
        return tickers

    @field_validator("sentiment", mode="before")
    @classmethod
    def _coerce_sentiment(cls, v: Any) -> Sentiment:
        if isinstance(v, Sentiment):
            return v
        try:
            return Sentiment(str(v).strip().lower())
        except ValueError:
            return Sentiment.neutral

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, v: Any) -> Confidence:
        if isinstance(v, Confidence):
            return v
        try:
            return Confidence(str(v).strip().lower())
        except ValueError:
            return Confidence.low

    @field_validator("entry_price", "target_price", "stop_price", mode="before")
    @classmethod
    def _coerce_prices(cls, v: Any) -> float | None:
        return _coerce_price(v)

    @field_validator("reasoning", mode="before")
    @classmethod
    def _coerce_reasoning(cls, v: Any) -> str:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return "Analyzed by AI"

    @classmethod
    def non_signal(cls, reasoning: str) -> "SignalAnalysis":
        """Safe default returned whenever classification cannot complete."""
        return cls(is_signal=False, tickers=[], reasoning=reasoning)

    @property
    def is_actionable(self) -> bool:
        """A signal worth storing: classified as one and naming a ticker."""
        return self.is_signal and bool(self.tickers)


class AccountClassification(BaseModel):
    """Validated account-classifier response."""

    category: Category = Category.general
    confidence: float = DEFAULT_ACCOUNT_CONFIDENCE
    reasoning: str = "Classified by AI"

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, v: Any) -> Category:
        if isinstance(v, Category):
            return v
        try:
            return Category(str(v).strip().lower())
        except ValueError:
            return Category.general

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, v: Any) -> float:
        if isinstance(v, bool) or not isinstance(v, int | float | str):
            return DEFAULT_ACCOUNT_CONFIDENCE
        try:
            value = float(v)
        except ValueError:
            return DEFAULT_ACCOUNT_CONFIDENCE
        if not math.isfinite(value) or not 0.0 <= value <= 1.0:
            return DEFAULT_ACCOUNT_CONFIDENCE
        return value

    @field_validator("reasoning", mode="before")
    @classmethod
    def _coerce_reasoning(cls, v: Any) -> str:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return "Classified by AI"

    @classmethod
    def fallback(cls, reasoning: str) -> "AccountClassification":
        return cls(category=Category.general, reasoning=reasoning)
