"""Processing module - the signal pipeline.

Submodules:
- extractor / parsing: pure text helpers (cashtags, sentiment keywords, JSON)
- classifier: AI post and account classification with safe defaults
- signals / accounts / watchlist: stores owning each record type
- refresh: fetch-classify-store passes over monitored accounts
- importer: one-off post import into the watchlist
- analysis: deep LLM analysis of a signal
- common: completion services and the LLM factory
"""

from sitmon.processing.accounts import AccountRegistry
from sitmon.processing.classifier import AccountClassifier, SignalClassifier
from sitmon.processing.extractor import detect_sentiment, extract_post_id, extract_tickers
from sitmon.processing.models import (
    Account,
    AccountClassification,
    AiAnalysis,
    Category,
    Confidence,
    PositionSentiment,
    ScamRisk,
    Sentiment,
    Signal,
    SignalAnalysis,
    WatchlistPosition,
    normalize_ticker,
)
from sitmon.processing.refresh import RefreshOrchestrator, RefreshResult
from sitmon.processing.signals import ProcessResult, SignalStore
from sitmon.processing.watchlist import Watchlist

__all__ = [
    # Models
    "Account",
    "AccountClassification",
    "AiAnalysis",
    "Category",
    "Confidence",
    "PositionSentiment",
    "ScamRisk",
    "Sentiment",
    "Signal",
    "SignalAnalysis",
    "WatchlistPosition",
    # Extraction
    "detect_sentiment",
    "extract_post_id",
    "extract_tickers",
    "normalize_ticker",
    # Pipeline
    "AccountClassifier",
    "AccountRegistry",
    "ProcessResult",
    "RefreshOrchestrator",
    "RefreshResult",
    "SignalClassifier",
    "SignalStore",
    "Watchlist",
]
