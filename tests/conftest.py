"""Pytest fixtures and configuration."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from sitmon.ingestion.twitter import Post, build_post_url
from sitmon.processing.models import Account, Category, SignalAnalysis
from sitmon.storage.kv import MemoryKeyValueStore


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests by default unless -m integration is specified."""
    # Check if user explicitly requested integration tests
    markexpr = config.getoption("-m", default="")
    if "integration" in markexpr:
        # User wants integration tests, don't skip
        return

    # Skip integration tests by default
    skip_integration = pytest.mark.skip(reason="Integration test - run with: pytest -m integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio for async tests."""
    return "asyncio"


BASE_TIME = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def make_account() -> Callable[..., Account]:
    def _make(
        account_id: str = "acc_1",
        handle: str = "@trader",
        category: Category = Category.stocks,
        external_id: str = "123",
        is_active: bool = True,
    ) -> Account:
        return Account(
            id=account_id,
            handle=handle,
            external_id=external_id,
            name=handle.lstrip("@").title(),
            category=category,
            is_active=is_active,
        )

    return _make


@pytest.fixture
def make_post() -> Callable[..., Post]:
    def _make(
        post_id: str = "1001",
        text: str = "Long $NVDA here",
        minutes_ago: int = 0,
        username: str = "trader",
    ) -> Post:
        return Post(
            post_id=post_id,
            text=text,
            posted_at=BASE_TIME - timedelta(minutes=minutes_ago),
            url=build_post_url(username, post_id),
        )

    return _make


@pytest.fixture
def make_analysis() -> Callable[..., SignalAnalysis]:
    """Factory for a valid bullish signal analysis on one ticker."""

    def _make(**overrides: object) -> SignalAnalysis:
        payload: dict[str, object] = {
            "isSignal": True,
            "tickers": ["NVDA"],
            "sentiment": "bullish",
            "confidence": "high",
            "reasoning": "Clear long call",
        }
        payload.update(overrides)
        return SignalAnalysis.model_validate(payload)

    return _make


@pytest.fixture
def signal_classifier(make_analysis: Callable[..., SignalAnalysis]) -> AsyncMock:
    """SignalClassifier stand-in that classifies every post as a signal."""
    classifier = AsyncMock()
    classifier.classify_signal = AsyncMock(return_value=make_analysis())
    return classifier
