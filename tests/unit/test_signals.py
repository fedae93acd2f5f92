"""Tests for the signal store."""

import asyncio
from unittest.mock import AsyncMock

import orjson
import pytest

from sitmon.core.exceptions import SignalNotFoundError
from sitmon.processing.models import Category, Sentiment
from sitmon.processing.signals import SignalStore


@pytest.fixture
def store(signal_classifier: AsyncMock, kv) -> SignalStore:
    return SignalStore(signal_classifier, kv=kv, key="test_signals")


class TestProcessPost:
    @pytest.mark.asyncio
    async def test_creates_signal(self, store, make_post, make_account) -> None:
        account = make_account(category=Category.crypto)
        post = make_post(post_id="42", text="Long $NVDA")

        result = await store.process_post(post, account)

        assert result.is_new is True
        signal = result.signal
        assert signal is not None
        assert signal.id.startswith("sig_")
        assert signal.post_id == "42"
        assert signal.account_id == account.id
        assert signal.account_handle == account.handle
        assert signal.category == Category.crypto
        assert signal.tickers == ["NVDA"]
        assert signal.sentiment == Sentiment.bullish
        assert signal.posted_at == post.posted_at
        assert store.get(signal.id) == signal

    @pytest.mark.asyncio
    async def test_idempotent(self, store, signal_classifier, make_post, make_account) -> None:
        account = make_account()
        post = make_post(post_id="42")

        first = await store.process_post(post, account)
        second = await store.process_post(post, account)

        assert first.is_new is True
        assert second.is_new is False
        assert second.signal == first.signal
        assert len(store) == 1
        signal_classifier.classify_signal.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_signal_not_stored(
        self, store, signal_classifier, make_analysis, make_post, make_account
    ) -> None:
        signal_classifier.classify_signal.return_value = make_analysis(isSignal=False)

        result = await store.process_post(make_post(), make_account())

        assert result.signal is None
        assert result.is_new is False
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_signal_without_tickers_not_stored(
        self, store, signal_classifier, make_analysis, make_post, make_account
    ) -> None:
        signal_classifier.classify_signal.return_value = make_analysis(tickers=[])

        result = await store.process_post(make_post(), make_account())

        assert result.signal is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_concurrent_same_post_classified_once(
        self, store, signal_classifier, make_analysis, make_post, make_account
    ) -> None:
        gate = asyncio.Event()

        async def slow_classify(text: str, handle: str):
            await gate.wait()
            return make_analysis()

        signal_classifier.classify_signal.side_effect = slow_classify
        account = make_account()
        post = make_post(post_id="7")

        tasks = [asyncio.create_task(store.process_post(post, account)) for _ in range(5)]
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*tasks)

        assert sum(r.is_new for r in results) == 1
        assert len({r.signal.id for r in results}) == 1
        assert len(store) == 1
        signal_classifier.classify_signal.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_classifier_crash_propagates_and_releases(
        self, store, signal_classifier, make_analysis, make_post, make_account
    ) -> None:
        signal_classifier.classify_signal.side_effect = RuntimeError("prompt build failed")
        with pytest.raises(RuntimeError):
            await store.process_post(make_post(post_id="9"), make_account())

        signal_classifier.classify_signal.side_effect = None
        signal_classifier.classify_signal.return_value = make_analysis()
        result = await store.process_post(make_post(post_id="9"), make_account())
        assert result.is_new is True


class TestList:
    @pytest.mark.asyncio
    async def test_category_filter_sorted_desc(self, store, make_post, make_account) -> None:
        crypto = make_account(account_id="acc_c", handle="@coin", category=Category.crypto)
        stocks = make_account(account_id="acc_s", handle="@eq", category=Category.stocks)

        await store.process_post(make_post(post_id="1", minutes_ago=30), crypto)
        await store.process_post(make_post(post_id="2", minutes_ago=10), stocks)
        await store.process_post(make_post(post_id="3", minutes_ago=5), crypto)
        await store.process_post(make_post(post_id="4", minutes_ago=60), crypto)

        signals = store.list(category=Category.crypto)

        assert [s.post_id for s in signals] == ["3", "1", "4"]
        assert all(s.category == Category.crypto for s in signals)

    @pytest.mark.asyncio
    async def test_all_and_limit(self, store, make_post, make_account) -> None:
        account = make_account()
        for i in range(5):
            await store.process_post(make_post(post_id=str(i), minutes_ago=i), account)

        assert len(store.list(category="all")) == 5
        assert [s.post_id for s in store.list(limit=2)] == ["0", "1"]

    def test_empty(self, store) -> None:
        assert store.list() == []


class TestRemoval:
    @pytest.mark.asyncio
    async def test_clear(self, store, make_post, make_account) -> None:
        account = make_account()
        await store.process_post(make_post(post_id="1"), account)
        await store.process_post(make_post(post_id="2"), account)

        assert store.clear() == 2
        assert store.list() == []
        # Cleared posts are classified again on the next pass
        result = await store.process_post(make_post(post_id="1"), account)
        assert result.is_new is True

    @pytest.mark.asyncio
    async def test_remove_for_account(self, store, make_post, make_account) -> None:
        keep = make_account(account_id="acc_keep")
        drop = make_account(account_id="acc_drop")
        await store.process_post(make_post(post_id="1"), keep)
        await store.process_post(make_post(post_id="2"), drop)
        await store.process_post(make_post(post_id="3"), drop)

        assert store.remove_for_account("acc_drop") == 2
        assert [s.post_id for s in store.list()] == ["1"]
        assert store.get_by_post("2") is None

    @pytest.mark.asyncio
    async def test_classification_finishing_after_removal_is_dropped(
        self, store, signal_classifier, make_analysis, make_post, make_account
    ) -> None:
        gate = asyncio.Event()

        async def slow_classify(text: str, handle: str):
            await gate.wait()
            return make_analysis()

        signal_classifier.classify_signal.side_effect = slow_classify
        account = make_account(account_id="acc_gone")

        task = asyncio.create_task(store.process_post(make_post(post_id="late"), account))
        await asyncio.sleep(0)
        store.remove_for_account("acc_gone")
        gate.set()
        result = await task

        assert result.signal is None
        assert result.is_new is False
        assert len(store) == 0
        assert store.get_by_post("late") is None


class TestRequire:
    @pytest.mark.asyncio
    async def test_returns_stored_signal(self, store, make_post, make_account) -> None:
        created = await store.process_post(make_post(post_id="9"), make_account())
        assert created.signal is not None
        assert store.require(created.signal.id) == created.signal

    def test_unknown_id_raises(self, store) -> None:
        with pytest.raises(SignalNotFoundError, match="sig_missing"):
            store.require("sig_missing")


class TestPersistence:
    @pytest.mark.asyncio
    async def test_load_rebuilds_post_index(
        self, kv, signal_classifier, make_post, make_account
    ) -> None:
        first = SignalStore(signal_classifier, kv=kv, key="test_signals")
        await first.process_post(make_post(post_id="42"), make_account())
        await first.flush()
        assert len(orjson.loads(await kv.get("test_signals"))) == 1

        second = SignalStore(signal_classifier, kv=kv, key="test_signals")
        assert await second.load() == 1
        result = await second.process_post(make_post(post_id="42"), make_account())

        assert result.is_new is False
        signal_classifier.classify_signal.assert_awaited_once()
