"""Unit tests for the watchlist."""

from datetime import timedelta

import orjson
import pytest

from sitmon.core.exceptions import InvalidInputError, PositionNotFoundError
from sitmon.processing.models import AiAnalysis, PositionSentiment, ScamRisk
from sitmon.processing.watchlist import Watchlist


@pytest.fixture
def watchlist(kv) -> Watchlist:
    return Watchlist(kv=kv, key="test_positions")


class TestAddPosition:
    @pytest.mark.asyncio
    async def test_creates_position(self, watchlist: Watchlist) -> None:
        position = await watchlist.add_position(
            "$aapl", PositionSentiment.bullish, notes="earnings run", entry_price=190.5
        )

        assert position.id.startswith("pos_")
        assert position.ticker == "AAPL"
        assert position.sentiment == PositionSentiment.bullish
        assert position.notes == "earnings run"
        assert position.entry_price == 190.5
        assert watchlist.has_position("AAPL")

    @pytest.mark.asyncio
    async def test_readd_merges_only_provided_options(self, watchlist: Watchlist) -> None:
        first = await watchlist.add_position("TSLA", PositionSentiment.bullish, entry_price=245)
        second = await watchlist.add_position("tsla", PositionSentiment.bearish)

        assert len(watchlist) == 1
        assert second.id == first.id
        assert second.sentiment == PositionSentiment.bearish
        assert second.entry_price == 245
        assert second.added_at == first.added_at

    @pytest.mark.asyncio
    async def test_readd_overwrites_provided_options(self, watchlist: Watchlist) -> None:
        await watchlist.add_position("TSLA", PositionSentiment.bullish, notes="old", entry_price=245)
        updated = await watchlist.add_position(
            "TSLA", PositionSentiment.bullish, notes="new", source_post_url="https://x.com/a/status/1"
        )

        assert updated.notes == "new"
        assert updated.entry_price == 245
        assert updated.source_post_url == "https://x.com/a/status/1"

    @pytest.mark.parametrize("ticker", ["", "   ", "$"])
    @pytest.mark.asyncio
    async def test_empty_ticker_rejected(self, watchlist: Watchlist, ticker: str) -> None:
        with pytest.raises(InvalidInputError):
            await watchlist.add_position(ticker, PositionSentiment.bullish)
        assert len(watchlist) == 0

    @pytest.mark.asyncio
    async def test_string_sentiment(self, watchlist: Watchlist) -> None:
        position = await watchlist.add_position("BTC", "bearish")
        assert position.sentiment == PositionSentiment.bearish


class TestLookups:
    @pytest.mark.asyncio
    async def test_ticker_variants_resolve_to_same_position(self, watchlist: Watchlist) -> None:
        position = await watchlist.add_position("AAPL", PositionSentiment.bullish)
        for variant in ("$aapl", "AAPL", "aapl", " $AAPL "):
            assert watchlist.has_position(variant)
            assert watchlist.get_position_by_ticker(variant) == position

    def test_unknown_ticker(self, watchlist: Watchlist) -> None:
        assert not watchlist.has_position("NOPE")
        assert watchlist.get_position_by_ticker("NOPE") is None

    @pytest.mark.asyncio
    async def test_list_newest_first(self, watchlist: Watchlist) -> None:
        old = await watchlist.add_position("AAA", PositionSentiment.bullish)
        new = await watchlist.add_position("BBB", PositionSentiment.bullish)
        # Force a deterministic order regardless of clock resolution
        backdated = old.model_copy(update={"added_at": new.added_at - timedelta(seconds=1)})
        watchlist._positions.replace(backdated)

        assert [p.ticker for p in watchlist.list()] == ["BBB", "AAA"]


class TestRemovePosition:
    @pytest.mark.asyncio
    async def test_remove(self, watchlist: Watchlist) -> None:
        position = await watchlist.add_position("NVDA", PositionSentiment.bullish)

        assert await watchlist.remove_position(position.id) is True
        assert not watchlist.has_position("NVDA")
        assert await watchlist.remove_position(position.id) is False

    @pytest.mark.asyncio
    async def test_readd_after_remove_creates_new(self, watchlist: Watchlist) -> None:
        first = await watchlist.add_position("NVDA", PositionSentiment.bullish)
        await watchlist.remove_position(first.id)
        second = await watchlist.add_position("NVDA", PositionSentiment.bullish)
        assert second.id != first.id


class TestUpdates:
    @pytest.mark.asyncio
    async def test_update_position(self, watchlist: Watchlist) -> None:
        position = await watchlist.add_position("AMD", PositionSentiment.bullish)
        updated = await watchlist.update_position(
            position.id, sentiment=PositionSentiment.bearish, notes="rolled over"
        )
        assert updated.sentiment == PositionSentiment.bearish
        assert updated.notes == "rolled over"
        assert updated.ticker == "AMD"

    @pytest.mark.asyncio
    async def test_update_unknown_position(self, watchlist: Watchlist) -> None:
        with pytest.raises(PositionNotFoundError):
            await watchlist.update_position("pos_missing", notes="x")

    @pytest.mark.asyncio
    async def test_update_immutable_field(self, watchlist: Watchlist) -> None:
        position = await watchlist.add_position("AMD", PositionSentiment.bullish)
        with pytest.raises(InvalidInputError):
            await watchlist.update_position(position.id, ticker="INTC")

    @pytest.mark.asyncio
    async def test_update_ai_analysis(self, watchlist: Watchlist) -> None:
        position = await watchlist.add_position("PEPE", PositionSentiment.bullish)
        analysis = AiAnalysis(
            summary="Hype post",
            bull_case="Meme momentum",
            scam_risk=ScamRisk.high,
            scam_indicators=["Guaranteed returns"],
        )

        updated = await watchlist.update_ai_analysis(position.id, analysis)

        assert updated.ai_analysis is not None
        assert updated.ai_analysis.scam_risk == ScamRisk.high
        assert watchlist.get(position.id).ai_analysis == updated.ai_analysis


class TestPersistence:
    @pytest.mark.asyncio
    async def test_load_rebuilds_ticker_index(self, kv) -> None:
        first = Watchlist(kv=kv, key="test_positions")
        await first.add_position("SOL", PositionSentiment.bullish, entry_price=150)
        await first.flush()
        assert orjson.loads(await kv.get("test_positions"))[0]["ticker"] == "SOL"

        second = Watchlist(kv=kv, key="test_positions")
        assert await second.load() == 1
        assert second.has_position("$sol")
        assert second.get_position_by_ticker("sol").entry_price == 150
