"""Tests for data models and AI response validation."""

import pytest
from pydantic import ValidationError

from sitmon.processing.models import (
    Account,
    AccountClassification,
    Category,
    Confidence,
    Sentiment,
    Signal,
    SignalAnalysis,
    new_id,
)


class TestSignalAnalysis:
    def test_full_payload(self) -> None:
        analysis = SignalAnalysis.model_validate(
            {
                "isSignal": True,
                "tickers": ["$gme", "BTC"],
                "sentiment": "Bullish",
                "confidence": "HIGH",
                "entryPrice": 25.5,
                "targetPrice": "$40",
                "stopPrice": None,
                "reasoning": "Entry and target given",
            }
        )
        assert analysis.is_signal is True
        assert analysis.tickers == ["GME", "BTC"]
        assert analysis.sentiment == Sentiment.bullish
        assert analysis.confidence == Confidence.high
        assert analysis.entry_price == 25.5
        assert analysis.target_price == 40.0
        assert analysis.stop_price is None
        assert analysis.is_actionable

    def test_empty_payload_defaults(self) -> None:
        analysis = SignalAnalysis.model_validate({})
        assert analysis.is_signal is False
        assert analysis.tickers == []
        assert analysis.sentiment == Sentiment.neutral
        assert analysis.confidence == Confidence.low
        assert analysis.reasoning == "Analyzed by AI"

    def test_malformed_fields_default_independently(self) -> None:
        analysis = SignalAnalysis.model_validate(
            {
                "isSignal": True,
                "tickers": "NVDA",
                "sentiment": "to the moon",
                "confidence": 7,
                "entryPrice": "cheap",
                "reasoning": "",
            }
        )
        assert analysis.is_signal is True
        assert analysis.tickers == []
        assert analysis.sentiment == Sentiment.neutral
        assert analysis.confidence == Confidence.low
        assert analysis.entry_price is None
        assert analysis.reasoning == "Analyzed by AI"

    def test_signal_without_tickers_not_actionable(self) -> None:
        analysis = SignalAnalysis.model_validate({"isSignal": True, "tickers": []})
        assert not analysis.is_actionable

    def test_string_is_signal(self) -> None:
        assert SignalAnalysis.model_validate({"isSignal": "true"}).is_signal is True
        assert SignalAnalysis.model_validate({"isSignal": "yes"}).is_signal is False

    def test_duplicate_and_blank_tickers_dropped(self) -> None:
        analysis = SignalAnalysis.model_validate({"tickers": ["aapl", "$AAPL", " ", 42]})
        assert analysis.tickers == ["AAPL"]

    @pytest.mark.parametrize("price", [0, -5, float("inf"), True, [1]])
    def test_invalid_prices(self, price: object) -> None:
        assert SignalAnalysis.model_validate({"stopPrice": price}).stop_price is None

    def test_comma_price_string(self) -> None:
        assert SignalAnalysis.model_validate({"targetPrice": "$1,234.5"}).target_price == 1234.5

    def test_non_signal(self) -> None:
        analysis = SignalAnalysis.non_signal("No AI service available")
        assert analysis.is_signal is False
        assert analysis.tickers == []
        assert analysis.reasoning == "No AI service available"

    def test_enum_values_pass_through(self) -> None:
        analysis = SignalAnalysis(sentiment=Sentiment.bearish, confidence=Confidence.medium)
        assert analysis.sentiment == Sentiment.bearish
        assert analysis.confidence == Confidence.medium


class TestAccountClassification:
    def test_valid(self) -> None:
        result = AccountClassification.model_validate(
            {"category": "Crypto", "confidence": 0.85, "reasoning": "BTC trader"}
        )
        assert result.category == Category.crypto
        assert result.confidence == 0.85

    def test_unknown_category_defaults_to_general(self) -> None:
        result = AccountClassification.model_validate({"category": "sports"})
        assert result.category == Category.general

    @pytest.mark.parametrize("confidence", [1.5, -0.1, "high", None, float("nan")])
    def test_invalid_confidence_defaults(self, confidence: object) -> None:
        result = AccountClassification.model_validate({"confidence": confidence})
        assert result.confidence == 0.5

    def test_zero_confidence_is_valid(self) -> None:
        assert AccountClassification.model_validate({"confidence": 0}).confidence == 0.0

    def test_numeric_string_confidence(self) -> None:
        assert AccountClassification.model_validate({"confidence": "0.7"}).confidence == 0.7

    def test_fallback(self) -> None:
        result = AccountClassification.fallback("Empty bio")
        assert result.category == Category.general
        assert result.confidence == 0.5


class TestRecords:
    def test_signal_requires_tickers(self, make_account, make_post) -> None:
        post = make_post()
        with pytest.raises(ValidationError):
            Signal(
                id="sig_1",
                account_id="acc_1",
                account_handle="@trader",
                account_name="Trader",
                post_id=post.post_id,
                post_url=post.url,
                content=post.text,
                tickers=[],
                sentiment=Sentiment.bullish,
                confidence=Confidence.high,
                category=Category.stocks,
                posted_at=post.posted_at,
            )

    def test_account_username(self, make_account) -> None:
        account: Account = make_account(handle="@CryptoKing")
        assert account.username == "CryptoKing"

    def test_new_id_prefix_and_uniqueness(self) -> None:
        ids = {new_id("sig_") for _ in range(100)}
        assert len(ids) == 100
        assert all(i.startswith("sig_") for i in ids)

    def test_account_json_roundtrip(self, make_account) -> None:
        account = make_account()
        restored = Account.model_validate(account.model_dump(mode="json"))
        assert restored == account
