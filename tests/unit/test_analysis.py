"""Tests for deep signal analysis."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from sitmon.core.exceptions import AnalysisError
from sitmon.processing.analysis import (
    AnalysisSentiment,
    DeepAnalysis,
    SignalAnalyzer,
    build_analysis_prompt,
    to_ai_analysis,
)
from sitmon.processing.models import ScamRisk


def _deep_analysis(**overrides: object) -> DeepAnalysis:
    data: dict[str, object] = {
        "summary": "Author claims a breakout in a micro-cap.",
        "bull_case": "Volume is rising into resistance.",
        "scam_risk": "high",
        "scam_indicators": ["Urgency", "Guaranteed returns"],
        "sentiment": "very_bullish",
        "key_points": ["Micro-cap", "No rationale for target"],
    }
    data.update(overrides)
    return DeepAnalysis.model_validate(data)


def _analyzer_with(run: AsyncMock) -> SignalAnalyzer:
    analyzer = SignalAnalyzer()
    analyzer._agent = MagicMock()
    analyzer._agent.run = run
    return analyzer


class TestBuildPrompt:
    def test_includes_content_author_and_tickers(self) -> None:
        prompt = build_analysis_prompt("Buy $XYZ now!!!", ["XYZ"], "@pumper")
        assert 'Post: "Buy $XYZ now!!!"' in prompt
        assert "Author: @pumper" in prompt
        assert "Tickers: XYZ" in prompt

    def test_optional_fields_omitted(self) -> None:
        assert build_analysis_prompt("gm", []) == 'Post: "gm"'


class TestSignalAnalyzer:
    @pytest.mark.asyncio
    async def test_returns_agent_output(self) -> None:
        expected = _deep_analysis()
        run = AsyncMock(return_value=SimpleNamespace(output=expected))
        analyzer = _analyzer_with(run)

        result = await analyzer.analyze("Buy $XYZ now!!!", ["XYZ"], "@pumper")

        assert result == expected
        assert result.sentiment == AnalysisSentiment.very_bullish
        prompt = run.await_args.args[0]
        assert "Buy $XYZ now!!!" in prompt

    @pytest.mark.asyncio
    async def test_failure_raises_analysis_error(self) -> None:
        analyzer = _analyzer_with(AsyncMock(side_effect=RuntimeError("rate limited")))
        with pytest.raises(AnalysisError, match="rate limited"):
            await analyzer.analyze("Buy $XYZ", ["XYZ"])

    def test_agent_created_lazily_with_smart_model(self) -> None:
        with (
            patch("sitmon.processing.analysis.create_model", return_value="test") as create,
            patch("sitmon.processing.analysis.Agent") as agent_cls,
        ):
            analyzer = SignalAnalyzer()
            create.assert_not_called()
            first = analyzer.agent
            second = analyzer.agent

        assert first is second
        create.assert_called_once_with(smart=True, settings=None)
        agent_cls.assert_called_once()


class TestToAiAnalysis:
    def test_maps_fields(self) -> None:
        ai = to_ai_analysis(_deep_analysis())
        assert ai.summary.startswith("Author claims")
        assert ai.bull_case == "Volume is rising into resistance."
        assert ai.scam_risk == ScamRisk.high
        assert ai.scam_indicators == ["Urgency", "Guaranteed returns"]
        assert ai.analyzed_at is not None
