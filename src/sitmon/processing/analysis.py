"""Deep analysis of a signal with the smart LLM.

Goes beyond classification: a plain-language summary, the bull case, and a
pump-and-dump risk assessment with concrete red flags. The result can be
attached to a watchlist position as an ``AiAnalysis``.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_ai import Agent
from pydantic_ai.output import PromptedOutput

from sitmon.core.exceptions import AnalysisError
from sitmon.core.logging import get_logger
from sitmon.processing.common.llm import create_model
from sitmon.processing.models import AiAnalysis, ScamRisk, utcnow

if TYPE_CHECKING:
    from pydantic_ai.models import Model

    from sitmon.config import Settings

logger = get_logger(__name__)


class AnalysisSentiment(str, Enum):
    very_bullish = "very_bullish"
    bullish = "bullish"
    neutral = "neutral"
    bearish = "bearish"
    very_bearish = "very_bearish"


class DeepAnalysis(BaseModel):
    """LLM output for a deep signal analysis."""

    summary: str = Field(description="2-3 sentence summary of what the post is saying")
    bull_case: str = Field(description="The bull case in plain language, 2-3 sentences")
    scam_risk: ScamRisk = Field(description="Pump-and-dump or scam risk: low, medium or high")
    scam_indicators: list[str] = Field(
        default_factory=list,
        description="Specific red flags found (empty if none)",
    )
    sentiment: AnalysisSentiment = Field(description="Overall sentiment of the post")
    key_points: list[str] = Field(
        default_factory=list,
        description="3-5 key takeaways",
    )


ANALYSIS_SYSTEM_PROMPT = """You are a skeptical trading analyst reviewing social-media trade ideas.

For the post you are given:
1. Summarize what the author is actually claiming
2. Lay out the bull case as the author would argue it
3. Assess pump-and-dump risk

Red flags include: urgency ("buy now", "last chance"), guaranteed returns,
micro-cap or newly listed tickers, coordinated hype, undisclosed positions,
price targets with no rationale, and heavy emoji or all-caps promotion.

Be concrete. Only list red flags that are present in the post."""


def build_analysis_prompt(content: str, tickers: list[str], author: str | None = None) -> str:
    lines = [f'Post: "{content}"']
    if author:
        lines.append(f"Author: {author}")
    if tickers:
        lines.append(f"Tickers: {', '.join(tickers)}")
    return "\n".join(lines)


def to_ai_analysis(analysis: DeepAnalysis) -> AiAnalysis:
    """Convert LLM output to the record stored on a watchlist position."""
    return AiAnalysis(
        summary=analysis.summary,
        bull_case=analysis.bull_case,
        scam_risk=analysis.scam_risk,
        scam_indicators=list(analysis.scam_indicators),
        analyzed_at=utcnow(),
    )


class SignalAnalyzer:
    """Runs deep analysis with a lazily created pydantic-ai agent."""

    def __init__(self, settings: Settings | None = None, model: Model | str | None = None) -> None:
        self._settings = settings
        self._model = model
        self._agent: Agent[None, DeepAnalysis] | None = None

    @property
    def agent(self) -> Agent[None, DeepAnalysis]:
        if self._agent is None:
            self._agent = self._create_agent()
        return self._agent

    def _create_agent(self) -> Agent[None, DeepAnalysis]:
        model = self._model or create_model(smart=True, settings=self._settings)
        return Agent(
            model,
            output_type=PromptedOutput(DeepAnalysis),
            system_prompt=ANALYSIS_SYSTEM_PROMPT,
        )

    async def analyze(
        self,
        content: str,
        tickers: list[str],
        author: str | None = None,
    ) -> DeepAnalysis:
        """Analyze a post.

        Raises:
            AnalysisError: The LLM call failed or returned unusable output
        """
        prompt = build_analysis_prompt(content, tickers, author)
        try:
            result = await self.agent.run(prompt)
        except Exception as e:
            logger.exception("Deep analysis failed", tickers=tickers)
            raise AnalysisError(f"Analysis failed: {e}") from e

        analysis = result.output
        logger.info(
            "Deep analysis complete",
            tickers=tickers,
            scam_risk=analysis.scam_risk.value,
            red_flags=len(analysis.scam_indicators),
        )
        return analysis
