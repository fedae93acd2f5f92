"""AI classifiers for posts and accounts.

Both classifiers share one discipline:
1. Build a constrained prompt that asks for ONLY a JSON object
2. Send exactly one request through the completion service
3. Extract the first JSON object from the reply and validate it field by field
4. On any external failure return a safe default instead of raising

Only a crash while building the prompt propagates to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sitmon.core.logging import get_logger
from sitmon.processing.models import AccountClassification, SignalAnalysis
from sitmon.processing.parsing import extract_json_object

if TYPE_CHECKING:
    from sitmon.processing.common.completion import CompletionService

logger = get_logger(__name__)

SIGNAL_PROMPT_TEMPLATE = """Extract trading signal from this tweet. ONLY return isSignal: true if this is a real position/trade idea.

Tweet: "{text}"
Author: {handle}

Return isSignal: true ONLY if this is:
- Actual position (bought/sold)
- Trade idea with entry/target
- Technical setup with levels
- Clear bullish/bearish call on a ticker

Return isSignal: false if:
- General opinion without actionable info
- News repost without analysis
- Joke/meme
- Question
- No specific ticker mentioned

Extract tickers as uppercase symbols (GME, BTC, ETH, etc). Include $ prefix removal.

Respond with ONLY a JSON object in this exact format, no other text:
{{"isSignal": true/false, "tickers": ["SYMBOL"], "sentiment": "bullish|bearish|neutral", "confidence": "high|medium|low", "entryPrice": number|null, "targetPrice": number|null, "stopPrice": number|null, "reasoning": "brief explanation"}}"""

ACCOUNT_PROMPT_TEMPLATE = """You are a trading signal classifier. Analyze this Twitter account and categorize it.

Username: @{username}
Bio: "{bio}"

Categories:
- stocks: US equities, options, day trading, stock market analysis
- crypto: Bitcoin, altcoins, DeFi, cryptocurrency trading
- politics: Political analysis, elections, policy impacts on markets
- general: Everything else

Respond with ONLY a JSON object in this exact format, no other text:
{{"category": "stocks|crypto|politics|general", "confidence": 0.0-1.0, "reasoning": "brief explanation"}}"""


def build_signal_prompt(text: str, account_handle: str) -> str:
    """Build the signal extraction prompt for one post."""
    return SIGNAL_PROMPT_TEMPLATE.format(text=text, handle=account_handle)


def build_account_prompt(username: str, bio: str) -> str:
    """Build the account categorization prompt."""
    return ACCOUNT_PROMPT_TEMPLATE.format(username=username.lstrip("@"), bio=bio)


class SignalClassifier:
    """Classify a single post into a SignalAnalysis."""

    def __init__(self, completion: CompletionService | None) -> None:
        self._completion = completion

    async def classify_signal(self, post_text: str, account_handle: str) -> SignalAnalysis:
        """Classify a post.

        Args:
            post_text: Raw post text
            account_handle: Author handle, for the prompt only

        Returns:
            Validated SignalAnalysis; ``is_signal=False`` on any failure
        """
        if self._completion is None:
            logger.debug("No AI service, returning non-signal", handle=account_handle)
            return SignalAnalysis.non_signal("No AI service available")

        prompt = build_signal_prompt(post_text, account_handle)

        try:
            content = await self._completion.complete(prompt)
        except Exception as e:
            logger.warning(
                "Signal classification request failed",
                handle=account_handle,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SignalAnalysis.non_signal(f"Analysis failed: {type(e).__name__}")

        payload = extract_json_object(content)
        if payload is None:
            logger.warning(
                "No JSON object in signal classification",
                handle=account_handle,
                content_preview=content[:200],
            )
            return SignalAnalysis.non_signal("Could not parse AI response")

        analysis = SignalAnalysis.model_validate(payload)
        logger.debug(
            "Post classified",
            handle=account_handle,
            is_signal=analysis.is_signal,
            tickers=analysis.tickers,
            sentiment=analysis.sentiment.value,
            confidence=analysis.confidence.value,
        )
        return analysis


class AccountClassifier:
    """Classify an account's bio into one of the four categories."""

    def __init__(self, completion: CompletionService | None) -> None:
        self._completion = completion

    async def classify_account(self, username: str, bio: str) -> AccountClassification:
        """Classify an account.

        A blank bio carries no signal and defaults to ``general`` without
        calling the AI service.
        """
        if not bio.strip():
            return AccountClassification.fallback("Empty bio, defaulting to general")

        if self._completion is None:
            logger.debug("No AI service, defaulting to general", username=username)
            return AccountClassification.fallback("No AI service available")

        prompt = build_account_prompt(username, bio)

        try:
            content = await self._completion.complete(prompt)
        except Exception as e:
            logger.warning(
                "Account classification request failed",
                username=username,
                error=str(e),
                error_type=type(e).__name__,
            )
            return AccountClassification.fallback("Classification failed, defaulting to general")

        payload = extract_json_object(content)
        if payload is None:
            logger.warning(
                "No JSON object in account classification",
                username=username,
                content_preview=content[:200],
            )
            return AccountClassification.fallback("Could not parse AI response")

        result = AccountClassification.model_validate(payload)
        logger.info(
            "Account classified",
            username=username,
            category=result.category.value,
            confidence=result.confidence,
        )
        return result
