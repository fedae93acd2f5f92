"""Rule-based ticker and sentiment extraction.

Fast, local, no network. Used for manual post imports and whenever the
AI classifier is not invoked:
- Cashtags: ``$`` followed by 1-5 letters
- Sentiment: keyword counts with a bullish bias on ties
"""

import re

from sitmon.processing.models import PositionSentiment

# =============================================================================
# Rule-based patterns
# =============================================================================

# $AAPL, $btc (the word boundary keeps "$GOOGLE" from matching as "$GOOGL")
_cashtag_regex = re.compile(r"\$([A-Za-z]{1,5})\b")

# twitter.com/<user>/status/<id> and x.com/<user>/status/<id>
_post_url_regexes = [
    re.compile(r"twitter\.com/\w+/status/(\d+)"),
    re.compile(r"x\.com/\w+/status/(\d+)"),
]

BULLISH_KEYWORDS = (
    "buy",
    "long",
    "bullish",
    "moon",
    "calls",
    "breakout",
    "support",
    "accumulate",
    "load",
    "adding",
)

BEARISH_KEYWORDS = (
    "sell",
    "short",
    "bearish",
    "puts",
    "dump",
    "resistance",
    "crash",
    "fade",
    "exit",
)


def extract_tickers(text: str) -> set[str]:
    """Extract cashtag symbols from text.

    Args:
        text: Free text, e.g. a pasted post

    Returns:
        Deduplicated uppercase symbols without the ``$``
    """
    return {match.upper() for match in _cashtag_regex.findall(text)}


def detect_sentiment(text: str) -> PositionSentiment:
    """Classify text as bullish or bearish by keyword counts.

    Each keyword counts once if it appears anywhere in the text
    (case-insensitive substring match). Ties, including text with no
    keywords at all, resolve to bullish.
    """
    lower = text.lower()
    bullish_count = sum(1 for word in BULLISH_KEYWORDS if word in lower)
    bearish_count = sum(1 for word in BEARISH_KEYWORDS if word in lower)

    if bullish_count >= bearish_count:
        return PositionSentiment.bullish
    return PositionSentiment.bearish


def extract_post_id(url: str) -> str | None:
    """Extract the numeric post id from a Twitter/X status URL."""
    for pattern in _post_url_regexes:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None
