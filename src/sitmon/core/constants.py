"""Application-wide constants.

These are fixed values that don't change between environments.
For configurable values, see config.py Settings.
"""

# ─────────────────────────────────────────────────────────────
# Twitter / X API (external constraints)
# ─────────────────────────────────────────────────────────────
DEFAULT_TWITTER_API_URL = "https://api.twitter.com"
TWITTER_MIN_RESULTS = 5  # v2 timeline endpoint rejects max_results below 5
TWITTER_MAX_RESULTS = 100
MOCK_ID_PREFIX = "mock_"

# ─────────────────────────────────────────────────────────────
# Refresh defaults
# ─────────────────────────────────────────────────────────────
DEFAULT_REFRESH_MAX_POSTS = 10
REFRESH_JOB_ID = "refresh_signals"

# ─────────────────────────────────────────────────────────────
# AI completion service
# ─────────────────────────────────────────────────────────────
TOOLKIT_CHAT_PATH = "/agent/chat"
DEFAULT_ACCOUNT_CONFIDENCE = 0.5

# ─────────────────────────────────────────────────────────────
# Storage keys (each collection persisted under its own key)
# ─────────────────────────────────────────────────────────────
DEFAULT_STORAGE_KEY_PREFIX = "situation_monitor"
ACCOUNTS_KEY = "accounts"
SIGNALS_KEY = "signals"
POSITIONS_KEY = "positions"

# ─────────────────────────────────────────────────────────────
# Id prefixes
# ─────────────────────────────────────────────────────────────
ACCOUNT_ID_PREFIX = "acc_"
SIGNAL_ID_PREFIX = "sig_"
POSITION_ID_PREFIX = "pos_"
