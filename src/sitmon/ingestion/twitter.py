"""Twitter/X post source using the v2 REST API (bearer token auth).

Degrades instead of failing: without credentials, or when the API errors,
lookups return a mock profile (external id ``mock_<username>``) and timeline
fetches return no posts. Mock accounts never hit the timeline endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx
import structlog

from sitmon.core.constants import (
    DEFAULT_TWITTER_API_URL,
    MOCK_ID_PREFIX,
    TWITTER_MAX_RESULTS,
    TWITTER_MIN_RESULTS,
)
from sitmon.core.exceptions import PostSourceError

logger = structlog.get_logger(__name__)

# Twitter's legacy timestamp format: "Sun Jan 18 13:14:48 +0000 2026"
TWITTER_TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %z %Y"

# HTTP statuses with a specific diagnostic for the mock profile
_STATUS_ERRORS = {
    401: "Twitter API: Unauthorized (401) - Check bearer token",
    403: "Twitter API: Forbidden (403) - Check API access level",
    429: "Twitter API: Rate limited (429)",
}


def parse_twitter_timestamp(timestamp_str: str | None) -> datetime:
    """Parse timestamp from Twitter API, handling multiple formats."""
    if not timestamp_str:
        return datetime.now(timezone.utc)

    # ISO format first (v2 API: "2026-01-18T13:14:48.000Z")
    try:
        return datetime.fromisoformat(timestamp_str.replace("Z", "+00:00"))
    except ValueError:
        pass

    try:
        return datetime.strptime(timestamp_str, TWITTER_TIMESTAMP_FORMAT)
    except ValueError:
        pass

    logger.warning("unknown_timestamp_format", timestamp=timestamp_str)
    return datetime.now(timezone.utc)


def build_post_url(username: str, post_id: str) -> str:
    return f"https://twitter.com/{username.lstrip('@')}/status/{post_id}"


def is_mock_id(external_id: str) -> bool:
    return external_id.startswith(MOCK_ID_PREFIX)


@dataclass
class Post:
    """A post fetched from an account timeline."""

    post_id: str
    text: str
    posted_at: datetime
    url: str
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class AccountProfile:
    """Result of an account lookup."""

    external_id: str
    username: str
    display_name: str
    bio: str = ""
    followers_count: int = 0
    is_mock: bool = False
    api_error: str | None = None


def mock_profile(username: str, api_error: str | None = None) -> AccountProfile:
    """Placeholder profile used when the API cannot be reached."""
    return AccountProfile(
        external_id=f"{MOCK_ID_PREFIX}{username}",
        username=username,
        display_name=username,
        bio="Trading account",
        is_mock=True,
        api_error=api_error,
    )


class PostSource(Protocol):
    """Social post source consumed by the pipeline."""

    async def lookup_account(self, username: str) -> AccountProfile | None: ...

    async def fetch_recent_posts(
        self, external_id: str, username: str, max_count: int
    ) -> list[Post]: ...

    async def get_post_by_id(self, post_id: str) -> Post: ...


@dataclass
class TwitterClient:
    """Async Twitter/X v2 client."""

    bearer_token: str | None
    base_url: str = DEFAULT_TWITTER_API_URL
    timeout: float = 15.0

    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)

    @property
    def has_credentials(self) -> bool:
        return bool(self.bearer_token)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Authorization": f"Bearer {self.bearer_token}"},
                timeout=self.timeout,
            )
        return self._client

    async def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        """GET a v2 endpoint and decode the JSON body.

        Raises:
            httpx.HTTPStatusError: Non-2xx response
            httpx.RequestError: Transport failure
            ValueError: Body is not a JSON object
        """
        response = await self._get_client().get(path, params=params)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("Response body is not a JSON object")
        return data

    async def lookup_account(self, username: str) -> AccountProfile | None:
        """Look up a user by username.

        Returns:
            The profile, a mock profile when the API is unavailable, or None
            when the API reports that the user does not exist
        """
        username = username.lstrip("@").strip()
        log = logger.bind(username=username)

        if not self.has_credentials:
            log.info("twitter_no_credentials_mock_user")
            return mock_profile(username)

        try:
            data = await self._get_json(
                f"/2/users/by/username/{username}",
                {"user.fields": "description,public_metrics"},
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                log.info("twitter_user_not_found")
                return None
            log.error("twitter_api_error", status_code=status)
            return mock_profile(username, _STATUS_ERRORS.get(status, f"Twitter API error: {status}"))
        except httpx.RequestError as e:
            log.error("twitter_request_error", error=str(e))
            return mock_profile(username, f"Error: {e}")
        except ValueError as e:
            log.error("twitter_parse_error", error=str(e))
            return mock_profile(username, "Failed to parse Twitter response")

        user = data.get("data")
        if not isinstance(user, dict):
            errors = data.get("errors") or []
            log.info("twitter_user_not_found", errors=errors[:1])
            return None

        metrics = user.get("public_metrics")
        if not isinstance(metrics, dict):
            metrics = {}
        try:
            followers = int(metrics.get("followers_count") or 0)
        except (TypeError, ValueError) as e:
            log.error("twitter_parse_error", error=str(e))
            return mock_profile(username, "Failed to parse Twitter response")

        return AccountProfile(
            external_id=str(user.get("id", "")) or f"{MOCK_ID_PREFIX}{username}",
            username=str(user.get("username", username)),
            display_name=str(user.get("name") or username),
            bio=str(user.get("description") or ""),
            followers_count=followers,
        )

    async def fetch_recent_posts(
        self, external_id: str, username: str, max_count: int = 10
    ) -> list[Post]:
        """Fetch the most recent posts for a user, newest first.

        Returns an empty list for mock users, missing credentials or API errors.
        """
        log = logger.bind(username=username, external_id=external_id)

        if not self.has_credentials or is_mock_id(external_id):
            log.debug("twitter_fetch_skipped_mock")
            return []

        max_results = min(max(max_count, TWITTER_MIN_RESULTS), TWITTER_MAX_RESULTS)
        try:
            data = await self._get_json(
                f"/2/users/{external_id}/tweets",
                {"max_results": str(max_results), "tweet.fields": "created_at,public_metrics"},
            )
        except httpx.HTTPStatusError as e:
            log.error("twitter_api_error", status_code=e.response.status_code)
            return []
        except httpx.RequestError as e:
            log.error("twitter_request_error", error=str(e))
            return []
        except ValueError as e:
            log.error("twitter_parse_error", error=str(e))
            return []

        posts: list[Post] = []
        for tweet_data in data.get("data") or []:
            try:
                posts.append(self._parse_post(tweet_data, username))
            except (KeyError, TypeError) as e:
                log.warning("tweet_parse_error", error=str(e))
                continue

        log.debug("fetched_posts", count=len(posts))
        return posts[:max_count]

    async def get_post_by_id(self, post_id: str) -> Post:
        """Fetch a single post.

        Raises:
            PostSourceError: With a user-facing message when the post cannot
                be fetched
        """
        log = logger.bind(post_id=post_id)

        if not self.has_credentials:
            raise PostSourceError("No API key")

        try:
            data = await self._get_json(
                f"/2/tweets/{post_id}",
                {"tweet.fields": "text,created_at,author_id", "expansions": "author_id"},
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            log.error("twitter_api_error", status_code=status)
            raise PostSourceError(_STATUS_ERRORS.get(status, f"API error: {status}")) from e
        except httpx.RequestError as e:
            log.error("twitter_request_error", error=str(e))
            raise PostSourceError(f"Failed to fetch tweet: {e}") from e
        except ValueError as e:
            raise PostSourceError("Failed to parse Twitter response") from e

        tweet = data.get("data")
        if not isinstance(tweet, dict) or not tweet.get("text"):
            errors = data.get("errors") or []
            message = errors[0].get("detail") if errors and isinstance(errors[0], dict) else None
            raise PostSourceError(message or "Twitter API did not return the tweet text")

        users = (data.get("includes") or {}).get("users") or []
        username = users[0].get("username", "i") if users else "i"
        return self._parse_post(tweet, username)

    def _parse_post(self, data: dict[str, Any], username: str) -> Post:
        """Parse a raw v2 tweet object into a Post."""
        post_id = str(data["id"])
        return Post(
            post_id=post_id,
            text=str(data.get("text", "")),
            posted_at=parse_twitter_timestamp(data.get("created_at")),
            url=build_post_url(username, post_id),
            raw=data,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TwitterClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
