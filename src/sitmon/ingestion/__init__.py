"""Ingestion layer: social post sources."""

from sitmon.ingestion.twitter import (
    AccountProfile,
    Post,
    PostSource,
    TwitterClient,
    parse_twitter_timestamp,
)

__all__ = [
    "AccountProfile",
    "Post",
    "PostSource",
    "TwitterClient",
    "parse_twitter_timestamp",
]
