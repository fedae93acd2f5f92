"""Application configuration via pydantic-settings."""

import json
from functools import lru_cache
from typing import Literal
from urllib.parse import unquote

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sitmon.core.constants import (
    DEFAULT_REFRESH_MAX_POSTS,
    DEFAULT_STORAGE_KEY_PREFIX,
    DEFAULT_TWITTER_API_URL,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Core
    env: Literal["development", "staging", "production"] = Field(
        default="development", alias="SITMON_ENV"
    )
    debug: bool = Field(default=False, alias="SITMON_DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="SITMON_LOG_LEVEL"
    )

    # Storage
    # "memory" loses all state on restart and is meant for tests and local runs
    storage_backend: Literal["memory", "redis"] = Field(default="memory")
    redis_url: str = Field(default="redis://localhost:6379/0")
    storage_key_prefix: str = Field(default=DEFAULT_STORAGE_KEY_PREFIX)

    # Twitter / X (post source)
    twitter_bearer_token: SecretStr | None = Field(default=None)
    twitter_api_base_url: str = Field(default=DEFAULT_TWITTER_API_URL)
    twitter_timeout: float = Field(default=15.0)

    # Accounts added on startup (handles, CSV or JSON list)
    seed_accounts: list[str] = Field(default_factory=list)

    @field_validator("twitter_bearer_token", mode="before")
    @classmethod
    def clean_bearer_token(cls, v: str | SecretStr | None) -> str | None:
        """Trim the token and decode it when it was pasted URL-encoded."""
        if v is None:
            return None
        if isinstance(v, SecretStr):
            v = v.get_secret_value()
        v = v.strip()
        if not v:
            return None
        if "%" in v:
            v = unquote(v)
        return v

    @field_validator("seed_accounts", mode="before")
    @classmethod
    def parse_seed_accounts(cls, v: str | list[str] | None) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                v = json.loads(v)
            else:
                v = [a.strip() for a in v.split(",") if a.strip()]
        return [a.lstrip("@") for a in v]

    # AI completion service
    # toolkit: plain HTTP chat endpoint (POST {toolkit_url}/agent/chat)
    # pydantic_ai: direct provider call through PydanticAI
    ai_backend: Literal["toolkit", "pydantic_ai"] = Field(default="toolkit")
    toolkit_url: str | None = Field(default=None)
    ai_timeout: float = Field(default=30.0)

    # LLM Provider (pydantic_ai backend and deep analysis)
    llm_provider: Literal["anthropic", "openai"] = Field(default="anthropic")
    anthropic_api_key: SecretStr | None = Field(default=None)
    openai_api_key: SecretStr | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    llm_model: str = Field(default="claude-3-5-haiku-20241022")
    llm_model_smart: str = Field(default="claude-sonnet-4-20250514")

    # Refresh pass
    refresh_max_posts: int = Field(
        default=DEFAULT_REFRESH_MAX_POSTS,
        ge=1,
        le=100,
        description="Most recent posts fetched per account on each refresh",
    )
    refresh_concurrency: int = Field(
        default=1,
        ge=1,
        description="Accounts refreshed at once (1 = strictly sequential)",
    )
    refresh_interval_seconds: int = Field(
        default=0,
        ge=0,
        description="Scheduled refresh interval in seconds (0 disables the job)",
    )

    @property
    def llm_configured(self) -> bool:
        """Whether the selected LLM provider has an API key (deep analysis needs one)."""
        if self.llm_provider == "anthropic":
            return self.anthropic_api_key is not None
        return self.openai_api_key is not None

    @property
    def ai_enabled(self) -> bool:
        """Whether a completion service can be built from this configuration."""
        if self.ai_backend == "toolkit":
            return bool(self.toolkit_url)
        return self.llm_configured


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
