"""AI completion services.

The classifiers only need ``complete(prompt) -> text``. Two backends:
- ToolkitCompletionClient: HTTP chat endpoint (POST {base_url}/agent/chat)
- PydanticAICompletionClient: direct provider call through a PydanticAI agent

Both raise on failure; callers own the fail-safe defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from pydantic_ai import Agent

from sitmon.core.constants import TOOLKIT_CHAT_PATH
from sitmon.core.exceptions import LLMError
from sitmon.core.logging import get_logger
from sitmon.processing.common.llm import create_model

if TYPE_CHECKING:
    from sitmon.config import Settings

logger = get_logger(__name__)


class CompletionService(Protocol):
    """Anything that turns a single user prompt into completion text."""

    async def complete(self, prompt: str) -> str: ...


def _extract_content(data: Any) -> str:
    """Pull the assistant text out of a toolkit chat response.

    Accepts ``{"messages": [{"content": ...}]}`` or ``{"content": ...}``.
    """
    if not isinstance(data, dict):
        return ""
    messages = data.get("messages")
    if isinstance(messages, list) and messages:
        first = messages[0]
        if isinstance(first, dict) and isinstance(first.get("content"), str):
            return str(first["content"])
    content = data.get("content")
    return content if isinstance(content, str) else ""


@dataclass
class ToolkitCompletionClient:
    """Completion client for an agent-toolkit style chat endpoint."""

    base_url: str
    timeout: float = 30.0

    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        return self._client

    async def complete(self, prompt: str) -> str:
        """Send one user message and return the assistant text.

        Raises:
            httpx.HTTPStatusError: Non-2xx response
            httpx.RequestError: Endpoint unreachable or timed out
            LLMError: Response body is not JSON
        """
        client = self._get_client()
        response = await client.post(
            TOOLKIT_CHAT_PATH,
            json={"messages": [{"role": "user", "content": prompt}]},
        )
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as e:
            raise LLMError(f"Completion response is not JSON: {e}") from e
        return _extract_content(data)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None


class PydanticAICompletionClient:
    """Completion client backed by a plain-text PydanticAI agent."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings
        self._agent: Agent[None, str] | None = None

    @property
    def agent(self) -> Agent[None, str]:
        """Get or create the completion agent."""
        if self._agent is None:
            self._agent = Agent(create_model(smart=False, settings=self._settings), output_type=str)
        return self._agent

    async def complete(self, prompt: str) -> str:
        result = await self.agent.run(prompt)
        return result.output

    async def close(self) -> None:
        return None


def create_completion_service(
    settings: Settings,
) -> ToolkitCompletionClient | PydanticAICompletionClient | None:
    """Build the configured completion service, or None when AI is unavailable."""
    if not settings.ai_enabled:
        logger.warning("No AI completion service configured", backend=settings.ai_backend)
        return None

    if settings.ai_backend == "toolkit":
        assert settings.toolkit_url is not None
        logger.info("Using toolkit completion service", base_url=settings.toolkit_url)
        return ToolkitCompletionClient(base_url=settings.toolkit_url, timeout=settings.ai_timeout)

    logger.info("Using PydanticAI completion service", provider=settings.llm_provider)
    return PydanticAICompletionClient(settings)
