"""Shared LLM utilities.

- LLM provider factory (PydanticAI model creation)
- Completion services (toolkit HTTP endpoint or PydanticAI agent)
"""

from sitmon.processing.common.completion import (
    CompletionService,
    PydanticAICompletionClient,
    ToolkitCompletionClient,
    create_completion_service,
)
from sitmon.processing.common.llm import create_model

__all__ = [
    "CompletionService",
    "PydanticAICompletionClient",
    "ToolkitCompletionClient",
    "create_completion_service",
    "create_model",
]
