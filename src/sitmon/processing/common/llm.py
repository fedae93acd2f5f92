"""PydanticAI model selection.

Two tiers share one provider:
- fast (``llm_model``): post and account classification
- smart (``llm_model_smart``): deep signal analysis

Anthropic models are passed to PydanticAI as ``anthropic:<name>`` strings.
OpenAI and OpenAI-compatible servers (``openai_base_url``) get an explicit
provider so the configured key and base URL are used.
"""

from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from sitmon.config import Settings, get_settings
from sitmon.core.logging import get_logger

logger = get_logger(__name__)


def model_name(smart: bool, settings: Settings) -> str:
    return settings.llm_model_smart if smart else settings.llm_model


def _openai_provider(settings: Settings) -> OpenAIProvider:
    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
    if settings.openai_base_url:
        return OpenAIProvider(base_url=settings.openai_base_url, api_key=api_key)
    return OpenAIProvider(api_key=api_key)


def create_model(smart: bool = False, settings: Settings | None = None) -> str | Model:
    """Model for the classifier (fast) or the analyzer (smart).

    Args:
        smart: Pick the deep-analysis model instead of the classification one
        settings: Defaults to the cached application settings

    Returns:
        ``"anthropic:<name>"`` or an ``OpenAIChatModel``
    """
    settings = settings or get_settings()
    name = model_name(smart, settings)

    if settings.llm_provider == "anthropic":
        logger.debug("LLM model selected", provider="anthropic", model=name, smart=smart)
        return f"anthropic:{name}"

    logger.debug(
        "LLM model selected",
        provider="openai",
        model=name,
        base_url=settings.openai_base_url,
        smart=smart,
    )
    return OpenAIChatModel(name, provider=_openai_provider(settings))
