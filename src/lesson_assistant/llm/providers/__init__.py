"""LLM provider implementations.

PROVIDER_REGISTRY maps provider names (used in models.yaml) to their
implementation classes. A new provider is a new module here plus one
entry below and one in llm.setup.PROVIDER_CONFIGS.
"""

from lesson_assistant.llm.providers.anthropic import AnthropicProvider
from lesson_assistant.llm.providers.base import LLMProvider
from lesson_assistant.llm.providers.gemini import GeminiProvider
from lesson_assistant.llm.providers.openai_compat import OpenAICompatProvider

PROVIDER_REGISTRY: dict[str, type[LLMProvider]] = {
    "gemini": GeminiProvider,
    "anthropic": AnthropicProvider,
    "openai": OpenAICompatProvider,
    "deepseek": OpenAICompatProvider,
}

__all__ = [
    "PROVIDER_REGISTRY",
    "AnthropicProvider",
    "GeminiProvider",
    "LLMProvider",
    "OpenAICompatProvider",
]
