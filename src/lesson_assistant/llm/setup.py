"""One-stop factory for assembling the LLM stack.

Usage::

    from lesson_assistant.config import get_settings
    from lesson_assistant.llm import create_model_router

    router = create_model_router(get_settings())
    response = await router.complete("lesson_chat", turns)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lesson_assistant.config import Settings
from lesson_assistant.llm.logging import create_log_callback
from lesson_assistant.llm.providers import PROVIDER_REGISTRY, LLMProvider
from lesson_assistant.llm.registry import load_registry
from lesson_assistant.llm.router import ModelRouter

logger = structlog.get_logger()


@dataclass(frozen=True)
class ProviderFactoryConfig:
    """How to pull one provider's constructor arguments out of Settings."""

    get_api_key: Callable[[Settings], SecretStr | None]
    get_default_model: Callable[[Settings], str]
    get_base_url: Callable[[Settings], str] | None = None
    extra_kwargs: dict[str, Any] = field(default_factory=dict)


PROVIDER_CONFIGS: dict[str, ProviderFactoryConfig] = {
    "gemini": ProviderFactoryConfig(
        get_api_key=lambda s: s.gemini_api_key,
        get_default_model=lambda s: s.gemini_default_model,
    ),
    "anthropic": ProviderFactoryConfig(
        get_api_key=lambda s: s.anthropic_api_key,
        get_default_model=lambda s: s.anthropic_default_model,
    ),
    "openai": ProviderFactoryConfig(
        get_api_key=lambda s: s.openai_api_key,
        get_default_model=lambda s: s.openai_default_model,
    ),
    "deepseek": ProviderFactoryConfig(
        get_api_key=lambda s: s.deepseek_api_key,
        get_default_model=lambda s: s.deepseek_default_model,
        get_base_url=lambda s: s.deepseek_base_url,
        extra_kwargs={"provider_name": "deepseek"},
    ),
}


def create_providers(settings: Settings) -> dict[str, LLMProvider]:
    """Instantiate providers for all configured API keys.

    Only providers with a non-None API key are created.
    """
    providers: dict[str, LLMProvider] = {}

    for name, provider_cls in PROVIDER_REGISTRY.items():
        config = PROVIDER_CONFIGS.get(name)
        if config is None:
            continue

        api_key_secret = config.get_api_key(settings)
        if api_key_secret is None:
            continue

        kwargs: dict[str, Any] = {
            "api_key": api_key_secret.get_secret_value(),
            "default_model": config.get_default_model(settings),
        }
        if config.get_base_url is not None:
            kwargs["base_url"] = config.get_base_url(settings)
        kwargs.update(config.extra_kwargs)

        providers[name] = provider_cls(**kwargs)
        logger.info("llm_provider_registered", provider=name)

    if not providers:
        logger.warning("no_llm_providers_configured")

    return providers


def create_model_router(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    *,
    prompt_version: str | None = None,
) -> ModelRouter:
    """Assemble ModelRouter with providers, registry, and optional DB logging.

    Args:
        settings: Application settings with API keys and registry path.
        session_factory: If provided, LLM calls are logged to llm_calls table.
        prompt_version: Stored with each logged call.
    """
    registry = load_registry(settings.model_registry_path)
    providers = create_providers(settings)

    log_callback = None
    if session_factory is not None:
        log_callback = create_log_callback(
            session_factory, prompt_version=prompt_version
        )
        logger.info("llm_db_logging_enabled")

    router = ModelRouter(
        providers=providers,
        registry=registry,
        log_callback=log_callback,
    )
    logger.info(
        "model_router_created",
        providers=list(providers.keys()),
        db_logging=session_factory is not None,
    )
    return router
