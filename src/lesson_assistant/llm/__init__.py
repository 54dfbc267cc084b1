"""LLM infrastructure: providers, schemas, router, registry, logging.

Quick start::

    from lesson_assistant.config import get_settings
    from lesson_assistant.llm import create_model_router

    router = create_model_router(get_settings())
    response = await router.complete("lesson_chat", turns)
"""

from lesson_assistant.llm.router import AllModelsFailedError, ModelRouter
from lesson_assistant.llm.schemas import ChatTurn, LLMRequest, LLMResponse, TurnRole
from lesson_assistant.llm.setup import create_model_router

__all__ = [
    "AllModelsFailedError",
    "ChatTurn",
    "LLMRequest",
    "LLMResponse",
    "ModelRouter",
    "TurnRole",
    "create_model_router",
]
