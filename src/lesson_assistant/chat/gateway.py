"""Completion gateway: the port ChatSession uses to reach the LLM service."""

import asyncio
from typing import Protocol

import structlog

from lesson_assistant.errors import CompletionError
from lesson_assistant.llm.router import AllModelsFailedError, ModelRouter
from lesson_assistant.llm.schemas import ChatTurn

logger = structlog.get_logger()


class CompletionGateway(Protocol):
    """Turns an ordered conversation into one free-text answer.

    Implementations raise CompletionError for every upstream failure.
    """

    async def complete(self, turns: list[ChatTurn]) -> str: ...


class ModelRouterGateway:
    """CompletionGateway backed by ModelRouter.

    Args:
        router: Configured ModelRouter.
        action: Registry action whose model chain answers chat questions.
        timeout_seconds: Upper bound for one completion; exceeding it is
            reported as CompletionError.
    """

    def __init__(
        self,
        router: ModelRouter,
        action: str = "lesson_chat",
        *,
        timeout_seconds: float = 60.0,
        temperature: float = 0.2,
        max_tokens: int = 2048,
    ) -> None:
        self._router = router
        self._action = action
        self._timeout_seconds = timeout_seconds
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def complete(self, turns: list[ChatTurn]) -> str:
        try:
            response = await asyncio.wait_for(
                self._router.complete(
                    self._action,
                    turns,
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                ),
                timeout=self._timeout_seconds,
            )
        except AllModelsFailedError as exc:
            raise CompletionError(str(exc), provider=exc.provider) from exc
        except KeyError as exc:
            logger.error("completion_action_not_routed", action=self._action)
            raise CompletionError(
                f"No model chain is routed for action '{self._action}'"
            ) from exc
        except TimeoutError as exc:
            logger.warning(
                "completion_timeout",
                action=self._action,
                timeout_seconds=self._timeout_seconds,
            )
            raise CompletionError(
                f"Completion timed out after {self._timeout_seconds}s"
            ) from exc
        return response.content
