"""ModelRouter -- central entry point for all LLM calls.

Walks the model chain configured for an action and uses the first model
whose provider is configured and enabled. That model is called exactly
once. If the call fails, the invocation fails: the error is reported
to the caller, not retried. Falling through to the next model after a
failed call is opt-in (``fallback_on_error=True``).
"""

from collections.abc import Awaitable, Callable

import structlog

from lesson_assistant.llm.providers.base import LLMProvider
from lesson_assistant.llm.registry import ModelConfig, ModelRegistryConfig
from lesson_assistant.llm.schemas import ChatTurn, LLMRequest, LLMResponse

logger = structlog.get_logger()

LogCallback = Callable[[LLMResponse, bool, str | None], Awaitable[None]]


class AllModelsFailedError(Exception):
    """No model in the action's chain produced a response.

    ``provider`` names the provider whose call raised last, or is None
    when no model in the chain could be called at all.
    """

    def __init__(
        self,
        action: str,
        errors: list[tuple[str, str]],
        provider: str | None = None,
    ) -> None:
        self.action = action
        self.errors = errors
        self.provider = provider
        details = "; ".join(f"{m}: {e}" for m, e in errors) or "empty chain"
        super().__init__(f"All models failed for action '{action}': {details}")


class ModelRouter:
    """Routes LLM requests along the action's model chain."""

    def __init__(
        self,
        providers: dict[str, LLMProvider],
        registry: ModelRegistryConfig,
        log_callback: LogCallback | None = None,
        *,
        fallback_on_error: bool = False,
    ) -> None:
        self._providers = providers
        self._registry = registry
        self._log_callback = log_callback
        self._fallback_on_error = fallback_on_error

    async def complete(
        self,
        action: str,
        turns: list[ChatTurn],
        *,
        temperature: float = 0.2,
        max_tokens: int = 2048,
    ) -> LLMResponse:
        """Generate a completion for ``turns``.

        Raises:
            AllModelsFailedError: no configured model, or the call failed.
            KeyError: action is not routed in the registry.
        """
        request = LLMRequest(
            turns=turns,
            temperature=temperature,
            max_tokens=max_tokens,
            action=action,
        )
        errors: list[tuple[str, str]] = []
        failed_provider: str | None = None

        for model_cfg in self._registry.get_chain(action):
            provider = self._get_active_provider(model_cfg, errors)
            if provider is None:
                continue

            request_for_model = request.model_copy(
                update={"model": model_cfg.model_id},
            )
            try:
                response = await provider.complete(request_for_model)
            except Exception as exc:
                logger.warning(
                    "llm_call_failed",
                    provider=model_cfg.provider,
                    model=model_cfg.model_id,
                    action=action,
                    error=str(exc),
                )
                errors.append((model_cfg.model_id, str(exc)))
                failed_provider = model_cfg.provider
                await self._log_failure(model_cfg, action, str(exc))
                if self._fallback_on_error:
                    continue
                raise AllModelsFailedError(
                    action, errors, provider=failed_provider
                ) from exc

            self._enrich_response(response, model_cfg, action)
            await self._log(response, success=True)
            return response

        raise AllModelsFailedError(action, errors, provider=failed_provider)

    def _get_active_provider(
        self,
        model_cfg: ModelConfig,
        errors: list[tuple[str, str]],
    ) -> LLMProvider | None:
        """Get provider if it exists and is enabled."""
        provider = self._providers.get(model_cfg.provider)
        if provider is None:
            errors.append((model_cfg.model_id, "provider not configured"))
            return None
        if not provider.enabled:
            errors.append((model_cfg.model_id, "provider disabled"))
            return None
        return provider

    @staticmethod
    def _enrich_response(
        response: LLMResponse,
        model_cfg: ModelConfig,
        action: str,
    ) -> None:
        """Stamp action and estimated cost onto the response."""
        response.action = action
        if response.tokens_in is not None and response.tokens_out is not None:
            response.cost_usd = model_cfg.estimate_cost(
                response.tokens_in,
                response.tokens_out,
            )

    async def _log_failure(
        self,
        model_cfg: ModelConfig,
        action: str,
        error_message: str,
    ) -> None:
        dummy = LLMResponse(
            content="",
            provider=model_cfg.provider,
            model_id=model_cfg.model_id,
            action=action,
        )
        await self._log(dummy, success=False, error_message=error_message)

    async def _log(
        self,
        response: LLMResponse,
        *,
        success: bool,
        error_message: str | None = None,
    ) -> None:
        """Log LLM call via structlog and optional callback."""
        if self._log_callback:
            await self._log_callback(response, success, error_message)
        logger.info(
            "llm_call_completed",
            provider=response.provider,
            model=response.model_id,
            action=response.action,
            tokens_in=response.tokens_in,
            tokens_out=response.tokens_out,
            latency_ms=response.latency_ms,
            cost_usd=response.cost_usd,
            success=success,
        )
