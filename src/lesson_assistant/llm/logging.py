"""Database logging callback for LLM calls.

Each call (success or failure) is written to llm_calls in its own
session, so a rolled-back request still leaves its LLM usage on record.
DB errors are logged and never interrupt the LLM call flow.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lesson_assistant.llm.router import LogCallback
from lesson_assistant.llm.schemas import LLMResponse
from lesson_assistant.storage.orm import LLMCall

logger = structlog.get_logger()


def create_log_callback(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    prompt_version: str | None = None,
) -> LogCallback:
    """Create a LogCallback that persists LLM calls to the database."""

    async def _log_to_db(
        response: LLMResponse,
        success: bool,
        error_message: str | None,
    ) -> None:
        record = LLMCall(
            action=response.action,
            provider=response.provider,
            model_id=response.model_id,
            prompt_version=prompt_version,
            tokens_in=response.tokens_in,
            tokens_out=response.tokens_out,
            latency_ms=response.latency_ms,
            cost_usd=response.cost_usd,
            success=success,
            error_message=error_message,
        )
        try:
            async with session_factory() as session:
                session.add(record)
                await session.commit()
        except Exception:
            logger.error(
                "llm_call_log_failed",
                provider=response.provider,
                model=response.model_id,
                action=response.action,
                exc_info=True,
            )

    return _log_to_db
