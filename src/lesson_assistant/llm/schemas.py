"""Shared schemas for LLM infrastructure."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class TurnRole(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatTurn(BaseModel):
    """One role-tagged message in a conversation sent to a provider."""

    role: TurnRole
    content: str


class LLMRequest(BaseModel):
    """Input for LLM call.

    ``turns`` is the ordered conversation. Providers that take the system
    instruction out of band (Anthropic, Gemini) read it via
    ``system_prompt`` and send only the remaining turns.
    """

    turns: list[ChatTurn]
    model: str = ""  # set by ModelRouter; providers fall back to default_model
    temperature: float = 0.2
    max_tokens: int = 2048
    action: str = ""  # lesson_chat, ...

    @property
    def system_prompt(self) -> str | None:
        """All system turns joined, or None when there are none."""
        parts = [t.content for t in self.turns if t.role == TurnRole.SYSTEM]
        return "\n\n".join(parts) if parts else None

    @property
    def dialogue(self) -> list[ChatTurn]:
        """Non-system turns in order."""
        return [t for t in self.turns if t.role != TurnRole.SYSTEM]


class LLMResponse(BaseModel):
    """Unified response from any LLM provider."""

    content: str
    provider: str  # gemini, anthropic, openai, deepseek
    model_id: str  # gemini-2.5-flash, claude-sonnet-4, ...
    tokens_in: int | None = None
    tokens_out: int | None = None
    latency_ms: int = 0
    cost_usd: float | None = None
    action: str = ""
    finished_at: datetime = Field(default_factory=datetime.now)
