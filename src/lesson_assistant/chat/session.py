"""ChatSession -- one learner asking the assistant about one lesson.

A send runs through a fixed sequence of states::

    idle -> user_persisted -> context_built -> awaiting_completion
         -> citations_extracted -> assistant_persisted -> done

``failed`` is reachable only from ``awaiting_completion``. The user's
question is persisted first and stays in history even when the
completion fails, so a retried question appears twice.
"""

from __future__ import annotations

import contextlib
import uuid
from collections.abc import Iterator
from enum import StrEnum
from typing import Any, Protocol

import structlog
from pydantic import BaseModel

from lesson_assistant.chat.gateway import CompletionGateway
from lesson_assistant.chat.prompts import ChatPrompt, render_system_prompt
from lesson_assistant.errors import (
    CompletionError,
    InvalidStateTransitionError,
    SendInProgressError,
)
from lesson_assistant.llm.schemas import ChatTurn, TurnRole
from lesson_assistant.transcript.citations import extract_citations
from lesson_assistant.transcript.context import assemble_context
from lesson_assistant.transcript.segments import Citation, Segment

logger = structlog.get_logger()


class ChatState(StrEnum):
    IDLE = "idle"
    USER_PERSISTED = "user_persisted"
    CONTEXT_BUILT = "context_built"
    AWAITING_COMPLETION = "awaiting_completion"
    CITATIONS_EXTRACTED = "citations_extracted"
    ASSISTANT_PERSISTED = "assistant_persisted"
    DONE = "done"
    FAILED = "failed"


VALID_TRANSITIONS: dict[ChatState, set[ChatState]] = {
    ChatState.IDLE: {ChatState.USER_PERSISTED},
    ChatState.USER_PERSISTED: {ChatState.CONTEXT_BUILT},
    ChatState.CONTEXT_BUILT: {ChatState.AWAITING_COMPLETION},
    ChatState.AWAITING_COMPLETION: {
        ChatState.CITATIONS_EXTRACTED,
        ChatState.FAILED,
    },
    ChatState.CITATIONS_EXTRACTED: {ChatState.ASSISTANT_PERSISTED},
    ChatState.ASSISTANT_PERSISTED: {ChatState.DONE},
    ChatState.DONE: set(),  # terminal
    ChatState.FAILED: set(),  # terminal
}


class MessageLog(Protocol):
    async def append(
        self,
        *,
        lesson_id: uuid.UUID,
        role: str,
        content: str,
        citations: list[Citation] | None = None,
    ) -> Any: ...


class SegmentSource(Protocol):
    async def list_for_lesson(self, lesson_id: uuid.UUID) -> list[Segment]: ...


class ChatReply(BaseModel):
    """Result of a successful send."""

    message: str
    citations: list[Citation] | None = None


class SendGuard:
    """Tracks (user, lesson) pairs with a send still in flight.

    One instance per process, created at startup and shared by all
    requests. Check-and-mark happens without an await in between, so it
    is safe on a single event loop without a lock.
    """

    def __init__(self) -> None:
        self._in_flight: set[tuple[uuid.UUID, uuid.UUID]] = set()

    @contextlib.contextmanager
    def hold(self, user_id: uuid.UUID, lesson_id: uuid.UUID) -> Iterator[None]:
        """Mark the pair busy for the duration of the block.

        Raises:
            SendInProgressError: the pair is already busy.
        """
        key = (user_id, lesson_id)
        if key in self._in_flight:
            raise SendInProgressError(user_id, lesson_id)
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)


class ChatSession:
    """Orchestrates one send: persist, ground, complete, cite, persist.

    Args:
        user_id: The learner.
        lesson_id: The lesson being discussed.
        messages: Append-only chat log (user-scoped).
        segments: Transcript segment store.
        gateway: Completion service port.
        prompt: System prompt template and fallback answer.
        guard: Shared in-flight registry; a private one is used if omitted.
    """

    def __init__(
        self,
        *,
        user_id: uuid.UUID,
        lesson_id: uuid.UUID,
        messages: MessageLog,
        segments: SegmentSource,
        gateway: CompletionGateway,
        prompt: ChatPrompt,
        guard: SendGuard | None = None,
    ) -> None:
        self._user_id = user_id
        self._lesson_id = lesson_id
        self._messages = messages
        self._segments = segments
        self._gateway = gateway
        self._prompt = prompt
        self._guard = guard or SendGuard()
        self._state = ChatState.IDLE
        self._log = logger.bind(user_id=str(user_id), lesson_id=str(lesson_id))

    @property
    def state(self) -> ChatState:
        return self._state

    def _advance(self, new_state: ChatState) -> None:
        if new_state not in VALID_TRANSITIONS[self._state]:
            raise InvalidStateTransitionError(self._state, new_state)
        self._log.debug("chat_state_changed", old=self._state, new=new_state)
        self._state = new_state

    def build_turns(self, segments: list[Segment], question: str) -> list[ChatTurn]:
        """System turn with the full transcript, then the question.

        Earlier chat turns are not replayed.
        """
        system = render_system_prompt(
            self._prompt.system_prompt, assemble_context(segments)
        )
        return [
            ChatTurn(role=TurnRole.SYSTEM, content=system),
            ChatTurn(role=TurnRole.USER, content=question),
        ]

    async def send(self, question: str) -> ChatReply:
        """Ask a question about the lesson.

        Raises:
            SendInProgressError: another send for this user and lesson is
                still awaiting its answer. Nothing is persisted.
            CompletionError: the completion service failed. The user's
                message stays persisted; no assistant message is written.
        """
        with self._guard.hold(self._user_id, self._lesson_id):
            # A previous send may have stopped mid-way on a storage error.
            self._state = ChatState.IDLE
            self._log.info("chat_send_started", question_chars=len(question))

            await self._messages.append(
                lesson_id=self._lesson_id, role="user", content=question
            )
            self._advance(ChatState.USER_PERSISTED)

            segments = await self._segments.list_for_lesson(self._lesson_id)
            turns = self.build_turns(segments, question)
            self._advance(ChatState.CONTEXT_BUILT)
            if not segments:
                self._log.warning("chat_context_empty")

            self._advance(ChatState.AWAITING_COMPLETION)
            try:
                answer = await self._gateway.complete(turns)
            except CompletionError as exc:
                self._advance(ChatState.FAILED)
                self._log.warning("completion_failed", error=str(exc))
                raise

            if not answer.strip():
                answer = self._prompt.fallback_answer
            citations = extract_citations(segments, answer)
            self._advance(ChatState.CITATIONS_EXTRACTED)
            self._log.info(
                "citations_extracted",
                segments=len(segments),
                citations=len(citations) if citations else 0,
            )

            await self._messages.append(
                lesson_id=self._lesson_id,
                role="assistant",
                content=answer,
                citations=citations,
            )
            self._advance(ChatState.ASSISTANT_PERSISTED)

            self._advance(ChatState.DONE)
            return ChatReply(message=answer, citations=citations)
