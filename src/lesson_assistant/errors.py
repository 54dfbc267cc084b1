"""Domain-specific exceptions for lesson-assistant."""

from __future__ import annotations

import uuid


class LessonNotFoundError(Exception):
    """Raised when a lesson does not exist."""

    def __init__(self, lesson_id: uuid.UUID) -> None:
        self.lesson_id = lesson_id
        super().__init__(f"Lesson not found: {lesson_id}")


class CompletionError(Exception):
    """The completion service could not produce an answer.

    Covers network errors, timeouts, provider errors and a model chain
    with no configured provider. The user turn that triggered the call is
    kept; no assistant turn is written.
    """

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class SendInProgressError(Exception):
    """A chat send for the same user and lesson is still awaiting completion."""

    def __init__(self, user_id: uuid.UUID, lesson_id: uuid.UUID) -> None:
        self.user_id = user_id
        self.lesson_id = lesson_id
        super().__init__(
            f"A message for lesson {lesson_id} is already awaiting an answer"
        )


class InvalidStateTransitionError(Exception):
    """ChatSession was asked to move between states that are not adjacent."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Invalid chat state transition: {current} -> {requested}")


class ControlChannelError(Exception):
    """The live control channel to the video player rejected a message."""
