"""CRUD repositories for database operations.

Repositories flush but never commit; the caller (route handler or CLI
script) owns the transaction boundary.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lesson_assistant.storage.orm import (
    Chapter,
    ChatMessage,
    Course,
    Lesson,
    LessonProgress,
    TranscriptSegment,
)
from lesson_assistant.transcript.segments import Citation, Segment


class CourseRepository:
    """Read access to the course catalogue."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, course_id: uuid.UUID) -> Course | None:
        """Get course by primary key."""
        return await self._session.get(Course, course_id)

    async def get_with_chapters(self, course_id: uuid.UUID) -> Course | None:
        """Get course with chapters and their lessons eagerly loaded.

        Uses selectinload to avoid the cartesian product joinedload
        would produce across two collection levels.
        """
        stmt = (
            select(Course)
            .where(Course.id == course_id)
            .options(selectinload(Course.chapters).selectinload(Chapter.lessons))
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_lesson_ids(self, course_id: uuid.UUID) -> list[uuid.UUID]:
        """IDs of every lesson in the course, across all chapters."""
        stmt = (
            select(Lesson.id)
            .join(Chapter, Lesson.chapter_id == Chapter.id)
            .where(Chapter.course_id == course_id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class LessonRepository:
    """Read access to lessons."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, lesson_id: uuid.UUID) -> Lesson | None:
        """Get lesson by primary key."""
        return await self._session.get(Lesson, lesson_id)

    async def get_with_transcript(self, lesson_id: uuid.UUID) -> Lesson | None:
        """Get lesson with its transcript segments loaded in ``order``."""
        stmt = (
            select(Lesson)
            .where(Lesson.id == lesson_id)
            .options(selectinload(Lesson.transcript_segments))
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


class TranscriptRepository:
    """Segment store for lesson transcripts.

    Segments are returned as immutable ``Segment`` snapshots, detached
    from the session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_lesson(self, lesson_id: uuid.UUID) -> list[Segment]:
        """All segments of a lesson, ordered by ``order``.

        Args:
            lesson_id: UUID of the lesson.

        Returns:
            Segments sorted by ``order``; empty if the lesson has no
            transcript.
        """
        stmt = (
            select(TranscriptSegment)
            .where(TranscriptSegment.lesson_id == lesson_id)
            .order_by(TranscriptSegment.order)
        )
        result = await self._session.execute(stmt)
        return [Segment.model_validate(row) for row in result.scalars().all()]

    async def replace_for_lesson(
        self,
        lesson_id: uuid.UUID,
        segments: Sequence[tuple[int, int, str, str | None]],
    ) -> list[TranscriptSegment]:
        """Delete the lesson's transcript and insert a new batch.

        Args:
            lesson_id: UUID of the lesson.
            segments: ``(start_time_ms, end_time_ms, text, speaker)`` tuples
                in playback order; ``order`` is assigned from position.

        Returns:
            The newly created TranscriptSegment rows.
        """
        await self._session.execute(
            delete(TranscriptSegment).where(TranscriptSegment.lesson_id == lesson_id)
        )
        rows = [
            TranscriptSegment(
                lesson_id=lesson_id,
                start_time_ms=start_ms,
                end_time_ms=end_ms,
                text=text,
                speaker=speaker,
                order=idx,
            )
            for idx, (start_ms, end_ms, text, speaker) in enumerate(segments)
        ]
        self._session.add_all(rows)
        await self._session.flush()
        return rows


class ChatMessageRepository:
    """Append-only chat log, scoped to one user."""

    def __init__(self, session: AsyncSession, user_id: uuid.UUID) -> None:
        self._session = session
        self._user_id = user_id

    async def append(
        self,
        *,
        lesson_id: uuid.UUID,
        role: str,
        content: str,
        citations: list[Citation] | None = None,
    ) -> ChatMessage:
        """Add a message to the log.

        Args:
            lesson_id: Lesson the conversation belongs to.
            role: ``user`` or ``assistant``.
            content: Message text.
            citations: Resolved citations (assistant turns only).

        Returns:
            The newly created ChatMessage ORM instance.
        """
        message = ChatMessage(
            user_id=self._user_id,
            lesson_id=lesson_id,
            role=role,
            content=content,
            citations=(
                [c.model_dump(mode="json") for c in citations]
                if citations is not None
                else None
            ),
            created_at=datetime.now(UTC),
        )
        self._session.add(message)
        await self._session.flush()
        return message

    async def history(self, lesson_id: uuid.UUID) -> list[ChatMessage]:
        """Messages of this user in the lesson, oldest first."""
        stmt = (
            select(ChatMessage)
            .where(
                ChatMessage.user_id == self._user_id,
                ChatMessage.lesson_id == lesson_id,
            )
            .order_by(ChatMessage.created_at, ChatMessage.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class ProgressRepository:
    """Lesson progress records, scoped to one user.

    Updates are read-then-write without a lock: ``watched_duration_seconds``
    is last-write-wins, while ``is_completed`` is OR-merged so a stale
    writer can never reset a completed lesson.
    """

    def __init__(self, session: AsyncSession, user_id: uuid.UUID) -> None:
        self._session = session
        self._user_id = user_id

    async def get(self, lesson_id: uuid.UUID) -> LessonProgress | None:
        """Progress record for the lesson, or None if never created."""
        stmt = select(LessonProgress).where(
            LessonProgress.user_id == self._user_id,
            LessonProgress.lesson_id == lesson_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(
        self,
        lesson_id: uuid.UUID,
        *,
        is_completed: bool | None = None,
        watched_duration_seconds: int | None = None,
    ) -> LessonProgress:
        """Partially update (or create) the progress record.

        Omitted fields keep their stored value. ``is_completed=False``
        never downgrades a completed record; the first transition to
        completed stamps ``completed_at``.

        Returns:
            The created or updated LessonProgress instance.
        """
        record = await self.get(lesson_id)
        if record is None:
            record = LessonProgress(
                user_id=self._user_id,
                lesson_id=lesson_id,
                is_completed=False,
                watched_duration_seconds=0,
            )
            self._session.add(record)

        if watched_duration_seconds is not None:
            record.watched_duration_seconds = watched_duration_seconds
        if is_completed and not record.is_completed:
            record.is_completed = True
            record.completed_at = datetime.now(UTC)

        await self._session.flush()
        return record

    async def count_completed(self, lesson_ids: Sequence[uuid.UUID]) -> int:
        """How many of the given lessons this user has completed."""
        if not lesson_ids:
            return 0
        stmt = (
            select(func.count())
            .select_from(LessonProgress)
            .where(
                LessonProgress.user_id == self._user_id,
                LessonProgress.lesson_id.in_(lesson_ids),
                LessonProgress.is_completed.is_(True),
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()
