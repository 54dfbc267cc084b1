"""Repository behaviour against a real PostgreSQL schema."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from lesson_assistant.progress import ProgressTracker
from lesson_assistant.storage.orm import Chapter, Lesson, User
from lesson_assistant.storage.repositories import (
    ChatMessageRepository,
    CourseRepository,
    LessonRepository,
    ProgressRepository,
    TranscriptRepository,
)
from lesson_assistant.transcript.segments import Citation

pytestmark = pytest.mark.requires_db


class TestTranscriptRepository:
    async def test_replace_then_list_in_order(
        self, db_session: AsyncSession, seed_lessons: list[Lesson]
    ) -> None:
        repo = TranscriptRepository(db_session)
        lesson = seed_lessons[0]
        await repo.replace_for_lesson(lesson.id, [(0, 5000, "old", None)])
        await repo.replace_for_lesson(
            lesson.id,
            [(0, 7000, "A", None), (7000, 12_000, "B", "Host")],
        )

        segments = await repo.list_for_lesson(lesson.id)
        assert [s.text for s in segments] == ["A", "B"]
        assert [s.order for s in segments] == [0, 1]

    async def test_lesson_with_transcript(
        self, db_session: AsyncSession, seed_lessons: list[Lesson]
    ) -> None:
        lesson_id = seed_lessons[1].id
        await TranscriptRepository(db_session).replace_for_lesson(
            lesson_id, [(0, 1000, "x", None)]
        )
        db_session.expire_all()
        loaded = await LessonRepository(db_session).get_with_transcript(lesson_id)
        assert loaded is not None
        assert [s.text for s in loaded.transcript_segments] == ["x"]


class TestProgressRepository:
    async def test_tracker_completes_and_never_reverts(
        self,
        db_session: AsyncSession,
        seed_user: User,
        seed_lessons: list[Lesson],
    ) -> None:
        lesson = seed_lessons[0]
        repo = ProgressRepository(db_session, seed_user.id)
        tracker = ProgressTracker(repo, lesson.id, lesson.duration_seconds or 0)

        update = await tracker.on_playback_stopped(64_000)
        assert update.progress.is_completed is True
        assert update.progress.watched_duration_seconds == 64

        await repo.update(lesson.id, is_completed=False, watched_duration_seconds=3)
        record = await repo.get(lesson.id)
        assert record is not None
        assert record.is_completed is True
        assert record.watched_duration_seconds == 3

    async def test_course_completion_count(
        self,
        db_session: AsyncSession,
        seed_user: User,
        seed_lessons: list[Lesson],
    ) -> None:
        repo = ProgressRepository(db_session, seed_user.id)
        await repo.update(seed_lessons[0].id, is_completed=True)
        await repo.update(seed_lessons[1].id, watched_duration_seconds=50)

        chapter = await db_session.get(Chapter, seed_lessons[0].chapter_id)
        assert chapter is not None
        course_repo = CourseRepository(db_session)
        course = await course_repo.get_with_chapters(chapter.course_id)
        assert course is not None
        lesson_ids = await course_repo.list_lesson_ids(course.id)

        assert len(lesson_ids) == 2
        assert await repo.count_completed(lesson_ids) == 1


class TestChatMessageRepository:
    async def test_history_is_user_scoped_and_ordered(
        self,
        db_session: AsyncSession,
        seed_user: User,
        seed_lessons: list[Lesson],
    ) -> None:
        lesson = seed_lessons[0]
        other = User(name="Other")
        db_session.add(other)
        await db_session.flush()

        mine = ChatMessageRepository(db_session, seed_user.id)
        await mine.append(lesson_id=lesson.id, role="user", content="q")
        await mine.append(
            lesson_id=lesson.id,
            role="assistant",
            content="See [00:00]",
            citations=[Citation(timestamp="00:00", text="A")],
        )
        await ChatMessageRepository(db_session, other.id).append(
            lesson_id=lesson.id, role="user", content="not mine"
        )

        history = await mine.history(lesson.id)
        assert [m.content for m in history] == ["q", "See [00:00]"]
        assert history[1].citations == [
            {"timestamp": "00:00", "text": "A", "segment_id": None}
        ]
