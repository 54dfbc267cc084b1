"""Shared fixtures for integration tests requiring a live PostgreSQL."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from lesson_assistant.config import get_settings
from lesson_assistant.storage.orm import Chapter, Course, Lesson, User


@pytest.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    engine = create_async_engine(get_settings().database_url, pool_size=2)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session inside an outer transaction that is rolled back after the test.

    Repositories only flush, so nothing a test writes is ever committed.
    """
    async with async_engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)

        yield session

        await session.close()
        await trans.rollback()


@pytest.fixture()
async def seed_user(db_session: AsyncSession) -> User:
    user = User(name="Learner", email=f"{uuid.uuid4().hex[:8]}@example.com")
    db_session.add(user)
    await db_session.flush()
    return user


@pytest.fixture()
async def seed_lessons(db_session: AsyncSession) -> list[Lesson]:
    """One course, one chapter, two lessons (70 s and 100 s)."""
    course = Course(title="Integration Course", is_published=True)
    db_session.add(course)
    await db_session.flush()

    chapter = Chapter(course_id=course.id, title="Chapter 1", order=0)
    db_session.add(chapter)
    await db_session.flush()

    lessons = [
        Lesson(
            chapter_id=chapter.id,
            title=f"Lesson {i}",
            video_id=f"video-{i}",
            duration_seconds=duration,
            order=i,
        )
        for i, duration in enumerate((70, 100))
    ]
    db_session.add_all(lessons)
    await db_session.flush()
    return lessons
