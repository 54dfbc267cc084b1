"""Course catalogue and course-level progress endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from lesson_assistant.api.deps import get_current_user, get_session
from lesson_assistant.api.schemas import CourseDetailResponse, CourseProgressResponse
from lesson_assistant.auth.context import UserContext
from lesson_assistant.storage.repositories import CourseRepository, ProgressRepository

router = APIRouter(tags=["courses"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
UserDep = Annotated[UserContext, Depends(get_current_user)]


@router.get("/courses/{course_id}")
async def get_course(
    course_id: uuid.UUID,
    session: SessionDep,
) -> CourseDetailResponse:
    """Get course with its chapters and lessons.

    Public endpoint, no API key required.
    """
    course = await CourseRepository(session).get_with_chapters(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return CourseDetailResponse.model_validate(course)


@router.get("/courses/{course_id}/progress")
async def get_course_progress(
    course_id: uuid.UUID,
    user: UserDep,
    session: SessionDep,
) -> CourseProgressResponse:
    """How many of the course's lessons the current user has completed."""
    course_repo = CourseRepository(session)
    course = await course_repo.get_by_id(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="Course not found")

    lesson_ids = await course_repo.list_lesson_ids(course_id)
    completed = await ProgressRepository(session, user.user_id).count_completed(
        lesson_ids
    )
    return CourseProgressResponse(
        course_id=course_id,
        total=len(lesson_ids),
        completed=completed,
    )
