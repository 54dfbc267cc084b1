"""Lesson progress and playback event endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from lesson_assistant.api.deps import get_current_user, get_session
from lesson_assistant.api.schemas import (
    PlaybackEventRequest,
    PlaybackEventType,
    PlaybackResponse,
    ProgressResponse,
    ProgressUpdateRequest,
    SegmentResponse,
)
from lesson_assistant.auth.context import UserContext
from lesson_assistant.config import settings
from lesson_assistant.progress import ProgressTracker
from lesson_assistant.storage.orm import Lesson
from lesson_assistant.storage.repositories import (
    LessonRepository,
    ProgressRepository,
    TranscriptRepository,
)

router = APIRouter(tags=["progress"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
UserDep = Annotated[UserContext, Depends(get_current_user)]


async def _require_lesson(session: AsyncSession, lesson_id: uuid.UUID) -> Lesson:
    lesson = await LessonRepository(session).get_by_id(lesson_id)
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson


@router.get("/lessons/{lesson_id}/progress")
async def get_progress(
    lesson_id: uuid.UUID,
    user: UserDep,
    session: SessionDep,
) -> ProgressResponse:
    """The current user's progress record for the lesson."""
    record = await ProgressRepository(session, user.user_id).get(lesson_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Progress not found")
    return ProgressResponse.model_validate(record)


@router.patch("/lessons/{lesson_id}/progress")
async def update_progress(
    lesson_id: uuid.UUID,
    body: ProgressUpdateRequest,
    user: UserDep,
    session: SessionDep,
) -> ProgressResponse:
    """Partially update progress; creates the record on first write.

    Omitted fields keep their stored value. A completed lesson stays
    completed whatever ``is_completed`` says.
    """
    await _require_lesson(session, lesson_id)
    record = await ProgressRepository(session, user.user_id).update(
        lesson_id,
        is_completed=body.is_completed,
        watched_duration_seconds=body.watched_duration_seconds,
    )
    await session.commit()
    return ProgressResponse.model_validate(record)


@router.post("/lessons/{lesson_id}/playback")
async def report_playback(
    lesson_id: uuid.UUID,
    body: PlaybackEventRequest,
    user: UserDep,
    session: SessionDep,
) -> PlaybackResponse:
    """Feed a player event into progress tracking.

    ``time_update`` records the watched position. ``pause``, ``stop`` and
    ``ended`` also complete the lesson once the position passes the
    completion threshold. The response carries the segment active at
    the reported position.
    """
    lesson = await _require_lesson(session, lesson_id)
    segments = await TranscriptRepository(session).list_for_lesson(lesson_id)
    tracker = ProgressTracker(
        ProgressRepository(session, user.user_id),
        lesson_id,
        lesson.duration_seconds or 0,
        segments,
        threshold=settings.completion_threshold,
    )

    if body.event == PlaybackEventType.TIME_UPDATE:
        update = await tracker.on_time_update(body.position_ms)
    else:
        update = await tracker.on_playback_stopped(body.position_ms)
    await session.commit()

    active = update.active_segment
    return PlaybackResponse(
        progress=ProgressResponse.model_validate(update.progress),
        active_segment=SegmentResponse.model_validate(active) if active else None,
    )
