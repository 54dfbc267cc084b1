"""Lesson detail endpoint: metadata, transcript and embed address."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from lesson_assistant.api.deps import get_session
from lesson_assistant.api.schemas import (
    LessonDetailResponse,
    LessonSummaryResponse,
    SegmentResponse,
)
from lesson_assistant.config import settings
from lesson_assistant.playback.player import build_embed_url
from lesson_assistant.storage.repositories import LessonRepository

router = APIRouter(tags=["lessons"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]


@router.get("/lessons/{lesson_id}")
async def get_lesson(
    lesson_id: uuid.UUID,
    session: SessionDep,
) -> LessonDetailResponse:
    """Get lesson with its transcript segments in playback order.

    Public endpoint, no API key required.
    """
    lesson = await LessonRepository(session).get_with_transcript(lesson_id)
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")

    summary = LessonSummaryResponse.model_validate(lesson)
    return LessonDetailResponse(
        **summary.model_dump(),
        chapter_id=lesson.chapter_id,
        embed_url=build_embed_url(
            settings.video_embed_base_url,
            settings.video_library_id,
            lesson.video_id,
        ),
        segments=[
            SegmentResponse.model_validate(s) for s in lesson.transcript_segments
        ],
    )
