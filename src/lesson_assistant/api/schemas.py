"""Request/response schemas for the API layer."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from lesson_assistant.transcript.segments import Citation

# --- Catalogue ---


class SegmentResponse(BaseModel):
    """One transcript segment, offsets in milliseconds."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    start_time_ms: int
    end_time_ms: int
    text: str
    speaker: str | None = None
    order: int


class LessonSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None
    video_id: str
    duration_seconds: int | None
    order: int


class ChapterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None
    order: int
    lessons: list[LessonSummaryResponse] = []


class CourseDetailResponse(BaseModel):
    """Response for ``GET /courses/{course_id}``.

    Chapters and their lessons are nested and ordered by ``order``.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None
    thumbnail: str | None
    is_published: bool
    chapters: list[ChapterResponse] = []


class LessonDetailResponse(LessonSummaryResponse):
    """Lesson with its ordered transcript and the player embed address."""

    chapter_id: uuid.UUID
    embed_url: str = Field(description="Iframe address of the lesson video.")
    segments: list[SegmentResponse] = []


# --- Chat ---


class ChatRequest(BaseModel):
    """Request body for POST /lessons/{lesson_id}/chat."""

    message: str = Field(..., min_length=1, max_length=4000)


class ChatReplyResponse(BaseModel):
    """Assistant answer with the transcript moments it cites.

    ``citations`` is null when the answer cited nothing that resolved to
    a segment, as opposed to an empty list.
    """

    message: str
    citations: list[Citation] | None = None


class ChatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    role: str
    content: str
    citations: list[Citation] | None = None
    created_at: datetime


class ChatHistoryResponse(BaseModel):
    """Chat history of the current user in one lesson, oldest first."""

    items: list[ChatMessageResponse]


# --- Progress ---


class ProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lesson_id: uuid.UUID
    is_completed: bool
    watched_duration_seconds: int
    completed_at: datetime | None = None


class ProgressUpdateRequest(BaseModel):
    """Request body for PATCH /lessons/{lesson_id}/progress.

    Omitted fields keep their stored value. ``is_completed=false`` is
    accepted but never un-completes a lesson.
    """

    is_completed: bool | None = None
    watched_duration_seconds: int | None = Field(default=None, ge=0)


class PlaybackEventType(StrEnum):
    TIME_UPDATE = "time_update"
    PAUSE = "pause"
    STOP = "stop"
    ENDED = "ended"


class PlaybackEventRequest(BaseModel):
    """Request body for POST /lessons/{lesson_id}/playback."""

    event: PlaybackEventType
    position_ms: int = Field(..., ge=0)


class PlaybackResponse(BaseModel):
    progress: ProgressResponse
    active_segment: SegmentResponse | None = None


class CourseProgressResponse(BaseModel):
    """Completed lesson count for the current user in one course."""

    course_id: uuid.UUID
    total: int
    completed: int
