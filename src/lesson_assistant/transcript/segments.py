"""Transcript segment and citation schemas."""

import uuid

from pydantic import BaseModel, ConfigDict


class Segment(BaseModel):
    """A single time-coded unit of transcript text.

    Pydantic mirror of the ORM ``TranscriptSegment`` row. Offsets are in
    milliseconds from the start of the lesson video. Within a lesson,
    segments are ordered by ``order`` and ``start_time_ms`` never
    decreases along that order; gaps between segments are allowed.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID
    lesson_id: uuid.UUID
    start_time_ms: int
    end_time_ms: int
    text: str
    speaker: str | None = None
    order: int


class Citation(BaseModel):
    """A ``[MM:SS]`` marker from an assistant answer, resolved to a segment.

    Derived data: regenerated for every assistant turn and stored as JSON
    next to the message, never edited afterwards.
    """

    timestamp: str
    text: str
    segment_id: uuid.UUID | None = None
