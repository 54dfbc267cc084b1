"""Replace a lesson's transcript from a JSON, WebVTT or marked-text file.

Usage::

    uv run python -m scripts.ingest_transcript --lesson <uuid> transcript.vtt
    uv run python -m scripts.ingest_transcript --lesson <uuid> --dry-run notes.txt

The whole batch is validated first (ranges, ordering, empty text); an
invalid file leaves the stored transcript untouched. On success the
lesson's segments are deleted and the new batch inserted in one
transaction.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid

import structlog

from lesson_assistant.config import settings
from lesson_assistant.errors import LessonNotFoundError
from lesson_assistant.logging_config import configure_logging
from lesson_assistant.storage.database import async_session
from lesson_assistant.storage.repositories import LessonRepository, TranscriptRepository
from lesson_assistant.timecode import format_timestamp
from lesson_assistant.transcript.ingest import (
    SegmentInput,
    TranscriptFormatError,
    load_transcript,
)

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="Transcript ingestion CLI")
    parser.add_argument("path", help="Transcript file")
    parser.add_argument("--lesson", required=True, type=uuid.UUID, help="Lesson id")
    parser.add_argument(
        "--format",
        choices=["json", "vtt", "text"],
        default=None,
        help="Input format (default: guessed from the file suffix)",
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Validate and print, do not write"
    )
    return parser.parse_args(argv)


async def write_transcript(lesson_id: uuid.UUID, segments: list[SegmentInput]) -> int:
    """Swap the stored transcript for ``segments`` and commit.

    Raises:
        LessonNotFoundError: no lesson with ``lesson_id``.
    """
    async with async_session() as session:
        if await LessonRepository(session).get_by_id(lesson_id) is None:
            raise LessonNotFoundError(lesson_id)
        rows = await TranscriptRepository(session).replace_for_lesson(
            lesson_id, [seg.as_row() for seg in segments]
        )
        await session.commit()
    return len(rows)


def print_segments(segments: list[SegmentInput]) -> str:
    """One ``[MM:SS-MM:SS] text`` line per segment."""
    return "\n".join(
        f"[{format_timestamp(s.start_time_ms)}-{format_timestamp(s.end_time_ms)}] "
        f"{s.text}"
        for s in segments
    )


def main(argv: list[str] | None = None) -> None:
    """Validate the file and replace the transcript."""
    args = parse_args(argv)
    configure_logging(environment=str(settings.environment), log_level="INFO")

    try:
        segments = load_transcript(args.path, fmt=args.format)
    except (OSError, TranscriptFormatError) as exc:
        print(f"Cannot ingest {args.path}: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.dry_run:
        print(print_segments(segments))
        print(f"{len(segments)} segments OK (dry run)")
        return

    try:
        count = asyncio.run(write_transcript(args.lesson, segments))
    except LessonNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)

    logger.info("transcript_ingested", lesson_id=str(args.lesson), segments=count)
    print(f"Lesson {args.lesson}: {count} segments written")


if __name__ == "__main__":
    main()
