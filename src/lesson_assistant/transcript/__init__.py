"""Time-coded transcript pipeline: segments, resolution, context, citations."""

from lesson_assistant.transcript.citations import extract_citations
from lesson_assistant.transcript.context import assemble_context
from lesson_assistant.transcript.resolver import resolve_active_segment
from lesson_assistant.transcript.segments import Citation, Segment

__all__ = [
    "Citation",
    "Segment",
    "assemble_context",
    "extract_citations",
    "resolve_active_segment",
]
