"""Conversions between millisecond offsets and ``MM:SS`` timestamps."""

import re

TIMESTAMP_RE = re.compile(r"^(\d{2,}):(\d{2})$")


def format_timestamp(ms: int) -> str:
    """Render a millisecond offset as zero-padded ``MM:SS``.

    Sub-second precision is floored away. Minutes are not wrapped into
    hours, so offsets past 99:59 render with three or more minute digits.

    Raises:
        ValueError: If ``ms`` is negative.
    """
    if ms < 0:
        raise ValueError(f"Negative offset: {ms}")
    total_seconds = ms // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def parse_timestamp(timestamp: str) -> int:
    """Parse ``MM:SS`` into a millisecond offset.

    Seconds are taken at face value: ``01:75`` is 135 seconds, the same
    arithmetic a model-written marker gets.

    Raises:
        ValueError: If the string is not two-or-more digits, a colon,
            and two digits.
    """
    match = TIMESTAMP_RE.match(timestamp.strip())
    if match is None:
        raise ValueError(f"Invalid timestamp: {timestamp!r}")
    minutes, seconds = int(match.group(1)), int(match.group(2))
    return (minutes * 60 + seconds) * 1000


def ms_to_seconds(ms: int) -> int:
    """Whole seconds in a millisecond offset (floored)."""
    return ms // 1000
