from datetime import datetime, timedelta, timezone
import time

from league.core.errors import TimestampError


def now_epoch() -> int:
    return int(time.time())


def iso_to_epoch(value) -> int:
    """Convert an upstream ISO-8601 timestamp to epoch seconds (UTC).

    Strava sends both `start_date` ("2025-11-15T10:30:45Z") and
    `start_date_local` ("2025-11-15T02:30:45"). Only the former is usable:
    the value must carry an explicit UTC designator, either a trailing 'Z'
    or a zero offset. Naive or non-UTC values raise TimestampError rather
    than being read in the process's local zone.

    Integers are taken as epoch seconds already.
    """
    if isinstance(value, bool):
        raise TimestampError(value, "not a timestamp")
    if isinstance(value, int):
        return value
    if not isinstance(value, str) or not value.strip():
        raise TimestampError(value, "empty or non-string timestamp")

    s = value.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError as e:
        raise TimestampError(value, "not ISO-8601") from e

    if dt.tzinfo is None:
        raise TimestampError(value, "missing UTC designator")
    if dt.utcoffset() != timedelta(0):
        raise TimestampError(value, "offset is not UTC")
    return int(dt.timestamp())


def epoch_to_iso(epoch: int | None) -> str | None:
    """Format epoch seconds -> '2025-01-15T14:30:00Z'. Returns None for None."""
    if epoch is None:
        return None
    return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def is_within(ts: int, start: int, end: int | None) -> bool:
    """Inclusive on both ends; `end=None` means the interval never closes."""
    if ts < start:
        return False
    return end is None or ts <= end


def seconds_to_mmss(total_seconds: int) -> str:
    """
    Convert total seconds -> 'M:SS' (or 'H:MM:SS' past an hour).
    Example: 310 -> '5:10'
    """
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"
