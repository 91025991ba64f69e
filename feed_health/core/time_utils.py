"""Time helpers for consistent UTC timestamps across the pipeline."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC datetime with timezone attached."""

    return datetime.now(timezone.utc)


def from_unix_seconds(seconds: int) -> datetime:
    """Convert on-chain unix seconds to an aware UTC datetime.

    Raises OverflowError or ValueError when the value is outside the range a
    datetime can represent.
    """

    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def to_iso(value: datetime) -> str:
    """Render a UTC datetime as ISO-8601 with millisecond precision and a Z suffix."""

    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def minutes_between(start: datetime, end: datetime) -> float:
    """Return elapsed minutes from start to end; negative when start is later."""

    return (end - start).total_seconds() / 60.0
