"""Common utilities for Busload."""
import math
from datetime import datetime, timezone


def clamp(x, lo, hi):
    """Clamp x into [lo, hi]."""
    return max(lo, min(hi, x))


def round_half_up(x):
    """Round to the nearest integer, halves going up (1.5 -> 2, 2.5 -> 3)."""
    return int(math.floor(x + 0.5))


def partition_key(route, stop):
    """Store partition key for a route/stop pair."""
    return f"REPORT#{route}#{stop}"


def utcnow():
    return datetime.now(timezone.utc)


def parse_instant(value):
    """
    Parse an instant given as an ISO-8601 string or epoch milliseconds.

    Naive datetimes are taken as UTC. Returns a timezone-aware UTC datetime.
    Raises ValueError for anything unparseable.
    """
    if value is None:
        raise ValueError("instant is required")
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = _from_epoch_millis(float(value), value)
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("instant is empty")
        try:
            millis = float(text)
        except ValueError:
            millis = None
        if millis is not None:
            if not math.isfinite(millis):
                raise ValueError(f"invalid instant: {value!r}")
            dt = _from_epoch_millis(millis, value)
        else:
            if text.endswith("Z") or text.endswith("z"):
                text = text[:-1] + "+00:00"
            dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError(f"instant out of range: {value!r}") from e


def _from_epoch_millis(millis, value):
    try:
        return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError(f"instant out of range: {value!r}") from e


def format_instant(dt):
    """ISO-8601 UTC with millisecond precision, e.g. 2025-10-19T07:35:00.000Z.

    The fixed width makes the strings sort in time order.
    """
    dt = dt.astimezone(timezone.utc)
    return f"{dt.year:04d}-" + dt.strftime("%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
