from __future__ import annotations

from datetime import timedelta
from typing import Union

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60 * _MS_PER_SECOND
_MS_PER_HOUR = 60 * _MS_PER_MINUTE
_MS_PER_DAY = 24 * _MS_PER_HOUR


def to_duration(millis: Union[int, float]) -> timedelta:
    """Interpret ``millis`` as a number of milliseconds."""
    return timedelta(milliseconds=int(millis))


def format_duration(value: Union[int, float, timedelta]) -> str:
    """Format a duration compactly, dropping leading zero units.

    ``value`` is a :class:`~datetime.timedelta` or a number of milliseconds.

        500         -> "500ms"
        1500        -> "1.500s"
        61000       -> "01:01.000"
        3600000     -> "01:00:00.000"
        183845006   -> "2 days 03:04:05.006"
    """
    if isinstance(value, timedelta):
        millis = value // timedelta(milliseconds=1)
    else:
        millis = int(value)
    if millis < 0:
        raise ValueError("duration must not be negative")
    if millis == 0:
        return "0ms"

    days, rest = divmod(millis, _MS_PER_DAY)
    hours, rest = divmod(rest, _MS_PER_HOUR)
    minutes, rest = divmod(rest, _MS_PER_MINUTE)
    seconds, ms = divmod(rest, _MS_PER_SECOND)

    out = []
    if days > 0:
        out.append(f"{days} days ")
    show_hours = bool(out) or hours > 0
    if show_hours:
        out.append(f"{hours:02d}:")
    show_minutes = show_hours or minutes > 0
    if show_minutes:
        out.append(f"{minutes:02d}:")
    show_seconds = show_minutes or seconds > 0
    if show_seconds:
        out.append(f"{seconds:0{2 if show_minutes else 1}d}.")
    out.append(f"{ms:0{3 if show_seconds else 1}d}")

    if not show_seconds:
        out.append("ms")
    elif not show_minutes:
        out.append("s")
    return "".join(out)
