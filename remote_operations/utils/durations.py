"""ISO 8601 duration parsing.

Remote estimate endpoints report their duration interval as ISO 8601
duration strings (``"PT1H30M"``, ``"P1DT2H"``, ``"PT45.5S"``).  Parsing is
delegated to pydantic's ``timedelta`` validation through a shared
``TypeAdapter``; this module only normalises the input and rejects
negative durations, which no estimate can legitimately report.
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import TypeAdapter, ValidationError

_TIMEDELTA_ADAPTER: TypeAdapter[timedelta] = TypeAdapter(timedelta)


def parse_iso8601_duration(text: str) -> float:
    """Return the number of seconds in an ISO 8601 duration string.

    Args:
        text: Duration such as ``"PT2H"`` or ``"P1DT30M"``.

    Returns:
        The duration in seconds (may be fractional).

    Raises:
        ValueError: If *text* is empty, not a duration pydantic accepts,
            or negative.
    """
    raw = (text or "").strip()
    if not raw:
        msg = f"Unsupported ISO 8601 duration: {text!r}"
        raise ValueError(msg)
    if raw.startswith("-"):
        msg = f"Negative durations are not allowed: {text!r}"
        raise ValueError(msg)

    try:
        duration = _TIMEDELTA_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        msg = f"Unsupported ISO 8601 duration: {text!r}"
        raise ValueError(msg) from exc

    seconds = duration.total_seconds()
    if seconds < 0:
        msg = f"Negative durations are not allowed: {text!r}"
        raise ValueError(msg)
    return seconds
