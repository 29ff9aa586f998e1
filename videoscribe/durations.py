"""Conversion of Speech-to-Text word offsets to float seconds."""

from datetime import timedelta
from typing import Any, Mapping


def to_seconds(duration: Any) -> float:
    """Convert a protobuf ``Duration`` into seconds.

    ``duration`` may be a raw protobuf message (``seconds``/``nanos``
    attributes), the JSON mapping form of one, or the ``timedelta`` that
    proto-plus hands back for ``Duration`` fields.  ``None`` yields ``0.0``.
    """
    if duration is None:
        return 0.0
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    if isinstance(duration, Mapping):
        seconds = duration.get("seconds")
        nanos = duration.get("nanos")
    else:
        seconds = getattr(duration, "seconds", None)
        nanos = getattr(duration, "nanos", None)
    # int64 seconds are serialised as strings in the JSON mapping
    total = float(seconds) if seconds else 0.0
    if nanos:
        total += nanos / 1e9
    return total
