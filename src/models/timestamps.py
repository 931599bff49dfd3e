# src/models/timestamps.py

"""Normalisation of creation timestamps to epoch milliseconds.

Records reach the engine with ``createdAt`` in several shapes: the
store's native timestamp object, its JSON export
(``{"_seconds": ..., "_nanoseconds": ...}``), a ``datetime``, an ISO
date string or a plain number of milliseconds.  Sorting compares the
normalised value so ordering never depends on the source shape.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("gearzone.models")


@dataclass(frozen=True, order=True)
class StoreTimestamp:
    """Store-native timestamp: whole seconds plus nanoseconds."""

    seconds: int
    nanoseconds: int = 0

    def to_millis(self) -> int:
        return self.seconds * 1000 + self.nanoseconds // 1_000_000

    @classmethod
    def from_datetime(cls, value: datetime) -> "StoreTimestamp":
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        micros = round(value.timestamp() * 1_000_000)
        seconds, rem = divmod(micros, 1_000_000)
        return cls(seconds=seconds, nanoseconds=rem * 1000)

    @classmethod
    def now(cls) -> "StoreTimestamp":
        return cls.from_datetime(datetime.now(timezone.utc))


def _datetime_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def _parse_iso(text: str) -> int:
    cleaned = text.strip()
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"
    return _datetime_millis(datetime.fromisoformat(cleaned))


def to_epoch_millis(value: Any) -> int:
    """Normalise any supported timestamp shape to epoch milliseconds.

    Missing or unparseable values normalise to ``0`` so they sort as
    the oldest entries instead of breaking the comparison.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, StoreTimestamp):
        return value.to_millis()
    if isinstance(value, datetime):
        return _datetime_millis(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
        if isinstance(seconds, (int, float)):
            return int(seconds) * 1000 + int(nanos or 0) // 1_000_000
        return 0
    if isinstance(value, str):
        if not value.strip():
            return 0
        try:
            return _parse_iso(value)
        except ValueError:
            logger.debug("Unparseable timestamp string %r", value)
            return 0

    # Duck-typed native timestamps exposing to_millis()/seconds
    to_millis = getattr(value, "to_millis", None)
    if callable(to_millis):
        return int(to_millis())
    seconds = getattr(value, "seconds", None)
    if isinstance(seconds, (int, float)):
        nanos = getattr(value, "nanoseconds", 0) or 0
        return int(seconds) * 1000 + int(nanos) // 1_000_000

    logger.debug("Unsupported timestamp type %s", type(value).__name__)
    return 0
