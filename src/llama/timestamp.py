"""Timestamp — a settable point in time with a display format.

Usage::

    ts = Timestamp(1700000000)
    str(ts)                        # "14 Nov 23"
    ts.set_format("%Y-%m-%d")
    ts.set_timestamp("not a date") # ignored, value unchanged
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any

DEFAULT_FORMAT = "%d %b %y"


class Timestamp:
    __slots__ = ("_format", "_timestamp")

    def __init__(self, value: Any = None, fmt: str = DEFAULT_FORMAT) -> None:
        self._timestamp = int(time.time())
        self._format = fmt
        if value is not None:
            self.set_timestamp(value)

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def set_timestamp(self, value: Any) -> Timestamp:
        """Set from epoch seconds, ``"now"``, an ISO string or a datetime.

        Values that cannot be read as a time leave the timestamp unchanged.
        """
        parsed = _parse(value)
        if parsed is not None:
            self._timestamp = parsed
        return self

    @property
    def format(self) -> str:
        return self._format

    def set_format(self, fmt: str) -> Timestamp:
        self._format = fmt
        return self

    def to_datetime(self) -> datetime:
        return datetime.fromtimestamp(self._timestamp)

    def __str__(self) -> str:
        return self.to_datetime().strftime(self._format)

    def __repr__(self) -> str:
        return f"Timestamp({self._timestamp}, fmt={self._format!r})"


def _parse(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return int(value.timestamp())
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.lower() == "now":
        return int(time.time())
    if text.removeprefix("-").isdecimal():
        return int(text)
    try:
        return int(datetime.fromisoformat(text).timestamp())
    except (ValueError, OverflowError):
        return None
