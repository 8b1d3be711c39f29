"""Entry model and the single-line record codec.

A record is ``<count>,<time>,<data>``:

    000005,2023-01-01T00:00:00.000000+00:00,/home/user/project

count is zero-padded to six digits and time always carries microseconds and
an explicit ``+00:00`` offset, so re-encoding an entry after changing its
count or time keeps the line the same number of bytes. The point mutator in
``frece.store`` depends on that to overwrite a record in place.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from frece.errors import InvalidEntryError, MalformedRecordError

COUNT_WIDTH = 6

_COUNT_RE = re.compile(r"[0-9]+")
_TIME_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}\.[0-9]{6}\+00:00")

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def format_time(dt: datetime) -> str:
    """Render a timestamp in the fixed-width record format (UTC, microseconds)."""
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def parse_time(text: str) -> datetime:
    """Parse a user-supplied ISO 8601 / RFC 3339 timestamp into UTC.

    Accepts anything ``datetime.fromisoformat`` does, including a trailing
    ``Z``. A time without an offset is taken to be UTC.
    """
    try:
        dt = datetime.fromisoformat(text.strip())
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)
    except (ValueError, OverflowError) as exc:
        # OverflowError: the UTC instant falls outside year 1..9999
        msg = f"Invalid timestamp {text!r}: expected ISO 8601, e.g. 2023-01-01T00:00:00+00:00"
        raise ValueError(msg) from exc


def validate_data(data: str) -> str:
    """Reject entry data that cannot round-trip through a record line."""
    if not data:
        raise InvalidEntryError(data, "entry must not be empty")
    if "\n" in data:
        raise InvalidEntryError(data, "entry must not contain a newline")
    try:
        data.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidEntryError(data, "entry is not valid UTF-8") from exc
    return data


@dataclass(frozen=True)
class Entry:
    """One tracked item: access count, last access time, and its key."""

    count: int
    time: datetime
    data: str

    @classmethod
    def new(cls, data: str, time: datetime) -> Entry:
        """A fresh, never-accessed entry."""
        return cls(count=0, time=time, data=data)

    @classmethod
    def from_line(cls, line: str, line_number: int | None = None) -> Entry:
        """Decode one record line (without its trailing newline).

        Only the first two commas delimit fields; anything after them,
        commas included, is data. Decoding is strict: a line that would not
        re-encode to the same text is rejected.
        """
        parts = line.split(",", 2)
        if len(parts) < 3:
            raise MalformedRecordError("expected count,time,data", line, line_number)
        count_str, time_str, data = parts

        if not _COUNT_RE.fullmatch(count_str):
            raise MalformedRecordError(f"count is not an integer: {count_str!r}", line, line_number)
        count = int(count_str)
        if f"{count:0{COUNT_WIDTH}d}" != count_str:
            raise MalformedRecordError(
                f"count must be zero-padded to {COUNT_WIDTH} digits: {count_str!r}", line, line_number,
            )

        if not _TIME_RE.fullmatch(time_str):
            raise MalformedRecordError(f"time is not in record format: {time_str!r}", line, line_number)
        try:
            time = datetime.fromisoformat(time_str)
        except ValueError as exc:
            raise MalformedRecordError(f"time is not a valid date: {time_str!r}", line, line_number) from exc

        return cls(count=count, time=time, data=data)

    def to_line(self) -> str:
        """Encode as a record line (no trailing newline)."""
        return f"{self.count:0{COUNT_WIDTH}d},{format_time(self.time)},{self.data}"

    def touched(self, now: datetime) -> Entry:
        """Record one more access at ``now``."""
        return replace(self, count=self.count + 1, time=now)

    def with_values(self, count: int | None = None, time: datetime | None = None) -> Entry:
        """Override count and/or time; fields left as None keep their value."""
        return replace(
            self,
            count=self.count if count is None else count,
            time=self.time if time is None else time,
        )

    def elapsed_seconds(self, now: datetime) -> int:
        """Whole seconds since last access (never negative)."""
        return max(0, int((now - self.time).total_seconds()))
