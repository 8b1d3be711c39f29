"""Frecency scoring and entry ordering.

frecency = sigmoid(0.75 * ln(1 + count) - 0.25 * ln(1 + elapsed_seconds))

so frequently used entries rise, entries not touched for a long time sink,
and the score stays inside [0, 1). Entries that were never accessed score 0.
"""

from __future__ import annotations

import math
from datetime import UTC
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from frece.models import Entry

FREQUENCY_WEIGHT = 0.75
RECENCY_WEIGHT = 0.25
RANK_SCALE = 10**15


class SortMode(StrEnum):
    NONE = "none"
    ALPHABETICAL = "alphabetical"
    FRECENCY = "frecency"
    FREQUENCY = "frequency"
    RECENCY = "recency"


SORT_MODES = [m.value for m in SortMode]


def frecency(count: int, elapsed_seconds: int) -> float:
    """Score an entry from its access count and seconds since last access."""
    if count == 0:
        return 0.0
    c = FREQUENCY_WEIGHT * math.log1p(count)
    s = -RECENCY_WEIGHT * math.log1p(max(0, elapsed_seconds))
    return 1.0 / (1.0 + math.exp(-(c + s)))


def rank_key(entry: Entry, now: datetime) -> int:
    """Integer rank for sorting; larger means more frecent."""
    return int(RANK_SCALE * frecency(entry.count, entry.elapsed_seconds(now)))


def sort_entries(entries: Iterable[Entry], mode: SortMode | str, now: datetime) -> list[Entry]:
    """Return entries ordered by ``mode``.

    Every mode is a stable sort, so ties keep their store order.
    """
    items = list(entries)
    mode = SortMode(mode)
    if mode is SortMode.ALPHABETICAL:
        return sorted(items, key=lambda e: e.data)
    if mode is SortMode.FRECENCY:
        return sorted(items, key=lambda e: rank_key(e, now), reverse=True)
    if mode is SortMode.FREQUENCY:
        return sorted(items, key=lambda e: e.count, reverse=True)
    if mode is SortMode.RECENCY:
        return sorted(items, key=lambda e: e.time, reverse=True)
    return items


def format_info(entry: Entry, now: datetime) -> str:
    """Verbose print line: score, count, last access (to the second), data."""
    score = frecency(entry.count, entry.elapsed_seconds(now))
    stamp = entry.time.astimezone(UTC).isoformat(timespec="seconds")
    return f"{score:.6f}  {entry.count:6d}  {stamp:<25}  {entry.data}"
