"""Merge a canonical entry list into an existing store.

Used by ``frece init`` (empty store) and ``frece update``. Entries that
survive keep their count and last access time; new names start at count 0.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from frece.errors import InvalidEntryError
from frece.models import Entry, validate_data

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime
    from pathlib import Path

logger = logging.getLogger("frece.reconcile")


def read_entry_list(path: Path) -> list[str]:
    """Read one entry name per line from a UTF-8 text file.

    Lines may end in ``\\n`` or ``\\r\\n``. Blank lines are skipped. Names are
    not deduplicated here; see reconcile().
    """
    names: list[str] = []
    chunks = path.read_bytes().split(b"\n")
    if chunks[-1] == b"":
        chunks.pop()
    for lineno, chunk in enumerate(chunks, start=1):
        try:
            line = chunk.decode("utf-8")
        except UnicodeDecodeError as exc:
            bad = chunk.decode("utf-8", errors="backslashreplace")
            raise InvalidEntryError(bad, f"{path}:{lineno}: not valid UTF-8") from exc
        if line.endswith("\r"):
            line = line[:-1]
        if not line:
            logger.warning("%s:%d: skipping blank entry", path, lineno)
            continue
        names.append(line)
    logger.debug("read %d names from %s", len(names), path)
    return names


def unique_names(names: Iterable[str]) -> list[str]:
    """Validate names and drop repeats, keeping each name's first position."""
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        validate_data(name)
        if name in seen:
            logger.warning("duplicate entry %r ignored", name)
            continue
        seen.add(name)
        result.append(name)
    return result


def reconcile(
    canonical_names: Iterable[str],
    existing: Sequence[Entry],
    now: datetime,
    *,
    purge_old: bool = False,
) -> list[Entry]:
    """Build the new entry list for a store.

    The result starts with one entry per canonical name, in canonical order:
    the existing entry when there is one, else ``Entry.new(name, now)``.
    Unless ``purge_old`` is set, existing entries missing from the canonical
    list follow, in their original store order.
    """
    names = unique_names(canonical_names)

    lookup: dict[str, Entry] = {}
    for entry in existing:
        lookup.setdefault(entry.data, entry)

    result = [lookup.get(name) or Entry.new(name, now) for name in names]
    kept = sum(1 for name in names if name in lookup)

    stale: list[Entry] = []
    emitted = set(names)
    for entry in existing:
        if entry.data in emitted:
            continue
        emitted.add(entry.data)
        stale.append(entry)

    logger.info(
        "reconciled %d names: %d kept, %d new, %d stale %s",
        len(names), kept, len(names) - kept, len(stale), "purged" if purge_old else "retained",
    )
    if purge_old:
        return result
    return result + stale
