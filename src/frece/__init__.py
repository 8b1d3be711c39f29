"""Frecency-indexed database: one text file, one line per entry.

Record format (UTF-8, newline-terminated):
    <count, 6-digit zero-padded>,<last access, RFC 3339 UTC with microseconds>,<data>

    000005,2023-01-01T00:00:00.000000+00:00,/home/user/project

data is the entry's unique key; it may contain commas but not newlines.

Concurrent writes: add/increment/set hold flock(LOCK_EX) across read and write;
increment/set overwrite only the target record's bytes.
Bulk rewrites (init/update) go through <db>.tmp + rename.
"""

from frece.errors import (
    DuplicateEntryError,
    EntryNotFoundError,
    FreceError,
    LengthInvariantError,
    MalformedRecordError,
)
from frece.models import Entry
from frece.reconcile import reconcile
from frece.scoring import SortMode, frecency, sort_entries
from frece.store import EntryStore

__all__ = [
    "DuplicateEntryError",
    "Entry",
    "EntryNotFoundError",
    "EntryStore",
    "FreceError",
    "LengthInvariantError",
    "MalformedRecordError",
    "SortMode",
    "frecency",
    "reconcile",
    "sort_entries",
]
