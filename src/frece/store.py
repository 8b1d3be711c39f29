"""Read and write a frece database file.

EntryStore is the public API:
    store = EntryStore("~/.local/share/frece/dirs.db")
    store.init(["/etc", "/home/me"], epoch)
    store.increment("/etc", now)
    entries = store.read().entries

Single-entry writes (add/increment/set) happen under flock(LOCK_EX) on the
database file, held from the read through the write. add appends a line;
increment/set overwrite the target record's bytes in place and leave every
other byte of the file alone.

Bulk writes (init/update) write a sibling ``<name>.tmp`` and rename it over
the database, so readers see either the old or the new file, never a mix.
They do not lock: run them when no other frece process is writing.
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
import os
import time as _time
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING

from frece.errors import (
    DuplicateEntryError,
    EntryNotFoundError,
    LengthInvariantError,
    LockTimeoutError,
    MalformedRecordError,
    TempFileExistsError,
)
from frece.models import Entry, validate_data
from frece.reconcile import reconcile

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator
    from datetime import datetime

logger = logging.getLogger("frece.store")

DEFAULT_LOCK_TIMEOUT = 10.0
DEFAULT_LOCK_POLL_INTERVAL = 0.05


@dataclass
class Snapshot:
    """Parsed entries plus the raw lines they came from, index-aligned."""

    entries: list[Entry] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)

    def index_of(self, data: str) -> int | None:
        for i, entry in enumerate(self.entries):
            if entry.data == data:
                return i
        return None

    def offset_of(self, index: int) -> int:
        """Byte offset of line ``index``: preceding line bytes plus one newline each."""
        return sum(len(line.encode("utf-8")) for line in self.lines[:index]) + index


def parse_records(raw: bytes) -> Snapshot:
    """Decode a whole database file. Any bad line fails the whole read."""
    snapshot = Snapshot()
    chunks = raw.split(b"\n")
    if chunks[-1] == b"":
        chunks.pop()
    for lineno, chunk in enumerate(chunks, start=1):
        try:
            line = chunk.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedRecordError("not valid UTF-8", repr(chunk), lineno) from exc
        snapshot.entries.append(Entry.from_line(line, lineno))
        snapshot.lines.append(line)
    return snapshot


class EntryStore:
    """Line-per-entry frecency database."""

    def __init__(
        self,
        path: Path | str,
        *,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
        lock_poll_interval: float = DEFAULT_LOCK_POLL_INTERVAL,
    ) -> None:
        self.path = Path(path).expanduser()
        self.lock_timeout = lock_timeout
        self.lock_poll_interval = lock_poll_interval

    @property
    def tmp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def exists(self) -> bool:
        return self.path.exists()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read(self) -> Snapshot:
        """Load every entry (unlocked)."""
        snapshot = parse_records(self.path.read_bytes())
        logger.debug("read %d entries from %s", len(snapshot.entries), self.path)
        return snapshot

    # ------------------------------------------------------------------
    # Write: single entry, under flock
    # ------------------------------------------------------------------

    def add(self, data: str, time: datetime) -> Entry:
        """Append a new entry with count 0. Raises if ``data`` is already present."""
        validate_data(data)
        entry = Entry.new(data, time)
        with self._locked() as f:
            raw = f.read()
            if parse_records(raw).index_of(data) is not None:
                raise DuplicateEntryError(data)
            line = entry.to_line().encode("utf-8") + b"\n"
            if raw and not raw.endswith(b"\n"):
                line = b"\n" + line
            f.seek(0, os.SEEK_END)
            f.write(line)
            f.flush()
        logger.debug("appended %r to %s", data, self.path)
        return entry

    def increment(self, data: str, now: datetime) -> Entry:
        """Bump an entry's count and set its last access to ``now``."""
        return self._rewrite_entry(data, lambda e: e.touched(now))

    def set(self, data: str, *, count: int | None = None, time: datetime | None = None) -> Entry:
        """Overwrite an entry's count and/or last access time."""
        if count is not None and count < 0:
            msg = f"count must be non-negative, got {count}"
            raise ValueError(msg)
        return self._rewrite_entry(data, lambda e: e.with_values(count=count, time=time))

    # ------------------------------------------------------------------
    # Write: whole file, via tmp + rename
    # ------------------------------------------------------------------

    def write_all(self, entries: Iterable[Entry]) -> int:
        """Atomically replace the database with ``entries``. Returns the count."""
        tmp = self.tmp_path
        try:
            f = tmp.open("x", encoding="utf-8", newline="\n")
        except FileExistsError as exc:
            raise TempFileExistsError(tmp) from exc

        n = 0
        try:
            with f:
                for entry in entries:
                    validate_data(entry.data)
                    f.write(entry.to_line() + "\n")
                    n += 1
                f.flush()
                os.fsync(f.fileno())
            tmp.replace(self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise
        logger.debug("wrote %d entries to %s", n, self.path)
        return n

    def init(self, names: Iterable[str], epoch: datetime) -> int:
        """Create (or replace) the database with every name at count 0."""
        n = self.write_all(reconcile(names, [], epoch))
        logger.info("initialized %s with %d entries", self.path, n)
        return n

    def update(self, names: Iterable[str], epoch: datetime, *, purge_old: bool = False) -> int:
        """Reconcile the database against ``names``; behaves as init() if it does not exist."""
        if not self.exists():
            return self.init(names, epoch)
        existing = self.read().entries
        n = self.write_all(reconcile(names, existing, epoch, purge_old=purge_old))
        logger.info("updated %s: %d entries", self.path, n)
        return n

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _rewrite_entry(self, data: str, transform: Callable[[Entry], Entry]) -> Entry:
        """Replace one record's bytes in place under exclusive flock."""
        with self._locked() as f:
            snapshot = parse_records(f.read())
            index = snapshot.index_of(data)
            if index is None:
                raise EntryNotFoundError(data)

            entry = transform(snapshot.entries[index])
            new = entry.to_line().encode("utf-8")
            old = snapshot.lines[index].encode("utf-8")
            if len(new) != len(old):
                raise LengthInvariantError(data, expected=len(old), actual=len(new))

            offset = snapshot.offset_of(index)
            f.seek(offset)
            f.write(new)
            f.flush()
        logger.debug("rewrote %r at byte %d of %s", data, offset, self.path)
        return entry

    @contextlib.contextmanager
    def _locked(self) -> Iterator[IO[bytes]]:
        """Open the database read/write holding LOCK_EX; unlock on exit."""
        with self.path.open("r+b") as f:
            self._acquire(f)
            try:
                yield f
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

    def _acquire(self, f: IO[bytes]) -> None:
        """flock(LOCK_EX), polling LOCK_NB until lock_timeout (0 = one attempt)."""
        deadline = _time.monotonic() + self.lock_timeout
        while True:
            try:
                fcntl.flock(f, fcntl.LOCK_EX | fcntl.LOCK_NB)
                return
            except BlockingIOError:
                if _time.monotonic() >= deadline:
                    raise LockTimeoutError(self.path, self.lock_timeout) from None
                logger.debug("waiting for lock on %s", self.path)
                _time.sleep(self.lock_poll_interval)
