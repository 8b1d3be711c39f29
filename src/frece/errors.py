"""Exception hierarchy for frece.

Every failure the store can report derives from FreceError, so the CLI can
turn any of them into a one-line diagnostic. Filesystem errors (OSError) are
not wrapped; they propagate as raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class FreceError(Exception):
    """Base class for all frece errors."""


class MalformedRecordError(FreceError, ValueError):
    """A database line does not match the ``count,time,data`` grammar."""

    def __init__(self, reason: str, line: str, line_number: int | None = None) -> None:
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"Malformed record ({where}{reason}): {line!r}")
        self.reason = reason
        self.line = line
        self.line_number = line_number


class DuplicateEntryError(FreceError):
    """``add`` was asked to create an entry that already exists."""

    def __init__(self, data: str) -> None:
        super().__init__(f"Entry found in database: {data}")
        self.data = data


class EntryNotFoundError(FreceError, LookupError):
    """``increment``/``set`` was asked to modify an entry that does not exist."""

    def __init__(self, data: str) -> None:
        super().__init__(f"Entry not found in database: {data}")
        self.data = data


class InvalidEntryError(FreceError, ValueError):
    """Entry data that cannot be stored on a single record line."""

    def __init__(self, data: str, reason: str) -> None:
        super().__init__(f"Invalid entry {data!r}: {reason}")
        self.data = data
        self.reason = reason


class LengthInvariantError(FreceError, RuntimeError):
    """Re-encoded record does not occupy the same bytes as the original line.

    Raised before anything is written: overwriting with a different length
    would shift or clobber every following record.
    """

    def __init__(self, data: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Refusing in-place rewrite of {data!r}: "
            f"record is {actual} bytes, original line is {expected} bytes"
        )
        self.data = data
        self.expected = expected
        self.actual = actual


class TempFileExistsError(FreceError, FileExistsError):
    """A leftover temporary file blocks the atomic rewrite."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Temporary file already exists (remove it if no other frece is running): {path}")
        self.path = path


class LockTimeoutError(FreceError, TimeoutError):
    """The exclusive lock on the database could not be acquired in time."""

    def __init__(self, path: Path, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for lock on {path}")
        self.path = path
        self.timeout = timeout


class ConfigError(FreceError, ValueError):
    """frece.toml could not be parsed or holds an invalid value."""
