"""Shared fixtures for frece tests."""

from datetime import UTC, datetime

import pytest

from frece.models import Entry
from frece.store import EntryStore

T0 = datetime(2023, 1, 1, tzinfo=UTC)
NOW = datetime(2023, 6, 1, 12, 30, 15, 123456, tzinfo=UTC)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Never pick up the developer's real ~/.config/frece/frece.toml."""
    monkeypatch.setenv("FRECE_CONFIG", str(tmp_path / "no-such-frece.toml"))


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "frece.db"


@pytest.fixture
def make_db(db_path):
    """Write entries (or raw lines) to db_path and return the path."""

    def _make(*items):
        lines = [item.to_line() if isinstance(item, Entry) else item for item in items]
        db_path.write_bytes("".join(line + "\n" for line in lines).encode("utf-8"))
        return db_path

    return _make


@pytest.fixture
def abc_db(make_db):
    """Store with a, b, c at counts 0, 5, 2."""
    return make_db(
        Entry(0, T0, "a"),
        Entry(5, T0, "b"),
        Entry(2, T0, "c"),
    )


@pytest.fixture
def store(db_path):
    return EntryStore(db_path, lock_timeout=0)
