"""Tests for bulk reconciliation and entry-list reading."""

import logging

import pytest

from frece.errors import InvalidEntryError
from frece.models import Entry
from frece.reconcile import read_entry_list, reconcile, unique_names

from .conftest import NOW, T0


def _summary(entries):
    return [(e.data, e.count) for e in entries]


# ============================================================================
# reconcile()
# ============================================================================


def test_new_names_interleave_with_existing_and_stale_trail():
    existing = [Entry(3, T0, "a"), Entry(1, T0, "b")]
    result = reconcile(["x", "a", "y"], existing, NOW)
    assert _summary(result) == [("x", 0), ("a", 3), ("y", 0), ("b", 1)]
    assert result[0].time == NOW
    assert result[2].time == NOW


def test_matches_keep_history():
    old = Entry(42, T0, "kept")
    result = reconcile(["kept"], [old], NOW)
    assert result == [old]


def test_purge_old_drops_stale():
    existing = [Entry(3, T0, "a"), Entry(1, T0, "b"), Entry(9, T0, "c")]
    result = reconcile(["c", "new"], existing, NOW, purge_old=True)
    assert _summary(result) == [("c", 9), ("new", 0)]


def test_stale_entries_keep_store_order():
    existing = [Entry(1, T0, n) for n in ["z", "m", "a", "q", "b"]]
    result = reconcile(["a"], existing, NOW)
    assert [e.data for e in result] == ["a", "z", "m", "q", "b"]


def test_init_is_reconcile_against_empty_store():
    result = reconcile(["one", "two", "three"], [], T0)
    assert result == [Entry(0, T0, "one"), Entry(0, T0, "two"), Entry(0, T0, "three")]


def test_duplicate_names_keep_first_position(caplog):
    with caplog.at_level(logging.WARNING, logger="frece.reconcile"):
        result = reconcile(["a", "b", "a", "c", "b"], [], T0)
    assert [e.data for e in result] == ["a", "b", "c"]
    assert "duplicate entry 'a'" in caplog.text


def test_purged_data_set_equals_canonical_set():
    existing = [Entry(1, T0, "old1"), Entry(2, T0, "keep"), Entry(3, T0, "old2")]
    names = ["n1", "keep", "n2", "n1"]
    result = reconcile(names, existing, NOW, purge_old=True)
    assert {e.data for e in result} == set(names)
    assert len(result) == 3


def test_retained_data_set_is_union():
    existing = [Entry(1, T0, "old1"), Entry(2, T0, "keep")]
    result = reconcile(["keep", "new"], existing, NOW)
    assert {e.data for e in result} == {"old1", "keep", "new"}


def test_duplicate_rows_in_store_emitted_once():
    existing = [Entry(1, T0, "dup"), Entry(2, T0, "other"), Entry(5, T0, "dup")]
    result = reconcile([], existing, NOW)
    assert _summary(result) == [("dup", 1), ("other", 2)]


def test_output_is_deterministic():
    existing = [Entry(i, T0, f"e{i}") for i in range(50)]
    names = [f"e{i}" for i in range(0, 50, 3)] + ["fresh"]
    first = [e.to_line() for e in reconcile(names, existing, NOW)]
    second = [e.to_line() for e in reconcile(names, existing, NOW)]
    assert first == second


@pytest.mark.parametrize("bad", ["", "multi\nline"])
def test_invalid_names_rejected(bad):
    with pytest.raises(InvalidEntryError):
        reconcile(["ok", bad], [], T0)


def test_unique_names_preserves_order():
    assert unique_names(["c", "a", "c", "b", "a"]) == ["c", "a", "b"]


# ============================================================================
# read_entry_list()
# ============================================================================


def test_read_entry_list(tmp_path):
    path = tmp_path / "entries.txt"
    path.write_text("/usr/bin\n/home/me,with comma\n /leading space\n")
    assert read_entry_list(path) == ["/usr/bin", "/home/me,with comma", " /leading space"]


def test_read_entry_list_without_trailing_newline(tmp_path):
    path = tmp_path / "entries.txt"
    path.write_text("a\nb")
    assert read_entry_list(path) == ["a", "b"]


def test_read_entry_list_skips_blank_lines(tmp_path, caplog):
    path = tmp_path / "entries.txt"
    path.write_text("a\n\nb\n")
    with caplog.at_level(logging.WARNING, logger="frece.reconcile"):
        assert read_entry_list(path) == ["a", "b"]
    assert "skipping blank entry" in caplog.text


def test_read_entry_list_empty_file(tmp_path):
    path = tmp_path / "entries.txt"
    path.write_text("")
    assert read_entry_list(path) == []


def test_read_entry_list_strips_crlf(tmp_path):
    path = tmp_path / "entries.txt"
    path.write_bytes(b"a\r\nb\r\n\r\nc")
    assert read_entry_list(path) == ["a", "b", "c"]


def test_read_entry_list_strips_only_one_carriage_return(tmp_path):
    path = tmp_path / "entries.txt"
    path.write_bytes(b"a\r\r\nb\rc\n")
    assert read_entry_list(path) == ["a\r", "b\rc"]


def test_read_entry_list_rejects_invalid_utf8(tmp_path):
    path = tmp_path / "entries.txt"
    path.write_bytes(b"/ok\n/caf\xe9\n")
    with pytest.raises(InvalidEntryError, match=r"entries.txt:2: not valid UTF-8") as exc_info:
        read_entry_list(path)
    assert exc_info.value.data == "/caf\\xe9"
