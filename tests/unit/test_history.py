"""Tests for bharat_osint.history – recently-used store and activity log."""

from __future__ import annotations

import json

import pytest

from bharat_osint.history import (
    READY_MESSAGE,
    RECENT_SEARCHES_KEY,
    ActivityLog,
    RecentStore,
)

A, B, C, D, E, F = (f"+91 9000{i} 00000" for i in range(6))

# ---------------------------------------------------------------------------
# RecentStore
# ---------------------------------------------------------------------------


def test_recent_add_moves_duplicate_to_front():
    store = RecentStore()
    store.add(A)
    store.add(B)
    assert store.add(A) == [A, B]


def test_recent_sixth_entry_drops_oldest():
    store = RecentStore()
    for identifier in (A, B, C, D, E, F):
        store.add(identifier)
    assert store.entries == [F, E, D, C, B]


def test_recent_entries_is_a_copy():
    store = RecentStore()
    store.add(A)
    store.entries.append(B)
    assert store.entries == [A]


def test_recent_persists_between_instances(tmp_path):
    path = tmp_path / "recent.json"
    RecentStore(path).add(A)
    RecentStore(path).add(B)

    assert RecentStore(path).entries == [B, A]
    assert json.loads(path.read_text(encoding="utf-8")) == {RECENT_SEARCHES_KEY: [B, A]}


def test_recent_keeps_unrelated_keys(tmp_path):
    path = tmp_path / "recent.json"
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

    RecentStore(path).add(A)

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["theme"] == "dark"
    assert document[RECENT_SEARCHES_KEY] == [A]


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps(["a", "list"]),
        json.dumps({RECENT_SEARCHES_KEY: "not a list"}),
    ],
)
def test_recent_corrupt_data_reads_empty(tmp_path, content):
    path = tmp_path / "recent.json"
    path.write_text(content, encoding="utf-8")
    assert RecentStore(path).entries == []


def test_recent_drops_non_string_entries_and_applies_limit(tmp_path):
    path = tmp_path / "recent.json"
    path.write_text(json.dumps({RECENT_SEARCHES_KEY: [A, 7, None, B, C]}), encoding="utf-8")
    assert RecentStore(path, limit=2).entries == [A, B]


def test_recent_load_drops_duplicates_keeping_first(tmp_path):
    path = tmp_path / "recent.json"
    path.write_text(json.dumps({RECENT_SEARCHES_KEY: [A, A, B, A, C]}), encoding="utf-8")
    assert RecentStore(path).entries == [A, B, C]


def test_recent_clear(tmp_path):
    path = tmp_path / "recent.json"
    store = RecentStore(path)
    store.add(A)
    store.clear()
    assert store.entries == []
    assert RecentStore(path).entries == []


def test_recent_write_failure_is_logged_not_raised(tmp_path, caplog):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    store = RecentStore(blocker / "recent.json")

    store.add(A)

    assert store.entries == [A]
    assert "Failed to persist recent searches" in caplog.text


# ---------------------------------------------------------------------------
# ActivityLog
# ---------------------------------------------------------------------------


def test_activity_log_seeded_with_ready_message():
    assert ActivityLog().lines == [READY_MESSAGE]


def test_activity_log_most_recent_first_with_timestamp():
    log = ActivityLog(clock=lambda: "09:15:00")
    line = log.add("SCAN COMPLETE.")
    assert line == "[09:15:00] SCAN COMPLETE."
    assert log.lines == ["[09:15:00] SCAN COMPLETE.", READY_MESSAGE]


def test_activity_log_is_capped():
    log = ActivityLog(limit=3, clock=lambda: "t")
    for i in range(5):
        log.add(f"m{i}")
    assert log.lines == ["[t] m4", "[t] m3", "[t] m2"]


def test_activity_log_mirrors_to_logging(caplog):
    caplog.set_level("INFO", logger="bharat_osint.history")
    ActivityLog().add("BATCH EXTRACTION COMPLETE.")
    assert "BATCH EXTRACTION COMPLETE." in caplog.text
