"""
Module: tests/unit/test_changes.py

What:
    Check window boundaries, cutoff filtering, deduplication, and ping-mode
    reduction of :func:`easync.backend.changes.select_server_changes`.

Why:
    Consecutive passes share a boundary timestamp; an off-by-one here means a
    device either misses a change or receives it twice.
"""

from easync.backend.changes import ChangeEntry, in_change_window, select_server_changes


LOG = [
    ChangeEntry("a", 10.0, item_date=100.0),
    ChangeEntry("b", 20.0, item_date=50.0),
    ChangeEntry("c", 30.0),
    ChangeEntry("a", 25.0, item_date=100.0),
]


def test_window_is_inclusive_at_start_and_exclusive_at_end():
    assert in_change_window(10.0, 10.0, 20.0)
    assert not in_change_window(20.0, 10.0, 20.0)
    assert select_server_changes(LOG, 10.0, 20.0) == ["a"]
    assert select_server_changes(LOG, 20.0, 30.0) == ["b", "a"]


def test_adjacent_windows_partition_the_log():
    first = select_server_changes(LOG, 0.0, 20.0)
    second = select_server_changes(LOG, 20.0, 40.0)
    assert set(first) | set(second) == {"a", "b", "c"}
    assert "b" not in first and "c" not in first


def test_empty_window_returns_nothing():
    assert select_server_changes(LOG, 40.0, 50.0) == []
    assert select_server_changes([], 0.0, 100.0) == []


def test_duplicates_are_ordered_by_latest_change():
    assert select_server_changes(LOG, 0.0, 100.0) == ["b", "a", "c"]


def test_cutoff_drops_items_dated_before_it():
    assert select_server_changes(LOG, 0.0, 100.0, cutoff_date=60.0) == ["a", "c"]


def test_ping_mode_is_a_nonempty_subset_iff_changes_exist():
    full = select_server_changes(LOG, 0.0, 100.0)
    pinged = select_server_changes(LOG, 0.0, 100.0, ping=True)
    assert len(pinged) == 1
    assert set(pinged) <= set(full)
    assert select_server_changes(LOG, 40.0, 50.0, ping=True) == []
