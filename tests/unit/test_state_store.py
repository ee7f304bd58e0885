"""
Module: tests/unit/test_state_store.py

What:
    Verify the memory and file state stores keep one blob per (device,
    folder, collection) slot and report absent slots as ``None``.

Why:
    Absent state means "first sync" while a corrupt one must fail loudly; a
    store conflating slots or inventing empty blobs would break both.
"""

import os

import pytest

from easync.backend.contract import StateStore
from easync.state import FileStateStore, MemoryStateStore
from easync.utils.ids import state_slot_name


@pytest.fixture(params=["memory", "file"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return MemoryStateStore()
    return FileStateStore(tmp_path / "state")


def test_stores_satisfy_protocol(any_store):
    assert isinstance(any_store, StateStore)


def test_missing_slot_loads_none(any_store):
    assert any_store.load("dev", "inbox", "Email") is None


def test_slots_are_isolated_per_triple(any_store):
    any_store.save("dev", "inbox", "Email", "a")
    any_store.save("dev", "inbox", "Calendar", "b")
    any_store.save("other", "inbox", "Email", "c")
    assert any_store.load("dev", "inbox", "Email") == "a"
    assert any_store.load("dev", "inbox", "Calendar") == "b"
    assert any_store.load("other", "inbox", "Email") == "c"


def test_save_replaces_previous_blob(any_store):
    any_store.save("dev", "inbox", "Email", "old")
    any_store.save("dev", "inbox", "Email", "new")
    assert any_store.load("dev", "inbox", "Email") == "new"


def test_file_store_uses_hashed_names_and_leaves_no_temp_files(tmp_path):
    store = FileStateStore(tmp_path / "nested" / "state")
    store.save("dev/../x", "inbox", "Email", "{}")
    path = store.path_for("dev/../x", "inbox", "Email")
    assert path.parent == store.root
    assert path.name == f"{state_slot_name('dev/../x', 'inbox', 'Email')}.json"
    assert [p.name for p in store.root.iterdir()] == [path.name]


def test_slot_names_are_unambiguous():
    assert state_slot_name("a:b", "c", "Email") != state_slot_name("a", "b:c", "Email")
    assert len(state_slot_name("dev", "inbox", "Email")) == 64


def test_file_stores_sharing_a_root_do_not_share_temp_files(tmp_path, monkeypatch):
    root = tmp_path / "state"
    first = FileStateStore(root)
    second = FileStateStore(root)
    replaced = []
    real_replace = os.replace

    def recording_replace(src, dst):
        replaced.append(os.path.basename(src))
        real_replace(src, dst)

    monkeypatch.setattr(os, "replace", recording_replace)
    first.save("dev", "inbox", "Email", "one")
    second.save("dev", "inbox", "Email", "two")
    assert len(set(replaced)) == 2
    assert first.load("dev", "inbox", "Email") == "two"
    assert [p.suffix for p in root.iterdir()] == [".json"]
