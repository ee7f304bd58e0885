"""
Module: tests/unit/test_sync.py

What:
    Drive :class:`easync.core.sync.FolderSync` end to end over the fake
    backend: first sync, incremental passes, deletions, ping, hierarchy.

Why:
    The orchestrator is where the adapter contract and the folder state meet;
    these tests pin the observable sequence a device depends on.

How:
    Mutate the fake backend between passes, run passes with increasing
    window ends, and inspect both the returned diffs and the stored blobs.
"""

import pytest

from easync.backend.models import HIERARCHY_CLASS, ROOT_FOLDER_ID, MessageFlags
from easync.core import FolderSync
from easync.errors import BackendFaultError, CorruptStateError, InvalidArgumentError
from easync.folder import CollectionFolder


@pytest.fixture
def sync(backend, store, logger):
    return FolderSync(backend, store, logger)


def test_first_pass_reports_everything_as_added(sync, fake_backend, store):
    fake_backend.put_item("inbox", "m1", "v1", 10.0)
    fake_backend.put_item("inbox", "m2", "v1", 20.0)
    result = sync.run("dev", "inbox", "Email", to_ts=100.0)
    assert result.diff.added == ("m1", "m2")
    assert result.checkpoint == 100.0
    assert store.saves == [("dev", "inbox", "Email")]
    stored = CollectionFolder.from_serialized(store.load("dev", "inbox", "Email"))
    assert stored.known_ids() == {"m1", "m2"}
    assert stored.checkpoint == 100.0


def test_incremental_pass_classifies_changes(sync, fake_backend):
    fake_backend.put_item("inbox", "m1", "v1", 10.0)
    fake_backend.put_item("inbox", "m2", "v1", 20.0)
    fake_backend.put_item("inbox", "m3", "v1", 30.0)
    sync.run("dev", "inbox", "Email", to_ts=100.0)

    fake_backend.put_item("inbox", "m1", "v2", 110.0)
    fake_backend.put_item("inbox", "m2", "v1", 120.0, flags=MessageFlags(read=True))
    fake_backend.remove_item("inbox", "m3", 130.0)
    fake_backend.put_item("inbox", "m4", "v1", 140.0)
    result = sync.run("dev", "inbox", "Email", to_ts=200.0)

    assert result.diff.changed == ("m1",)
    assert result.diff.flags == ("m2",)
    assert result.diff.removed == ("m3",)
    assert result.diff.added == ("m4",)


def test_pass_without_changes_is_empty_and_stable(sync, fake_backend, store):
    fake_backend.put_item("inbox", "m1", "v1", 10.0)
    sync.run("dev", "inbox", "Email", to_ts=100.0)
    first = store.load("dev", "inbox", "Email")
    result = sync.run("dev", "inbox", "Email", to_ts=100.0)
    assert not result.diff
    assert store.load("dev", "inbox", "Email") == first


def test_change_at_window_end_is_picked_up_next_pass(sync, fake_backend):
    fake_backend.put_item("inbox", "m1", "v1", 100.0)
    assert not sync.run("dev", "inbox", "Email", to_ts=100.0).diff
    assert sync.run("dev", "inbox", "Email", to_ts=200.0).diff.added == ("m1",)


def test_devices_have_independent_state(sync, fake_backend):
    fake_backend.put_item("inbox", "m1", "v1", 10.0)
    sync.run("phone", "inbox", "Email", to_ts=100.0)
    assert sync.run("tablet", "inbox", "Email", to_ts=100.0).diff.added == ("m1",)


def test_ping_does_not_write_state(sync, fake_backend, store):
    assert sync.has_changes("dev", "inbox", "Email", to_ts=100.0) is False
    fake_backend.put_item("inbox", "m1", "v1", 10.0)
    fake_backend.put_item("inbox", "m2", "v1", 20.0)
    assert sync.has_changes("dev", "inbox", "Email", to_ts=100.0) is True
    assert store.saves == []


def test_corrupt_state_propagates(sync, store):
    store.save("dev", "inbox", "Email", "garbage")
    with pytest.raises(CorruptStateError):
        sync.run("dev", "inbox", "Email", to_ts=100.0)


def test_backend_fault_leaves_previous_state(sync, fake_backend, store):
    fake_backend.put_item("inbox", "m1", "v1", 10.0)
    sync.run("dev", "inbox", "Email", to_ts=100.0)
    before = store.load("dev", "inbox", "Email")

    def broken(folder_id, item_id):
        raise BackendFaultError("store offline")

    fake_backend.put_item("inbox", "m2", "v1", 110.0)
    fake_backend.stat_mail_message = broken
    with pytest.raises(BackendFaultError):
        sync.run("dev", "inbox", "Email", to_ts=200.0)
    assert store.load("dev", "inbox", "Email") == before


def test_non_mail_collections_use_stat_message(sync, fake_backend):
    fake_backend.put_item("contacts", "c1", "v1", 10.0, flags=MessageFlags(read=True, flagged=True))
    sync.run("dev", "contacts", "Contacts", to_ts=100.0)
    stored = sync.load_folder("dev", "contacts", "Contacts")
    assert stored.snapshot("c1").flags == MessageFlags(read=True)


def test_hierarchy_sync_reports_folder_changes(sync, fake_backend, store):
    first = sync.sync_hierarchy("dev")
    assert first.diff.added == ("contacts", "inbox")
    assert [folder.serverid for folder in first.folders] == ["contacts", "inbox"]
    assert store.load("dev", ROOT_FOLDER_ID, HIERARCHY_CLASS) is not None

    fake_backend.rename_folder("inbox", "Posteingang")
    fake_backend.drop_folder("contacts")
    fake_backend.add_folder("tasks", "0", "Tasks", folder_type=7)
    second = sync.sync_hierarchy("dev")
    assert second.diff.added == ("tasks",)
    assert second.diff.changed == ("inbox",)
    assert second.diff.removed == ("contacts",)
    assert second.folders[1].displayname == "Posteingang"


def test_passes_are_logged(sync, fake_backend, logger):
    fake_backend.put_item("inbox", "m1", "v1", 10.0)
    sync.run("dev", "inbox", "Email", to_ts=100.0)
    assert "folder_synced" in logger.messages("INFO")
    assert "server_changes" in logger.messages("DEBUG")


def test_checkpoint_never_moves_backwards(sync, fake_backend, store):
    fake_backend.put_item("inbox", "m1", "v1", 10.0)
    sync.run("dev", "inbox", "Email", to_ts=100.0)
    before = store.load("dev", "inbox", "Email")
    with pytest.raises(InvalidArgumentError):
        sync.run("dev", "inbox", "Email", to_ts=50.0)
    assert store.load("dev", "inbox", "Email") == before
    assert sync.load_folder("dev", "inbox", "Email").checkpoint == 100.0


def test_log_only_logger_is_accepted(backend, store):
    class LogOnly:
        def __init__(self):
            self.messages = []

        def log(self, level, message, *, extra=None):
            self.messages.append(message)

    sink = LogOnly()
    FolderSync(backend, store, sink).sync_hierarchy("dev")
    assert sink.messages == ["hierarchy_synced"]
