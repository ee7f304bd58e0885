"""easync.core.sync

What:
  Drive one change-detection pass for a (device, folder, collection) slot and
  one FolderSync pass for a device's folder hierarchy, tying the backend
  adapter to the folder state and its store.

Why:
  The order of operations is what makes sync resumable: read the previous
  state, ask for changes since its checkpoint, stat each changed item, fold,
  serialize, save. Keeping that sequence in one place means every protocol
  handler (Sync, Ping, FolderSync) observes the same guarantees.

How:
  - Load the stored blob; ``None`` means first sync and yields a fresh state,
    a malformed blob raises :class:`easync.errors.CorruptStateError` and is
    left for the caller to discard.
  - Request ids changed in ``[checkpoint, to_ts)``; an id whose stat raises
    :class:`easync.errors.NotFoundError` was deleted in the meantime and is
    recorded as a removal.
  - Fold with ``to_ts`` as the new checkpoint, serialize, and save.

Interfaces:
  :class:`SyncResult`, :class:`HierarchyResult`, :class:`FolderSync`.

Invariants & Safety:
  - State is saved only after the whole pass succeeded; a backend fault in
    the middle leaves the previous blob untouched.
  - Ping checks never write state.
  - The stored checkpoint only moves forward.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..backend.defaults import DefaultedBackend
from ..backend.contract import StateStore
from ..backend.models import CLASS_EMAIL, HIERARCHY_CLASS, ROOT_FOLDER_ID, FolderObject, MessageStat
from ..errors import InvalidArgumentError, NotFoundError
from ..folder.collection import CollectionFolder, FolderDiff
from ..folder.hierarchy import HierarchyState
from ..utils.logging import resolve_logger


@dataclass
class SyncResult:
    """Outcome of one collection pass.

    Attributes:
      folder_id: Server id of the synchronised folder.
      collection_class: Data type of the folder.
      diff: Classification of the folded changes.
      checkpoint: Window end stored as the next pass's start.
    """

    folder_id: str
    collection_class: str
    diff: FolderDiff
    checkpoint: float


@dataclass
class HierarchyResult:
    """Outcome of one FolderSync pass."""

    diff: FolderDiff
    folders: List[FolderObject] = field(default_factory=list)


class FolderSync:
    """Run change-detection passes against a defaulted backend.

    What:
      Combines a :class:`~easync.backend.defaults.DefaultedBackend`, a state
      store, and a logger.

    Why:
      The protocol handlers only decide *when* to sync; how a pass reads and
      writes state is the same everywhere.

    How:
      Each public method performs one pass end to end and returns a small
      result object the wire layer turns into a response.

    Attributes:
      backend: Adapter answering folder and item queries.
      store: Durable slots for serialized folder state.
      logger: Structured logger; a
        :class:`~easync.utils.logging.NullLogger` when none was given.
    """

    def __init__(self, backend: DefaultedBackend, store: StateStore, logger: Any = None) -> None:
        self.backend = backend
        self.store = store
        self.logger = resolve_logger(logger)

    def load_folder(self, device_id: str, folder_id: str, collection_class: str) -> CollectionFolder:
        """Return the stored state for a slot, or a fresh one on first sync."""

        blob = self.store.load(device_id, folder_id, collection_class)
        if blob is None:
            return CollectionFolder(folder_id, collection_class)
        return CollectionFolder.from_serialized(blob)

    def _stat(self, folder_id: str, item_id: str, collection_class: str) -> MessageStat:
        if collection_class == CLASS_EMAIL:
            return self.backend.stat_mail_message(folder_id, item_id)
        return self.backend.stat_message(folder_id, item_id)

    def run(
        self,
        device_id: str,
        folder_id: str,
        collection_class: str,
        to_ts: float,
        cutoff_date: Optional[float] = None,
    ) -> SyncResult:
        """Perform one sync pass for a folder and persist the new state.

        Args:
          device_id: Device the state belongs to.
          folder_id: Server id of the folder.
          collection_class: Data type of the folder.
          to_ts: Exclusive end of the change window; becomes the checkpoint.
          cutoff_date: Optional filter passed through to the backend.

        Returns:
          :class:`SyncResult` describing what the device must be told.

        Raises:
          InvalidArgumentError: If ``to_ts`` lies before the stored
            checkpoint; the checkpoint never moves backwards.
        """

        state = self.load_folder(device_id, folder_id, collection_class)
        from_ts = state.checkpoint or 0.0
        if to_ts < from_ts:
            raise InvalidArgumentError(f"window end {to_ts} precedes stored checkpoint {from_ts} for folder {folder_id}")
        changed = self.backend.get_server_changes(folder_id, from_ts, to_ts, cutoff_date, False)
        stats: List[MessageStat] = []
        gone: List[str] = []
        for item_id in changed:
            try:
                stats.append(self._stat(folder_id, item_id, collection_class))
            except NotFoundError:
                gone.append(item_id)
        state.record_changes(stats)
        state.record_removals(gone)
        diff = state.pending
        state.update_state(to_ts)
        self.store.save(device_id, folder_id, collection_class, state.serialize())
        self.logger.info(
            "folder_synced",
            device=device_id,
            folder=folder_id,
            collection=collection_class,
            added=len(diff.added),
            changed=len(diff.changed),
            flags=len(diff.flags),
            removed=len(diff.removed),
        )
        return SyncResult(folder_id=folder_id, collection_class=collection_class, diff=diff, checkpoint=float(to_ts))

    def has_changes(
        self,
        device_id: str,
        folder_id: str,
        collection_class: str,
        to_ts: float,
        cutoff_date: Optional[float] = None,
    ) -> bool:
        """Answer a Ping: has anything changed since the stored checkpoint?"""

        state = self.load_folder(device_id, folder_id, collection_class)
        from_ts = state.checkpoint or 0.0
        return bool(self.backend.get_server_changes(folder_id, from_ts, to_ts, cutoff_date, True))

    def sync_hierarchy(self, device_id: str) -> HierarchyResult:
        """Diff the backend's folder list against the device's hierarchy state."""

        blob = self.store.load(device_id, ROOT_FOLDER_ID, HIERARCHY_CLASS)
        state = HierarchyState() if blob is None else HierarchyState.from_serialized(blob)
        diff = state.detect_changes(self.backend.get_folder_list())
        folders = [self.backend.get_folder(folder_id) for folder_id in diff.added + diff.changed]
        state.update_state()
        self.store.save(device_id, ROOT_FOLDER_ID, HIERARCHY_CLASS, state.serialize())
        self.logger.info(
            "hierarchy_synced",
            device=device_id,
            added=len(diff.added),
            changed=len(diff.changed),
            removed=len(diff.removed),
        )
        return HierarchyResult(diff=diff, folders=folders)
