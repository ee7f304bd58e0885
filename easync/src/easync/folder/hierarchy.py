"""Folder hierarchy state for one device.

The hierarchy is tracked like a collection whose items are folders: each known
folder is cached as its parent and ``mod`` signature, and a FolderSync pass
diffs the backend's current :class:`~easync.backend.models.FolderStat` listing
against that cache.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from pydantic import ValidationError as _PydanticValidationError

from ..backend.models import HIERARCHY_CLASS, ROOT_FOLDER_ID, FolderStat
from ..errors import CorruptStateError
from .base import FolderPhase, FolderState
from .collection import FolderDiff
from .schema import HierarchyPending, HierarchyStatus


class HierarchyState(FolderState):
    """Cached folder table plus staged folder changes."""

    kind = "hierarchy"

    def __init__(
        self,
        serverid: str = ROOT_FOLDER_ID,
        collection_class: str = HIERARCHY_CLASS,
        status: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(serverid, collection_class, status)

    def _validate_status(self, status: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            return HierarchyStatus.model_validate(dict(status)).model_dump()
        except (_PydanticValidationError, TypeError, ValueError) as exc:
            raise CorruptStateError(f"invalid hierarchy status: {exc}") from exc

    def _reset_pending(self) -> None:
        self._pending_changes: Dict[str, Dict[str, str]] = {}
        self._pending_removals: Set[str] = set()

    def _dump_pending(self) -> Dict[str, Any]:
        return {
            "changes": {folder_id: dict(snap) for folder_id, snap in self._pending_changes.items()},
            "removals": sorted(self._pending_removals),
        }

    def _load_pending(self, pending: Mapping[str, Any]) -> None:
        try:
            dumped = HierarchyPending.model_validate(dict(pending)).model_dump()
        except _PydanticValidationError as exc:
            raise CorruptStateError(f"invalid pending folder changes: {exc}") from exc
        self._pending_changes = dumped["changes"]
        self._pending_removals = set(dumped["removals"])

    def known_folders(self) -> List[FolderStat]:
        folders = self._status["folders"]
        return [FolderStat(id=folder_id, parent=snap["parent"], mod=snap["mod"]) for folder_id, snap in sorted(folders.items())]

    def diff(self, stats: Iterable[FolderStat]) -> FolderDiff:
        """Classify a full folder listing; a new parent or name counts as changed."""

        cached = self._status["folders"]
        added: List[str] = []
        changed: List[str] = []
        seen: Set[str] = set()
        for stat in stats:
            seen.add(stat.id)
            snap = cached.get(stat.id)
            if snap is None:
                added.append(stat.id)
            elif snap["mod"] != stat.mod or snap["parent"] != stat.parent:
                changed.append(stat.id)
        return FolderDiff(
            added=tuple(sorted(added)),
            changed=tuple(sorted(changed)),
            removed=tuple(sorted(set(cached) - seen)),
        )

    def has_pending(self) -> bool:
        return bool(self._pending_changes or self._pending_removals)

    def detect_changes(self, stats: Iterable[FolderStat]) -> FolderDiff:
        """Diff ``stats`` against the cache and stage the result."""

        self._guard_mutation()
        by_id = {stat.id: stat for stat in stats}
        result = self.diff(by_id.values())
        for folder_id in result.added + result.changed:
            stat = by_id[folder_id]
            self._pending_changes[folder_id] = {"parent": stat.parent, "mod": stat.mod}
            self._pending_removals.discard(folder_id)
        for folder_id in result.removed:
            self._pending_changes.pop(folder_id, None)
            self._pending_removals.add(folder_id)
        return result

    def update_state(self) -> None:
        self._guard_mutation()
        folders = self._status["folders"]
        for folder_id, snap in self._pending_changes.items():
            folders[folder_id] = dict(snap)
        for folder_id in self._pending_removals:
            folders.pop(folder_id, None)
        self._reset_pending()
        self.phase = FolderPhase.UPDATED
