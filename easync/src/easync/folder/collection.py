"""Change tracking for folders holding items (mail, contacts, calendar, tasks).

What:
  Implement :class:`CollectionFolder`, the folder state that caches one
  :class:`~easync.folder.schema.ItemSnapshot` per known item and classifies
  what the server reports against that cache.

Why:
  The protocol engine must tell the device exactly which items were added,
  changed, re-flagged, or removed since its last sync. Comparing cheap stats
  against a durable snapshot is what makes that possible without transferring
  whole items.

How:
  Server changes are staged in pending accumulators by
  :meth:`CollectionFolder.record_changes` / :meth:`CollectionFolder.record_removals`
  (or :meth:`CollectionFolder.detect_changes` from a full listing) and folded
  into the item table by :meth:`CollectionFolder.update_state`. A change whose
  ``mod`` matches the cache but whose flags differ is reported separately, so
  the engine can send a flag-only update instead of the whole item.

Interfaces:
  :class:`FolderDiff`, :class:`CollectionFolder`.

Invariants & Safety:
  - ``update_state`` is idempotent: folding an empty accumulator changes
    nothing.
  - Removals of ids the cache never held are ignored so the device is never
    told to delete something it does not have.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Set, Tuple

from pydantic import ValidationError as _PydanticValidationError

from ..backend.models import MessageFlags, MessageStat
from ..errors import CorruptStateError
from .base import FolderPhase, FolderState
from .schema import CollectionPending, CollectionStatus


@dataclass(frozen=True)
class FolderDiff:
    """Classification of a set of server changes against the cached status."""

    added: Tuple[str, ...] = ()
    changed: Tuple[str, ...] = ()
    flags: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.added or self.changed or self.flags or self.removed)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.changed) + len(self.flags) + len(self.removed)


def _snapshot(stat: MessageStat) -> Dict[str, Any]:
    return {"mod": stat.mod, "flags": stat.flags.as_dict()}


def _flags(stored: Mapping[str, bool]) -> MessageFlags:
    # Missing bits read as unset; unknown keys are ignored.
    return MessageFlags(
        read=stored.get("read", False),
        flagged=stored.get("flagged", False),
        answered=stored.get("answered", False),
        forwarded=stored.get("forwarded", False),
    )


class CollectionFolder(FolderState):
    """Folder state for a collection of items.

    Attributes:
      serverid: Server id of the folder.
      collection_class: Data type the folder carries.
      phase: Current :class:`~easync.folder.base.FolderPhase`.
    """

    kind = "collection"

    def _validate_status(self, status: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            return CollectionStatus.model_validate(dict(status)).model_dump()
        except (_PydanticValidationError, TypeError, ValueError) as exc:
            raise CorruptStateError(f"invalid collection status: {exc}") from exc

    def _reset_pending(self) -> None:
        self._pending_changes: Dict[str, Dict[str, Any]] = {}
        self._pending_removals: Set[str] = set()

    def _dump_pending(self) -> Dict[str, Any]:
        return {
            "changes": {item_id: dict(snap) for item_id, snap in self._pending_changes.items()},
            "removals": sorted(self._pending_removals),
        }

    def _load_pending(self, pending: Mapping[str, Any]) -> None:
        try:
            model = CollectionPending.model_validate(dict(pending))
        except _PydanticValidationError as exc:
            raise CorruptStateError(f"invalid pending changes: {exc}") from exc
        dumped = model.model_dump()
        self._pending_changes = dumped["changes"]
        self._pending_removals = set(dumped["removals"])

    # Queries ------------------------------------------------------------
    @property
    def checkpoint(self) -> Optional[float]:
        """Timestamp up to which server changes were folded, if any."""

        return self._status["checkpoint"]

    def known_ids(self) -> Set[str]:
        return set(self._status["items"])

    def snapshot(self, item_id: str) -> Optional[MessageStat]:
        """Return the cached stat for ``item_id``, or ``None`` if unknown."""

        snap = self._status["items"].get(item_id)
        if snap is None:
            return None
        return MessageStat(id=item_id, mod=snap["mod"], flags=_flags(snap["flags"]))

    def classify(self, stat: MessageStat) -> Optional[str]:
        """Return ``"added"``, ``"changed"``, ``"flags"`` or ``None`` when unchanged."""

        snap = self._status["items"].get(stat.id)
        if snap is None:
            return "added"
        if snap["mod"] != stat.mod:
            return "changed"
        if _flags(snap["flags"]) != stat.flags:
            return "flags"
        return None

    def diff(self, server_stats: Iterable[MessageStat]) -> FolderDiff:
        """Compare a full server listing with the cache without mutating anything."""

        buckets: Dict[str, list] = {"added": [], "changed": [], "flags": []}
        seen: Set[str] = set()
        for stat in server_stats:
            seen.add(stat.id)
            outcome = self.classify(stat)
            if outcome is not None:
                buckets[outcome].append(stat.id)
        removed = sorted(set(self._status["items"]) - seen)
        return FolderDiff(
            added=tuple(sorted(buckets["added"])),
            changed=tuple(sorted(buckets["changed"])),
            flags=tuple(sorted(buckets["flags"])),
            removed=tuple(removed),
        )

    @property
    def pending(self) -> FolderDiff:
        """Classification of the staged, not yet folded, changes."""

        buckets: Dict[str, list] = {"added": [], "changed": [], "flags": []}
        for item_id in sorted(self._pending_changes):
            snap = self._pending_changes[item_id]
            stat = MessageStat(id=item_id, mod=snap["mod"], flags=_flags(snap["flags"]))
            outcome = self.classify(stat)
            if outcome is not None:
                buckets[outcome].append(item_id)
        return FolderDiff(
            added=tuple(buckets["added"]),
            changed=tuple(buckets["changed"]),
            flags=tuple(buckets["flags"]),
            removed=tuple(sorted(self._pending_removals)),
        )

    def has_pending(self) -> bool:
        return bool(self._pending_changes or self._pending_removals)

    # Mutation -----------------------------------------------------------
    def record_changes(self, stats: Iterable[MessageStat]) -> None:
        """Stage the current stats of changed items."""

        self._guard_mutation()
        for stat in stats:
            self._pending_changes[stat.id] = _snapshot(stat)
            self._pending_removals.discard(stat.id)

    def record_removals(self, ids: Iterable[str]) -> None:
        """Stage the removal of items; ids never seen before are ignored."""

        self._guard_mutation()
        for item_id in ids:
            self._pending_changes.pop(item_id, None)
            if item_id in self._status["items"]:
                self._pending_removals.add(item_id)

    def detect_changes(self, server_stats: Iterable[MessageStat]) -> FolderDiff:
        """Diff a full listing and stage everything that differs."""

        self._guard_mutation()
        stats = {stat.id: stat for stat in server_stats}
        result = self.diff(stats.values())
        self.record_changes(stats[item_id] for item_id in result.added + result.changed + result.flags)
        self.record_removals(result.removed)
        return result

    def update_state(self, checkpoint: Optional[float] = None) -> None:
        """Fold staged changes into the item table and clear the accumulators.

        Args:
          checkpoint: Optional end of the window the changes were read from;
            the next pass starts its window there.
        """

        self._guard_mutation()
        items = self._status["items"]
        for item_id, snap in self._pending_changes.items():
            items[item_id] = dict(snap)
        for item_id in self._pending_removals:
            items.pop(item_id, None)
        if checkpoint is not None:
            self._status["checkpoint"] = float(checkpoint)
        self._reset_pending()
        self.phase = FolderPhase.UPDATED
