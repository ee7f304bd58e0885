"""Window selection shared by ``get_server_changes`` implementations.

What:
  Turn a backend's raw change log (one :class:`ChangeEntry` per touched item)
  into the id list ``get_server_changes`` returns, applying the time window,
  the cutoff date, and ping-mode reduction.

Why:
  Every backend answers the same question over a different storage engine.
  Getting the boundaries wrong duplicates or drops changes between two
  consecutive sync passes, so the rules live in one tested helper.

How:
  Windows are inclusive at ``from_ts`` and exclusive at ``to_ts``; a pass that
  ends at ``to_ts`` and the next one starting there partition time without
  overlap. Entries whose ``item_date`` precedes the cutoff are dropped. Ids are
  deduplicated, ordered by their latest change. Ping mode keeps only the first
  id.

Interfaces:
  :class:`ChangeEntry`, :func:`in_change_window`,
  :func:`select_server_changes`.

Invariants & Safety:
  - Pure functions; nothing here mutates backend or folder state.
  - The ping-mode result is non-empty iff the full result is, and is always a
    subset of it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class ChangeEntry:
    """One observed change of an item.

    Attributes:
      id: Server id of the item.
      timestamp: When the change happened in the store (epoch seconds).
      item_date: The item's own date (message date, event end, task due),
        compared against the cutoff; ``None`` when the item has none.
    """

    id: str
    timestamp: float
    item_date: Optional[float] = None


def in_change_window(timestamp: float, from_ts: float, to_ts: float) -> bool:
    """Return ``True`` when ``timestamp`` lies in ``[from_ts, to_ts)``."""

    return from_ts <= timestamp < to_ts


def select_server_changes(
    entries: Iterable[ChangeEntry],
    from_ts: float,
    to_ts: float,
    cutoff_date: Optional[float] = None,
    ping: bool = False,
) -> List[str]:
    """Select the ids changed inside a window.

    Args:
      entries: Raw change log; may contain several entries per id.
      from_ts: Inclusive window start.
      to_ts: Exclusive window end.
      cutoff_date: Items dated before this are ignored; ``None`` disables it.
      ping: Reduce the result to a single liveness signal.

    Returns:
      Deduplicated ids ordered by their latest in-window change, then id.
    """

    latest: Dict[str, float] = {}
    for entry in entries:
        if not in_change_window(entry.timestamp, from_ts, to_ts):
            continue
        if cutoff_date is not None and entry.item_date is not None and entry.item_date < cutoff_date:
            continue
        if entry.id not in latest or entry.timestamp > latest[entry.id]:
            latest[entry.id] = entry.timestamp
    ordered = sorted(latest, key=lambda item_id: (latest[item_id], item_id))
    if ping:
        return ordered[:1]
    return ordered
