"""Durable slots for serialized folder state.

What:
  Provide two implementations of :class:`easync.backend.contract.StateStore`:
  an in-memory store for tests and single-process deployments and a
  filesystem store keeping one file per (device, folder, collection) slot.

Why:
  Folder state must survive between requests and process restarts. Backends
  receive a store through their session and never need to know where the
  blobs actually live.

How:
  Both stores key blobs by the identity triple. :class:`FileStateStore` names
  files with :func:`easync.utils.ids.state_slot_name` and writes through a
  uniquely named temporary file followed by :func:`os.replace` so a crash
  never leaves a half-written blob behind.

Interfaces:
  :class:`MemoryStateStore`, :class:`FileStateStore`.

Invariants & Safety:
  - ``load`` returns ``None`` only when the slot was never written; it never
    hides an I/O failure behind ``None``.
  - Saves through one instance are serialized by a lock. Writers in other
    instances or processes each use their own temporary file; the last
    replace wins.
"""
from __future__ import annotations

import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..utils.ids import state_slot_name


class MemoryStateStore:
    """Keep serialized folder states in a process-local dictionary."""

    def __init__(self) -> None:
        self._blobs: Dict[Tuple[str, str, str], str] = {}
        self._lock = threading.Lock()

    def load(self, device_id: str, folder_id: str, collection_class: str) -> Optional[str]:
        with self._lock:
            return self._blobs.get((device_id, folder_id, collection_class))

    def save(self, device_id: str, folder_id: str, collection_class: str, blob: str) -> None:
        with self._lock:
            self._blobs[(device_id, folder_id, collection_class)] = blob

    def __len__(self) -> int:
        return len(self._blobs)


class FileStateStore:
    """Persist folder states as one JSON file per slot under ``root``.

    What:
      Maps every identity triple to ``<root>/<slot>.json`` where ``slot`` is
      the hashed slot name.

    Why:
      Hashing keeps arbitrary device and folder ids out of file names and
      gives every slot a fixed-length, portable name.

    How:
      Creates ``root`` on construction, writes a uniquely named ``.tmp``
      sibling, then atomically replaces the target, so concurrent writers
      never share a temporary file.

    Args:
      root: Directory holding the state files.
    """

    def __init__(self, root: Path):
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, device_id: str, folder_id: str, collection_class: str) -> Path:
        return self._root / f"{state_slot_name(device_id, folder_id, collection_class)}.json"

    def load(self, device_id: str, folder_id: str, collection_class: str) -> Optional[str]:
        path = self.path_for(device_id, folder_id, collection_class)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def save(self, device_id: str, folder_id: str, collection_class: str, blob: str) -> None:
        path = self.path_for(device_id, folder_id, collection_class)
        with self._lock:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self._root, prefix=f"{path.stem}.", suffix=".tmp", delete=False
            ) as handle:
                handle.write(blob)
            try:
                os.replace(handle.name, path)
            except OSError:
                os.unlink(handle.name)
                raise
