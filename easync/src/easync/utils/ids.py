"""Stable checksums and storage keys for easync artifacts.

What:
  Provide helpers that derive namespaced SHA-256 checksums and filesystem-safe
  keys for (device, folder, collection) state slots.

Why:
  Folder server ids and device ids are arbitrary strings chosen by backends and
  devices. Hashing them yields fixed-length names that are safe on every
  filesystem and never leak the original identifiers into directory listings.

How:
  Wraps ``hashlib`` with a consistent ``sha256:`` prefix for checksums and
  joins key components with a separator that cannot appear in the digest
  input ambiguously.

Interfaces:
  :func:`checksum`, :func:`state_slot_name`.

Invariants & Safety:
  - Checksums are namespaced with ``sha256:`` so future algorithms can coexist.
  - Distinct key triples always map to distinct slot names (modulo SHA-256
    collisions) because components are length-prefixed before hashing.
"""
from __future__ import annotations

import hashlib


def checksum(data: bytes) -> str:
    """Compute a namespaced SHA-256 digest for ``data``.

    Args:
      data: Bytes to hash.

    Returns:
      Hex-encoded digest string prefixed with ``sha256:``.
    """

    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def state_slot_name(device_id: str, folder_id: str, collection_class: str) -> str:
    """Return a filesystem-safe name for one folder-state slot.

    What:
      Maps the ``(device_id, folder_id, collection_class)`` triple to a
      64-character hexadecimal name.

    Why:
      :class:`easync.state.store.FileStateStore` keeps one file per slot and
      needs names that are unique per triple and valid on any filesystem.

    How:
      Length-prefixes every component so ``("a:b", "c")`` and ``("a", "b:c")``
      hash differently, then strips the ``sha256:`` namespace from
      :func:`checksum`.
    """

    parts = [device_id, folder_id, collection_class]
    material = "|".join(f"{len(part)}:{part}" for part in parts)
    return checksum(material.encode("utf-8")).split(":", 1)[1]
