"""State store implementations."""

from .store import FileStateStore, MemoryStateStore

__all__ = ["FileStateStore", "MemoryStateStore"]
