"""Per-folder change tracking state."""

from .base import FolderPhase, FolderState
from .collection import CollectionFolder, FolderDiff
from .hierarchy import HierarchyState

__all__ = ["FolderPhase", "FolderState", "CollectionFolder", "FolderDiff", "HierarchyState"]
