"""Sync pass orchestration."""

from .sync import FolderSync, HierarchyResult, SyncResult

__all__ = ["FolderSync", "HierarchyResult", "SyncResult"]
