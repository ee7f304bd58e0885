"""Backend adapter contract and its default behaviours.

What:
  Re-export the adapter protocol, the session object backends compose, the
  default-behaviour decorator, the change-window helper, and the in-memory
  object shapes.

Why:
  Backend authors should be able to write ``from easync.backend import ...``
  for everything they need to satisfy the contract.

Interfaces:
  BackendAdapter, StateStore, BackendSession, SessionContext,
  DefaultedBackend, ChangeEntry, select_server_changes, and the model
  classes.
"""

from .changes import ChangeEntry, in_change_window, select_server_changes
from .contract import OPTIONAL_OPERATIONS, REQUIRED_OPERATIONS, BackendAdapter, StateStore
from .defaults import DefaultedBackend, add_default_body_pref_truncation, force_full_fetch
from .models import (
    DeviceContext,
    FolderObject,
    FolderStat,
    MessageBody,
    MessageFlags,
    MessageObject,
    MessageStat,
)
from .session import BackendSession, SessionContext

__all__ = [
    "BackendAdapter",
    "StateStore",
    "REQUIRED_OPERATIONS",
    "OPTIONAL_OPERATIONS",
    "BackendSession",
    "SessionContext",
    "DefaultedBackend",
    "add_default_body_pref_truncation",
    "force_full_fetch",
    "ChangeEntry",
    "in_change_window",
    "select_server_changes",
    "DeviceContext",
    "FolderObject",
    "FolderStat",
    "MessageBody",
    "MessageFlags",
    "MessageObject",
    "MessageStat",
]
