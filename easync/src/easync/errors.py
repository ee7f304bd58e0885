"""Exception taxonomy shared by the adapter contract and folder state.

What:
  Define one exception class per failure kind the protocol engine must be able
  to tell apart: bad construction input, unknown ids, absent capabilities,
  unreadable folder state, and backend transport faults.

Why:
  The engine chooses between retrying, aborting, and continuing a partial sync
  depending on the failure kind. Distinct types make that decision a plain
  ``except`` clause instead of string matching on messages.

How:
  Every error derives from :class:`ActiveSyncError`. Where a builtin exception
  already carries the same meaning (``ValueError``, ``LookupError``,
  ``NotImplementedError``) the error also inherits from it so generic callers
  keep working.

Interfaces:
  :class:`ActiveSyncError`, :class:`InvalidArgumentError`,
  :class:`NotFoundError`, :class:`NotImplementedCapabilityError`,
  :class:`CorruptStateError`, :class:`BackendFaultError`,
  :class:`FolderExistsError`, :class:`StateTransitionError`.

Invariants & Safety:
  - Nothing in this package catches one of these errors and continues
    silently; they always propagate to the caller.
  - No retry happens inside the core; ``BackendFaultError`` is surfaced as is.
"""
from __future__ import annotations


class ActiveSyncError(Exception):
    """Base class for every failure signalled by the sync core."""


class InvalidArgumentError(ActiveSyncError, ValueError):
    """Raised when a required construction parameter is missing or malformed.

    What:
      Signals a programming or deployment error detected at construction
      time, such as a session created without a state store.

    Why:
      These failures are fatal; surfacing them before any request is served
      keeps a half-configured adapter from reaching a device.

    How:
      Raised eagerly by constructors and by :class:`DefaultedBackend` when a
      wrapped backend lacks a required operation.
    """


class NotFoundError(ActiveSyncError, LookupError):
    """Raised when a folder or item id does not exist on the backend."""


class NotImplementedCapabilityError(ActiveSyncError, NotImplementedError):
    """Raised when the backend does not support an optional capability.

    What:
      Marks an operation (folder deletion, message moves, searches ...) that
      the concrete backend never opted into.

    Why:
      The engine treats this as a feature-absence signal and answers the
      device accordingly; it must never be mistaken for a crash.

    How:
      Raised by the default behaviours in :mod:`easync.backend.defaults` with
      the operation name in the message.
    """

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} not implemented by this backend")
        self.operation = operation


class CorruptStateError(ActiveSyncError):
    """Raised when a serialized folder state blob cannot be parsed.

    The only recovery is to discard the stored state and resync the folder
    from scratch, which is a decision left to the protocol engine.
    """


class BackendFaultError(ActiveSyncError):
    """Raised by backends for transport or I/O failures against the real store."""


class FolderExistsError(ActiveSyncError):
    """Raised by backends refusing to create a folder that already exists."""


class StateTransitionError(ActiveSyncError):
    """Raised when a folder state is mutated after it was serialized."""
