"""Lifecycle shared by every per-folder, per-device sync state.

What:
  Define :class:`FolderState`, the value object a sync pass loads, mutates,
  and writes back for one (device, folder, collection) triple, together with
  the :class:`FolderPhase` it moves through.

Why:
  A device must observe a consistent, resumable, monotonic change stream even
  when the server process restarts between two requests. That only holds if
  the state read at the start of a pass is exactly what the previous pass
  wrote, and if folding the same changes twice never double-counts.

How:
  Subclasses own an implementation-defined ``status`` mapping (validated by a
  pydantic model) and transient pending accumulators. This base class handles
  identity, phase bookkeeping, and the JSON envelope
  (:class:`~easync.folder.schema.FolderStateDocument`) written to the state
  store. Keys are sorted on output so equal states produce equal blobs.

Interfaces:
  :class:`FolderPhase`, :class:`FolderState`.

Invariants & Safety:
  - ``unserialize(serialize())`` reconstructs an equal state, pending
    accumulators included.
  - Malformed blobs raise :class:`easync.errors.CorruptStateError`; absence of
    prior state is signalled by the store returning ``None`` and never reaches
    this module.
  - Recording or folding changes after :meth:`FolderState.serialize` raises
    :class:`easync.errors.StateTransitionError`; a serialized state is the
    input of the next pass, not something to keep editing.
"""
from __future__ import annotations

import copy
import json
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Type, TypeVar, Union

from pydantic import ValidationError as _PydanticValidationError

from ..errors import CorruptStateError, StateTransitionError
from .schema import FolderStateDocument

_StateT = TypeVar("_StateT", bound="FolderState")


class FolderPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    HYDRATED = "hydrated"
    UPDATED = "updated"
    SERIALIZED = "serialized"


class FolderState(ABC):
    """Base class for folder sync state.

    What:
      Carries the folder's server id, its collection class, the cached status
      table, and the current :class:`FolderPhase`.

    Why:
      Collections and the folder hierarchy track different records but share
      the same lifecycle and the same durable envelope.

    How:
      A state built without ``status`` starts ``UNINITIALIZED``; passing a
      status, calling :meth:`set_status`, or :meth:`unserialize` makes it
      ``HYDRATED``. :meth:`update_state` moves it to ``UPDATED`` and
      :meth:`serialize` to ``SERIALIZED``.
    """

    kind: ClassVar[str]

    def __init__(self, serverid: str, collection_class: str, status: Optional[Mapping[str, Any]] = None) -> None:
        self._serverid = serverid
        self._class = collection_class
        self._status: Dict[str, Any] = self._validate_status({})
        self._reset_pending()
        self.phase = FolderPhase.UNINITIALIZED
        if status is not None:
            self.set_status(status)

    @property
    def serverid(self) -> str:
        return self._serverid

    @property
    def collection_class(self) -> str:
        return self._class

    @property
    def status(self) -> Dict[str, Any]:
        """Return a copy of the cached status table."""

        return copy.deepcopy(self._status)

    def set_status(self, status: Mapping[str, Any]) -> None:
        """Replace the cached status; malformed input raises ``CorruptStateError``."""

        self._status = self._validate_status(status)
        self.phase = FolderPhase.HYDRATED

    # Subclass hooks -----------------------------------------------------
    @abstractmethod
    def _validate_status(self, status: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a normalised copy of ``status`` or raise ``CorruptStateError``."""

    @abstractmethod
    def _reset_pending(self) -> None:
        """Clear the pending accumulators."""

    @abstractmethod
    def _dump_pending(self) -> Dict[str, Any]:
        """Return the pending accumulators as JSON-compatible data."""

    @abstractmethod
    def _load_pending(self, pending: Mapping[str, Any]) -> None:
        """Restore the pending accumulators or raise ``CorruptStateError``."""

    @abstractmethod
    def has_pending(self) -> bool:
        """Return ``True`` while recorded changes await :meth:`update_state`."""

    @abstractmethod
    def update_state(self) -> None:
        """Fold pending changes into the status table and clear them."""

    # Lifecycle ----------------------------------------------------------
    def _guard_mutation(self) -> None:
        if self.phase is FolderPhase.SERIALIZED:
            raise StateTransitionError(f"folder {self._serverid} was serialized; load it again to continue")

    def serialize(self) -> str:
        """Return the durable JSON blob for this state.

        What:
          Wraps identity, status and pending accumulators in a versioned
          :class:`FolderStateDocument`.

        Why:
          The blob is what the state store keeps between requests; it has to
          carry everything needed to rebuild an equal state.

        How:
          Dumps the document with sorted keys and compact separators so equal
          states always serialize to identical strings, then marks the state
          ``SERIALIZED``.
        """

        document = FolderStateDocument(
            kind=self.kind,  # type: ignore[arg-type]
            serverid=self._serverid,
            collection_class=self._class,
            status=self._status,
            pending=self._dump_pending(),
        )
        blob = json.dumps(document.model_dump(), sort_keys=True, separators=(",", ":"))
        self.phase = FolderPhase.SERIALIZED
        return blob

    def unserialize(self, data: Union[str, bytes]) -> None:
        """Restore this state from a blob produced by :meth:`serialize`.

        Raises:
          CorruptStateError: If the blob is not valid JSON, does not match the
            document schema, or belongs to another kind of folder state.
        """

        document = self._parse(data)
        self._serverid = document.serverid
        self._class = document.collection_class
        self._status = self._validate_status(document.status)
        self._reset_pending()
        self._load_pending(document.pending)
        self.phase = FolderPhase.HYDRATED

    @classmethod
    def from_serialized(cls: Type[_StateT], data: Union[str, bytes]) -> _StateT:
        """Build a ``HYDRATED`` state from a stored blob."""

        document = cls._parse(data)
        state = cls(document.serverid, document.collection_class)
        state.unserialize(data)
        return state

    @classmethod
    def _parse(cls, data: Union[str, bytes]) -> FolderStateDocument:
        if not isinstance(data, (str, bytes)):
            raise CorruptStateError(f"folder state must be str or bytes, got {type(data).__name__}")
        try:
            document = FolderStateDocument.model_validate_json(data)
        except _PydanticValidationError as exc:
            raise CorruptStateError(f"unreadable folder state: {exc}") from exc
        if document.kind != cls.kind:
            raise CorruptStateError(f"expected {cls.kind} folder state, found {document.kind}")
        return document

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FolderState) or type(other) is not type(self):
            return NotImplemented
        return (
            self._serverid == other._serverid
            and self._class == other._class
            and self._status == other._status
            and self._dump_pending() == other._dump_pending()
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._serverid!r} {self._class} {self.phase.value}>"
