"""Capability-set contracts between the protocol engine and its collaborators.

What:
  Formalise, as structural protocols, the full method set a backend adapter
  offers to the protocol engine and the two-method state store the session
  persists folder state through.

Why:
  One protocol engine has to drive many heterogeneous backends. Structural
  typing lets a backend satisfy the contract without inheriting from a base
  class, and lets tests substitute in-memory fakes that type-check the same
  way the production objects do.

How:
  :class:`BackendAdapter` lists every operation grouped by concern. Default
  behaviour for the optional operations lives in
  :class:`easync.backend.defaults.DefaultedBackend`, a decorator that wraps a
  partial backend; it is not inherited. :data:`REQUIRED_OPERATIONS` names the
  operations the wrapped backend itself must provide.

Interfaces:
  :class:`StateStore`, :class:`BackendAdapter`, :data:`REQUIRED_OPERATIONS`,
  :data:`CollectionOptions`.

Invariants & Safety:
  - ``get_server_changes`` is read-only; every mutation of sync bookkeeping
    happens in folder state, never in the adapter.
  - Adapters are stateless across calls except for the session fields set by
    ``logon`` and ``setup``. Processing several folders of one device in
    parallel therefore requires one adapter instance per worker.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Protocol, Sequence, Tuple, Union
from typing import runtime_checkable

from ..config.schema import HeartbeatConfig
from .models import DeviceContext, FolderObject, FolderStat, MessageObject, MessageStat

CollectionOptions = Mapping[str, Any]


@runtime_checkable
class StateStore(Protocol):
    """Durable storage for serialized folder state, keyed per triple.

    Implementations must replace a slot atomically: a concurrent reader sees
    either the previous blob or the new one, never a mix.
    """

    def load(self, device_id: str, folder_id: str, collection_class: str) -> Optional[str]:
        """Return the blob saved for the triple, or ``None`` if there is none."""

    def save(self, device_id: str, folder_id: str, collection_class: str, blob: str) -> None:
        """Atomically replace the blob saved for the triple."""


@runtime_checkable
class BackendAdapter(Protocol):
    """Protocol describing every operation the protocol engine may invoke."""

    # Identity & session -------------------------------------------------
    def logon(self, username: str, password: str, domain: Optional[str] = None) -> bool:
        """Record the authenticating credentials and report success."""

    def get_user(self) -> Optional[str]:
        """Return the authenticating user recorded by :meth:`logon`."""

    def log_off(self) -> bool:
        """Release session resources."""

    def setup(self, user: str) -> bool:
        """Bind the synchronizing identity, which may differ from the logon user."""

    def set_protocol_version(self, version: str) -> None:
        """Record the protocol version negotiated with the device."""

    def set_logger(self, logger: Any) -> None:
        """Replace the logger used by the session."""

    def get_heartbeat_config(self) -> HeartbeatConfig:
        """Return the ping interval bounds for this deployment."""

    # Hierarchy ----------------------------------------------------------
    def get_folder_list(self) -> Sequence[FolderStat]:
        """Enumerate stats for every folder visible to the synchronizing user."""

    def get_folder(self, folder_id: str) -> FolderObject:
        """Return full metadata for ``folder_id``; raise ``NotFoundError`` if unknown."""

    def get_folders(self) -> Sequence[FolderObject]:
        """Bulk form of :meth:`get_folder` over all visible folders."""

    def get_hierarchy(self) -> Sequence[FolderObject]:
        """Return the same folder set as :meth:`get_folder_list` mapped through :meth:`get_folder`."""

    def stat_folder(self, folder_id: str) -> FolderStat:
        """Return a cheap existence and freshness record for ``folder_id``."""

    def delete_folder(self, parent: str, folder_id: str) -> bool:
        """Remove a folder from the hierarchy."""

    def change_folder(self, parent: str, folder_id: Optional[str], displayname: str, folder_type: int) -> FolderStat:
        """Create (``folder_id`` is ``None``) or rename a folder."""

    # Change detection ---------------------------------------------------
    def get_server_changes(
        self,
        folder_id: str,
        from_ts: float,
        to_ts: float,
        cutoff_date: Optional[float],
        ping: bool,
    ) -> Sequence[str]:
        """List item ids changed in ``[from_ts, to_ts)``.

        What:
          Reports the ids of items added, modified, flagged or removed inside
          the window. Items whose own date precedes ``cutoff_date`` are left
          out even when they were touched inside the window.

        Why:
          This is the incremental diff driving every Sync and Ping request;
          the engine stats each returned id to classify the change.

        How:
          Backends typically collect ``ChangeEntry`` records and hand them to
          :func:`easync.backend.changes.select_server_changes`. With ``ping``
          set the result may contain a single id, meant only as a signal that
          something changed; callers must not treat it as the full change
          set.
        """

    def stat_message(self, folder_id: str, item_id: str) -> MessageStat:
        """Return a cheap stat for one item; raise ``NotFoundError`` if unknown."""

    def stat_mail_message(self, folder_id: str, item_id: str) -> MessageStat:
        """Mail variant of :meth:`stat_message` carrying mail-only flags."""

    # Item CRUD ----------------------------------------------------------
    def fetch(self, folder_id: str, item_id: str, collection: CollectionOptions) -> MessageObject:
        """Retrieve an item with truncation disabled."""

    def get_message(self, folder_id: str, item_id: str, collection: CollectionOptions) -> MessageObject:
        """Retrieve an item honouring the collection's truncation options."""

    def change_message(
        self,
        folder_id: str,
        item_id: Optional[str],
        message: MessageObject,
        device: DeviceContext,
    ) -> Union[MessageStat, bool]:
        """Create or update an item; return its new stat or ``False`` on conflict."""

    def delete_message(self, folder_id: str, ids: Iterable[str]) -> None:
        """Delete the given items."""

    def set_read_flag(self, folder_id: str, item_id: str, flag: bool) -> None:
        """Mark an item read or unread."""

    def move_message(self, folder_id: str, ids: Iterable[str], new_folder_id: str) -> Dict[str, str]:
        """Move items and return a mapping of old id to new id."""

    # Ancillary ----------------------------------------------------------
    def meeting_response(self, request_id: str, folder_id: str, response: int) -> Optional[str]:
        """Answer a meeting request and return the calendar item id."""

    def get_search_results(self, search_type: str, query: Mapping[str, Any]) -> Mapping[str, Any]:
        """Run a device search (mailbox, GAL, document library)."""

    def get_attachment(self, name: str, options: Optional[Mapping[str, Any]] = None) -> Tuple[str, bytes]:
        """Return ``(content_type, data)`` for an attachment."""

    def item_operations_get_attachment_data(self, file_reference: str) -> Tuple[str, bytes]:
        """Return attachment data for an ItemOperations fetch."""

    def item_operations_fetch_mailbox(
        self,
        search_long_id: str,
        body_preference: Mapping[int, Mapping[str, Any]],
        mime_support: int,
    ) -> MessageObject:
        """Return a message located by a previous search."""

    def item_operations_get_document_library_link(
        self, link_id: str, credentials: Mapping[str, Any]
    ) -> Mapping[str, Any]:
        """Return a document library item with its metadata."""

    def send_mail(
        self,
        rfc822: Union[str, bytes],
        forward: Optional[str] = None,
        reply: Optional[str] = None,
        parent: Optional[str] = None,
    ) -> bool:
        """Submit a message composed on the device."""

    def get_special_folder_name_by_type(self, special: str) -> Optional[str]:
        """Return the server id of a special folder (sent, spam, trash, drafts)."""

    def get_current_policy(self, policy_type: str) -> Mapping[str, Any]:
        """Return the provisionable properties for the requested document type."""

    def get_settings(self, settings: Iterable[str], device: DeviceContext) -> Mapping[str, Any]:
        """Return the requested settings."""

    def set_settings(self, settings: Mapping[str, Any], device: DeviceContext) -> Mapping[str, int]:
        """Store settings and return a status per setting."""

    def auto_discover(self) -> Mapping[str, Any]:
        """Return properties for an Autodiscover response."""

    def get_username_from_email(self, email: str) -> str:
        """Map an email address to the backend username."""

    def get_waste_basket(self, collection_class: str) -> Union[str, bool]:
        """Return the trash folder id, or ``False`` when there is none."""

    def alter_ping(self) -> bool:
        """Return ``True`` when the backend wants the heartbeat shortened."""

    def add_default_body_pref_truncation(
        self, bodyprefs: Mapping[int, Mapping[str, Any]]
    ) -> Dict[int, Dict[str, Any]]:
        """Fill in the default truncation size for body types lacking one."""


REQUIRED_OPERATIONS: Tuple[str, ...] = (
    "get_folder_list",
    "get_folder",
    "get_folders",
    "stat_folder",
    "get_server_changes",
    "stat_message",
    "stat_mail_message",
    "get_message",
    "change_message",
    "delete_message",
    "set_read_flag",
)

OPTIONAL_OPERATIONS: Tuple[str, ...] = (
    "get_hierarchy",
    "delete_folder",
    "change_folder",
    "move_message",
    "meeting_response",
    "get_search_results",
    "get_attachment",
    "item_operations_get_attachment_data",
    "item_operations_fetch_mailbox",
    "item_operations_get_document_library_link",
    "send_mail",
    "get_special_folder_name_by_type",
    "get_current_policy",
    "get_settings",
    "set_settings",
    "auto_discover",
    "get_username_from_email",
    "get_waste_basket",
    "alter_ping",
)
