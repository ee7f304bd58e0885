"""Default behaviours layered over a partial backend without inheritance.

What:
  Provide :class:`DefaultedBackend`, a decorator that turns an object
  implementing only the required data operations into a full
  :class:`easync.backend.contract.BackendAdapter`, plus the two pure helpers it
  relies on: forced full fetch options and default body-preference truncation.

Why:
  Most backends only care about folders and items. Identity bookkeeping,
  ``fetch``, ``get_hierarchy`` and the long tail of optional capabilities have
  well-defined defaults; supplying them by composition keeps concrete backends
  free to inherit from whatever their storage library requires.

How:
  Every optional operation first looks for the same-named method on the
  wrapped backend and delegates to it when present. Otherwise the default
  runs: a safe value (``get_waste_basket`` -> ``False``, ``alter_ping`` ->
  ``False``), a composition (``fetch``, ``get_hierarchy``), or a
  :class:`easync.errors.NotImplementedCapabilityError`. Required operations are
  checked once at construction and then delegated directly.

Interfaces:
  :class:`DefaultedBackend`, :func:`force_full_fetch`,
  :func:`add_default_body_pref_truncation`.

Invariants & Safety:
  - ``fetch`` never passes a truncation limit through to ``get_message``.
  - ``get_hierarchy`` returns exactly the folders of ``get_folder_list``
    mapped through ``get_folder``, in the same order.
  - Caller-supplied option mappings are never mutated.
"""
from __future__ import annotations

import copy
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..config.schema import HeartbeatConfig
from ..errors import InvalidArgumentError, NotImplementedCapabilityError
from .contract import OPTIONAL_OPERATIONS, REQUIRED_OPERATIONS, CollectionOptions
from .models import (
    BODYPREF_TYPES,
    DEFAULT_TRUNCATION_SIZE,
    DeviceContext,
    FolderObject,
    FolderStat,
    MessageObject,
    MessageStat,
)
from .session import BackendSession


def force_full_fetch(collection: CollectionOptions) -> Dict[str, Any]:
    """Return a copy of ``collection`` with every truncation limit disabled.

    What:
      Sets ``truncation`` to ``0`` and every ``truncationsize`` present in
      ``bodyprefs`` to ``0``.

    Why:
      ItemOperations fetches must return the whole item regardless of the
      truncation the device negotiated for Sync.

    How:
      Deep-copies the mapping so the caller's options survive untouched, then
      rewrites the limits in the copy.
    """

    options = copy.deepcopy(dict(collection))
    options["truncation"] = 0
    bodyprefs = options.get("bodyprefs")
    if bodyprefs:
        for pref in bodyprefs.values():
            if "truncationsize" in pref:
                pref["truncationsize"] = 0
    return options


def add_default_body_pref_truncation(
    bodyprefs: Mapping[int, Mapping[str, Any]],
) -> Dict[int, Dict[str, Any]]:
    """Fill in :data:`DEFAULT_TRUNCATION_SIZE` where a body type lacks a limit.

    Only the plain, HTML, RTF and MIME preferences are considered; a
    ``truncationsize`` that is already present is kept, so applying the helper
    twice gives the same result as applying it once.
    """

    result = {body_type: dict(pref) for body_type, pref in bodyprefs.items()}
    for body_type in BODYPREF_TYPES:
        pref = result.get(body_type)
        if pref is not None and "truncationsize" not in pref:
            pref["truncationsize"] = DEFAULT_TRUNCATION_SIZE
    return result


class DefaultedBackend:
    """Full adapter contract assembled from a partial backend and a session.

    What:
      Exposes every operation of
      :class:`~easync.backend.contract.BackendAdapter`, delegating to the
      wrapped backend where it implements an operation and to the documented
      default otherwise.

    Why:
      The protocol engine talks to one uniform surface while backends only
      write what they actually support.

    How:
      Construction verifies the session and :data:`REQUIRED_OPERATIONS`.
      Folder and message operations additionally require ``setup`` to have
      bound a sync user.

    Attributes:
      backend: The wrapped partial backend.
      session: The :class:`BackendSession` holding identity and collaborators.
    """

    def __init__(self, backend: Any, session: Optional[BackendSession] = None) -> None:
        if session is None:
            session = getattr(backend, "session", None)
        if not isinstance(session, BackendSession):
            raise InvalidArgumentError("DefaultedBackend requires a BackendSession")
        missing = [name for name in REQUIRED_OPERATIONS if not callable(getattr(backend, name, None))]
        if missing:
            raise InvalidArgumentError(f"Backend is missing required operations: {', '.join(missing)}")
        self.backend = backend
        self.session = session

    def _override(self, name: str) -> Optional[Callable[..., Any]]:
        candidate = getattr(self.backend, name, None)
        return candidate if callable(candidate) else None

    def _ready(self) -> None:
        self.session.require_setup()

    def capabilities(self) -> Tuple[str, ...]:
        """Return the optional operations the wrapped backend implements itself."""

        return tuple(name for name in OPTIONAL_OPERATIONS if self._override(name) is not None)

    @property
    def logger(self) -> Any:
        return self.session.logger

    # Identity & session -------------------------------------------------
    def logon(self, username: str, password: str, domain: Optional[str] = None) -> bool:
        """Authenticate through the backend when it checks credentials.

        A backend ``logon`` decides the outcome; the session records the
        identity only when that outcome is truthy.
        """

        override = self._override("logon")
        if override is None:
            return self.session.logon(username, password, domain)
        accepted = override(username, password, domain)
        if accepted:
            self.session.logon(username, password, domain)
        return accepted

    def get_user(self) -> Optional[str]:
        return self.session.get_user()

    def log_off(self) -> bool:
        override = self._override("log_off")
        if override is not None:
            return override()
        return self.session.log_off()

    def setup(self, user: str) -> bool:
        """Bind the sync user; a backend ``setup`` may veto it first."""

        override = self._override("setup")
        if override is None:
            return self.session.setup(user)
        accepted = override(user)
        if accepted:
            self.session.setup(user)
        return accepted

    def set_protocol_version(self, version: str) -> None:
        self.session.set_protocol_version(version)

    def set_logger(self, logger: Any) -> None:
        self.session.set_logger(logger)

    def get_heartbeat_config(self) -> HeartbeatConfig:
        return self.session.heartbeat

    # Hierarchy ----------------------------------------------------------
    def get_folder_list(self) -> Sequence[FolderStat]:
        self._ready()
        return self.backend.get_folder_list()

    def get_folder(self, folder_id: str) -> FolderObject:
        self._ready()
        return self.backend.get_folder(folder_id)

    def get_folders(self) -> Sequence[FolderObject]:
        self._ready()
        return self.backend.get_folders()

    def get_hierarchy(self) -> List[FolderObject]:
        """Return full folder objects for every folder in the stat listing."""

        self._ready()
        override = self._override("get_hierarchy")
        if override is not None:
            return list(override())
        return [self.backend.get_folder(stat.id) for stat in self.backend.get_folder_list()]

    def stat_folder(self, folder_id: str) -> FolderStat:
        self._ready()
        return self.backend.stat_folder(folder_id)

    def delete_folder(self, parent: str, folder_id: str) -> bool:
        self._ready()
        override = self._override("delete_folder")
        if override is None:
            raise NotImplementedCapabilityError("delete_folder")
        return override(parent, folder_id)

    def change_folder(self, parent: str, folder_id: Optional[str], displayname: str, folder_type: int) -> FolderStat:
        self._ready()
        override = self._override("change_folder")
        if override is None:
            raise NotImplementedCapabilityError("change_folder")
        return override(parent, folder_id, displayname, folder_type)

    # Change detection ---------------------------------------------------
    def get_server_changes(
        self,
        folder_id: str,
        from_ts: float,
        to_ts: float,
        cutoff_date: Optional[float],
        ping: bool,
    ) -> List[str]:
        self._ready()
        changes = list(self.backend.get_server_changes(folder_id, from_ts, to_ts, cutoff_date, ping))
        self.logger.debug(
            "server_changes",
            folder=folder_id,
            from_ts=from_ts,
            to_ts=to_ts,
            ping=ping,
            count=len(changes),
        )
        return changes

    def stat_message(self, folder_id: str, item_id: str) -> MessageStat:
        self._ready()
        return self.backend.stat_message(folder_id, item_id)

    def stat_mail_message(self, folder_id: str, item_id: str) -> MessageStat:
        self._ready()
        return self.backend.stat_mail_message(folder_id, item_id)

    # Item CRUD ----------------------------------------------------------
    def fetch(self, folder_id: str, item_id: str, collection: CollectionOptions) -> MessageObject:
        """Retrieve the whole item; truncation options are forced off."""

        return self.get_message(folder_id, item_id, force_full_fetch(collection))

    def get_message(self, folder_id: str, item_id: str, collection: CollectionOptions) -> MessageObject:
        self._ready()
        return self.backend.get_message(folder_id, item_id, collection)

    def change_message(
        self,
        folder_id: str,
        item_id: Optional[str],
        message: MessageObject,
        device: DeviceContext,
    ) -> Union[MessageStat, bool]:
        self._ready()
        result = self.backend.change_message(folder_id, item_id, message, device)
        if result is False:
            self.logger.warning("change_message_rejected", folder=folder_id, item=item_id, device=device.device_id)
        return result

    def delete_message(self, folder_id: str, ids: Iterable[str]) -> None:
        self._ready()
        self.backend.delete_message(folder_id, list(ids))

    def set_read_flag(self, folder_id: str, item_id: str, flag: bool) -> None:
        self._ready()
        self.backend.set_read_flag(folder_id, item_id, flag)

    def move_message(self, folder_id: str, ids: Iterable[str], new_folder_id: str) -> Dict[str, str]:
        self._ready()
        override = self._override("move_message")
        if override is None:
            raise NotImplementedCapabilityError("move_message")
        return override(folder_id, list(ids), new_folder_id)

    # Ancillary ----------------------------------------------------------
    def _delegate_or_raise(self, name: str, *args: Any) -> Any:
        override = self._override(name)
        if override is None:
            raise NotImplementedCapabilityError(name)
        return override(*args)

    def meeting_response(self, request_id: str, folder_id: str, response: int) -> Optional[str]:
        return self._delegate_or_raise("meeting_response", request_id, folder_id, response)

    def get_search_results(self, search_type: str, query: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._delegate_or_raise("get_search_results", search_type, query)

    def get_attachment(self, name: str, options: Optional[Mapping[str, Any]] = None) -> Tuple[str, bytes]:
        return self._delegate_or_raise("get_attachment", name, dict(options or {}))

    def item_operations_get_attachment_data(self, file_reference: str) -> Tuple[str, bytes]:
        return self._delegate_or_raise("item_operations_get_attachment_data", file_reference)

    def item_operations_fetch_mailbox(
        self,
        search_long_id: str,
        body_preference: Mapping[int, Mapping[str, Any]],
        mime_support: int,
    ) -> MessageObject:
        return self._delegate_or_raise("item_operations_fetch_mailbox", search_long_id, body_preference, mime_support)

    def item_operations_get_document_library_link(
        self, link_id: str, credentials: Mapping[str, Any]
    ) -> Mapping[str, Any]:
        return self._delegate_or_raise("item_operations_get_document_library_link", link_id, credentials)

    def send_mail(
        self,
        rfc822: Union[str, bytes],
        forward: Optional[str] = None,
        reply: Optional[str] = None,
        parent: Optional[str] = None,
    ) -> bool:
        return self._delegate_or_raise("send_mail", rfc822, forward, reply, parent)

    def get_special_folder_name_by_type(self, special: str) -> Optional[str]:
        return self._delegate_or_raise("get_special_folder_name_by_type", special)

    def get_current_policy(self, policy_type: str) -> Mapping[str, Any]:
        """Return the backend's policy, or the session's effective policy set."""

        override = self._override("get_current_policy")
        if override is not None:
            return override(policy_type)
        return self.session.policies.as_dict()

    def get_settings(self, settings: Iterable[str], device: DeviceContext) -> Mapping[str, Any]:
        return self._delegate_or_raise("get_settings", list(settings), device)

    def set_settings(self, settings: Mapping[str, Any], device: DeviceContext) -> Mapping[str, int]:
        return self._delegate_or_raise("set_settings", settings, device)

    def auto_discover(self) -> Mapping[str, Any]:
        return self._delegate_or_raise("auto_discover")

    def get_username_from_email(self, email: str) -> str:
        return self._delegate_or_raise("get_username_from_email", email)

    def get_waste_basket(self, collection_class: str) -> Union[str, bool]:
        override = self._override("get_waste_basket")
        if override is not None:
            return override(collection_class)
        return False

    def alter_ping(self) -> bool:
        override = self._override("alter_ping")
        if override is not None:
            return override()
        return False

    def add_default_body_pref_truncation(
        self, bodyprefs: Mapping[int, Mapping[str, Any]]
    ) -> Dict[int, Dict[str, Any]]:
        return add_default_body_pref_truncation(bodyprefs)
