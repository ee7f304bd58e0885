"""In-memory shapes exchanged between the protocol engine and backends.

What:
  Declare the immutable stat records used for cheap change detection, the
  folder and message objects handed to the wire codec, the device context,
  and the protocol constants (collection classes, body preference types,
  special folders, policy document types).

Why:
  Backends written by different teams must agree on field names and value
  domains. Keeping every shape in one module documents the contract the wire
  codec consumes without tying it to any storage engine.

How:
  Frozen dataclasses for stats (they are compared and cached by folder state),
  plain dataclasses for the richer objects, and module-level constants in the
  style of closed vocabularies.

Interfaces:
  :class:`FolderStat`, :class:`MessageFlags`, :class:`MessageStat`,
  :class:`FolderObject`, :class:`MessageBody`, :class:`MessageObject`,
  :class:`DeviceContext`, plus the constant tuples below.

Invariants & Safety:
  - ``FolderStat.mod`` changes iff the folder's observable metadata changed.
  - Stat objects never carry message content.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


ROOT_FOLDER_ID = "0"

CLASS_EMAIL = "Email"
CLASS_CONTACTS = "Contacts"
CLASS_CALENDAR = "Calendar"
CLASS_TASKS = "Tasks"
CLASS_NOTES = "Notes"
CLASS_DOCUMENTS = "Documents"
COLLECTION_CLASSES: Tuple[str, ...] = (
    CLASS_EMAIL,
    CLASS_CONTACTS,
    CLASS_CALENDAR,
    CLASS_TASKS,
    CLASS_NOTES,
    CLASS_DOCUMENTS,
)
HIERARCHY_CLASS = "Hierarchy"

BODYPREF_TYPE_PLAIN = 1
BODYPREF_TYPE_HTML = 2
BODYPREF_TYPE_RTF = 3
BODYPREF_TYPE_MIME = 4
BODYPREF_TYPES: Tuple[int, ...] = (
    BODYPREF_TYPE_PLAIN,
    BODYPREF_TYPE_HTML,
    BODYPREF_TYPE_RTF,
    BODYPREF_TYPE_MIME,
)
DEFAULT_TRUNCATION_SIZE = 1048576

# Folder types as reported to the device in a FolderSync response.
FOLDER_TYPE_USER_GENERIC = 1
FOLDER_TYPE_INBOX = 2
FOLDER_TYPE_DRAFTS = 3
FOLDER_TYPE_WASTEBASKET = 4
FOLDER_TYPE_SENTMAIL = 5
FOLDER_TYPE_OUTBOX = 6
FOLDER_TYPE_TASK = 7
FOLDER_TYPE_APPOINTMENT = 8
FOLDER_TYPE_CONTACT = 9
FOLDER_TYPE_NOTE = 10
FOLDER_TYPE_USER_MAIL = 12

SPECIAL_SENT = "sent"
SPECIAL_SPAM = "spam"
SPECIAL_TRASH = "trash"
SPECIAL_DRAFTS = "drafts"
SPECIAL_FOLDERS: Tuple[str, ...] = (SPECIAL_SENT, SPECIAL_SPAM, SPECIAL_TRASH, SPECIAL_DRAFTS)

POLICYTYPE_XML = "MS-WAP-Provisioning-XML"
POLICYTYPE_WBXML = "MS-EAS-Provisioning-WBXML"


@dataclass(frozen=True)
class FolderStat:
    """Cheap identity and freshness record for one folder.

    Attributes:
      id: Stable server id, a short string (keep it under ~20 characters).
      parent: Server id of the containing folder or :data:`ROOT_FOLDER_ID`.
      mod: Opaque modification signature; in practice the display name.
    """

    id: str
    parent: str
    mod: str


@dataclass(frozen=True)
class MessageFlags:
    """Per-item flag bits; ``read`` is always present, the rest are mail-only."""

    read: bool = False
    flagged: bool = False
    answered: bool = False
    forwarded: bool = False

    def as_dict(self) -> Dict[str, bool]:
        return {
            "read": self.read,
            "flagged": self.flagged,
            "answered": self.answered,
            "forwarded": self.forwarded,
        }


@dataclass(frozen=True)
class MessageStat:
    """Cheap identity and freshness record for one item inside a folder."""

    id: str
    mod: str
    flags: MessageFlags = field(default_factory=MessageFlags)


@dataclass
class FolderObject:
    """Full folder metadata as consumed by the wire codec."""

    serverid: str
    parentid: str
    displayname: str
    type: int = FOLDER_TYPE_USER_GENERIC

    def stat(self) -> FolderStat:
        return FolderStat(id=self.serverid, parent=self.parentid, mod=self.displayname)


@dataclass
class MessageBody:
    """Item body in one of the :data:`BODYPREF_TYPES` representations.

    What:
      Holds the (possibly truncated) body payload together with the size the
      device should expect for the untruncated content.

    Why:
      Devices ask for truncated bodies during sync and fetch the full body on
      demand; both cases need the original size to render download prompts.

    How:
      :meth:`build` applies a truncation size in characters, ``0`` or ``None``
      meaning no limit, and records whether anything was cut.
    """

    type: int
    data: str
    truncated: bool = False
    estimated_size: int = 0

    @classmethod
    def build(cls, body_type: int, data: str, truncation_size: Optional[int]) -> "MessageBody":
        size = len(data)
        if truncation_size and size > truncation_size:
            return cls(type=body_type, data=data[:truncation_size], truncated=True, estimated_size=size)
        return cls(type=body_type, data=data, truncated=False, estimated_size=size)


@dataclass
class MessageObject:
    """Generic item (mail, contact, appointment, task) as consumed by the codec."""

    serverid: Optional[str]
    collection_class: str
    properties: Dict[str, Any] = field(default_factory=dict)
    body: Optional[MessageBody] = None


@dataclass
class DeviceContext:
    """Identity of the device driving the current request."""

    device_id: str
    device_type: str = ""
    user_agent: str = ""
    version: Optional[str] = None
