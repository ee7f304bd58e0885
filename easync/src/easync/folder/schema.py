"""Pydantic models describing serialized folder state documents."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ItemSnapshot(BaseModel):
    """Last observed stat of one item."""

    model_config = ConfigDict(extra="forbid")

    mod: str
    flags: Dict[str, bool] = Field(default_factory=dict)


class FolderSnapshot(BaseModel):
    """Last observed stat of one folder in the hierarchy."""

    model_config = ConfigDict(extra="forbid")

    parent: str
    mod: str


class CollectionStatus(BaseModel):
    """Cached item table of a collection folder plus its sync checkpoint."""

    model_config = ConfigDict(extra="forbid")

    items: Dict[str, ItemSnapshot] = Field(default_factory=dict)
    checkpoint: Optional[float] = None


class CollectionPending(BaseModel):
    """Accumulated, not yet folded, changes of a collection folder."""

    model_config = ConfigDict(extra="forbid")

    changes: Dict[str, ItemSnapshot] = Field(default_factory=dict)
    removals: List[str] = Field(default_factory=list)


class HierarchyStatus(BaseModel):
    """Cached folder table of a device hierarchy."""

    model_config = ConfigDict(extra="forbid")

    folders: Dict[str, FolderSnapshot] = Field(default_factory=dict)


class HierarchyPending(BaseModel):
    model_config = ConfigDict(extra="forbid")

    changes: Dict[str, FolderSnapshot] = Field(default_factory=dict)
    removals: List[str] = Field(default_factory=list)


class FolderStateDocument(BaseModel):
    """Envelope written to the state store for one folder."""

    model_config = ConfigDict(extra="forbid")

    version: Literal[1] = 1
    kind: Literal["collection", "hierarchy"]
    serverid: str
    collection_class: str
    status: Dict[str, Any]
    pending: Dict[str, Any] = Field(default_factory=dict)
