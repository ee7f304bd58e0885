"""easync command-line interface for operators.

What:
  Provide a Typer-based entry point exposing the ``policies``,
  ``inspect-state`` and ``truncation`` commands used when deploying or
  debugging an ActiveSync backend.

Why:
  Most sync incidents come down to one of three questions: which policy set
  does a device receive, what does the stored state for a folder contain, and
  which body truncation will a device get by default. Answering them without
  writing a script shortens every investigation.

How:
  ``policies`` loads ``easync.yaml`` through
  :func:`easync.config.loader.load_runtime_config` and merges ``--set``
  overrides exactly as :class:`easync.backend.session.BackendSession` would.
  ``inspect-state`` decodes a blob written by a state store and prints a
  summary. ``truncation`` shows :func:`add_default_body_pref_truncation`
  applied to the requested body types. All output is JSON on stdout.

Interfaces:
  ``app`` (Typer application), ``policies``, ``inspect_state``,
  ``truncation``.

Invariants & Safety:
  - Exit codes follow shell expectations (``0`` success, ``1`` failure).
  - Stored item contents never appear in the output; state blobs only hold
    ids, modification signatures, and flags.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml

from .backend.defaults import add_default_body_pref_truncation
from .backend.models import BODYPREF_TYPES
from .config.loader import RuntimeConfigError, load_runtime_config
from .config.schema import ValidationError
from .errors import CorruptStateError
from .folder.collection import CollectionFolder
from .folder.hierarchy import HierarchyState
from .folder.schema import FolderStateDocument
from .utils.logging import get_logger


app = typer.Typer(help="easync ActiveSync backend tooling")

LOGGER = get_logger("easync.cli", stream=sys.stderr)


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))


def _parse_overrides(pairs: List[str]) -> Dict[str, Any]:
    """Turn ``key=value`` strings into a mapping with YAML-typed values."""

    overrides: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}", param_hint="--set")
        overrides[key.strip()] = yaml.safe_load(raw)
    return overrides


@app.command("policies")
def policies(
    config: Optional[Path] = typer.Option(None, "--config", help="Path to easync.yaml"),
    overrides: List[str] = typer.Option([], "--set", help="Policy override as key=value"),
) -> None:
    """Print the effective security policy set as JSON."""

    try:
        runtime = load_runtime_config(config, reload=config is not None)
    except RuntimeConfigError as exc:
        LOGGER.error("runtime_load_failed", error=str(exc))
        raise typer.Exit(code=1) from exc
    try:
        effective = runtime.policies.merged(_parse_overrides(overrides))
    except ValidationError as exc:
        LOGGER.error("policy_override_rejected", error=str(exc))
        raise typer.Exit(code=1) from exc
    _echo_json(effective.as_dict())


def _summarise(blob: str) -> Dict[str, Any]:
    kind = FolderStateDocument.model_validate_json(blob).kind
    if kind == HierarchyState.kind:
        hierarchy = HierarchyState.from_serialized(blob)
        return {
            "kind": kind,
            "serverid": hierarchy.serverid,
            "collection_class": hierarchy.collection_class,
            "folders": len(hierarchy.known_folders()),
            "pending": hierarchy.has_pending(),
        }
    folder = CollectionFolder.from_serialized(blob)
    pending = folder.pending
    return {
        "kind": kind,
        "serverid": folder.serverid,
        "collection_class": folder.collection_class,
        "items": len(folder.known_ids()),
        "checkpoint": folder.checkpoint,
        "pending": {
            "added": list(pending.added),
            "changed": list(pending.changed),
            "flags": list(pending.flags),
            "removed": list(pending.removed),
        },
    }


@app.command("inspect-state")
def inspect_state(
    path: Path = typer.Argument(..., help="Serialized folder state file"),
) -> None:
    """Decode a stored folder state and print a summary.

    Exits with code ``1`` when the file is missing or the blob is corrupt;
    the usual remedy is to delete the file so the device resyncs the folder.
    """

    try:
        blob = path.read_text(encoding="utf-8")
    except OSError as exc:
        LOGGER.error("state_read_failed", path=str(path), error=str(exc))
        raise typer.Exit(code=1) from exc
    try:
        summary = _summarise(blob)
    except (CorruptStateError, ValueError) as exc:
        LOGGER.error("state_corrupt", path=str(path), error=str(exc))
        raise typer.Exit(code=1) from exc
    _echo_json(summary)


@app.command("truncation")
def truncation(
    body_types: List[int] = typer.Option([], "--type", help="Body preference type (1-4); repeatable"),
) -> None:
    """Show the default truncation applied to body preferences."""

    requested = body_types or list(BODYPREF_TYPES)
    unknown = [body_type for body_type in requested if body_type not in BODYPREF_TYPES]
    if unknown:
        LOGGER.error("unknown_body_type", types=unknown)
        raise typer.Exit(code=1)
    filled = add_default_body_pref_truncation({body_type: {} for body_type in requested})
    _echo_json({str(body_type): pref for body_type, pref in sorted(filled.items())})


def main() -> None:
    """Execute the Typer application entry point."""

    app()


if __name__ == "__main__":  # pragma: no cover
    main()
