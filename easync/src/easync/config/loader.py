"""Strict loader for the easync runtime configuration.

What:
  Locate, parse, validate, and cache ``easync.yaml``, the document carrying the
  deployment-wide policy defaults, heartbeat bounds, state directory, and
  logging component name.

Why:
  Configuration lives outside the package and can be malformed. Centralising
  the parsing enforces consistent validation so that sessions built from it
  can trust the resulting models.

How:
  Resolve candidate file locations from an explicit parameter, the
  ``EASYNC_CONFIG_PATH`` environment variable, and well-known defaults. Parse
  YAML with ``yaml.safe_load``, validate through :class:`RuntimeConfig`, and
  memoise the result until :func:`reset_runtime_config` is called.

Interfaces:
  :func:`load_runtime_config`, :func:`get_runtime_config`,
  :func:`reset_runtime_config`, :func:`parse_runtime_config`,
  :class:`RuntimeConfigError`.

Invariants:
  - All payloads pass strict Pydantic validation before they are returned.
  - The cache respects explicit reload requests and the precedence order of
    candidate paths.

Safety/Performance:
  - File and parse failures are converted into :class:`RuntimeConfigError`
    carrying path context; nothing fails silently.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml
from pydantic import ValidationError as _PydanticValidationError

from ..errors import ActiveSyncError
from .schema import RuntimeConfig


class RuntimeConfigError(ActiveSyncError):
    """Error raised when ``easync.yaml`` cannot be located, read, or validated.

    What:
      Signal issues related to runtime configuration discovery or schema
      validation.

    Why:
      The CLI reports these separately from sync failures so operators get a
      targeted remediation message.

    How:
      Subclass :class:`easync.errors.ActiveSyncError` so broad handlers still
      catch it.
    """


_CONFIG_ENV = "EASYNC_CONFIG_PATH"
_DEFAULT_LOCATIONS: Tuple[Path, ...] = (
    Path("easync.yaml"),
    Path("/etc/easync/easync.yaml"),
)
_RUNTIME_CACHE: Optional[Tuple[Path, RuntimeConfig]] = None


def _candidate_paths(path: Optional[Path]) -> Iterable[Path]:
    """Yield configuration file locations in priority order.

    What:
      Produce the ordered, deduplicated list of paths that should be inspected
      for ``easync.yaml``.

    Why:
      Operators can override the location through a function argument, the
      environment, or the defaults; this helper captures that precedence.

    How:
      Accumulate :class:`~pathlib.Path` objects from the explicit argument,
      ``EASYNC_CONFIG_PATH``, and the default locations, skipping repeats.

    Args:
      path: Explicit path requested by the caller, or ``None``.

    Yields:
      Candidate paths ordered from most specific to least specific.
    """

    seen: set[Path] = set()
    candidates = []
    if path is not None:
        candidates.append(path)
    env_path = os.environ.get(_CONFIG_ENV)
    if env_path:
        candidates.append(Path(env_path))
    candidates.extend(_DEFAULT_LOCATIONS)
    for raw in candidates:
        candidate = raw.expanduser()
        if candidate not in seen:
            seen.add(candidate)
            yield candidate


def parse_runtime_config(text: str, source: str = "<string>") -> RuntimeConfig:
    """Parse and validate ``easync.yaml`` contents.

    Args:
      text: Raw configuration contents.
      source: Origin used in error messages.

    Returns:
      The validated :class:`RuntimeConfig`.

    Raises:
      RuntimeConfigError: If the YAML is invalid, is not a mapping, or fails
        schema validation.
    """

    try:
        payload: Any = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise RuntimeConfigError(f"Invalid YAML in {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise RuntimeConfigError(f"{source} must contain a mapping at the top-level")
    try:
        return RuntimeConfig.model_validate(payload)
    except _PydanticValidationError as exc:
        raise RuntimeConfigError(f"Invalid configuration in {source}: {exc}") from exc


def _load_runtime_from_path(path: Path) -> RuntimeConfig:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RuntimeConfigError(f"Configuration file missing: {path}") from exc
    except OSError as exc:  # pragma: no cover - filesystem surface
        raise RuntimeConfigError(f"Unable to read configuration file {path}: {exc}") from exc
    return parse_runtime_config(text, str(path))


def load_runtime_config(
    path: Optional[Path | str] = None,
    *,
    reload: bool = False,
) -> RuntimeConfig:
    """Resolve, parse, and cache the runtime configuration.

    What:
      Locate ``easync.yaml`` using the precedence chain, parse it, and return
      a validated :class:`RuntimeConfig`.

    Why:
      Sessions and the CLI both need runtime settings; caching avoids repeated
      disk IO while ``reload`` enables deterministic refreshes in tests.

    How:
      Consult the cache unless ``reload`` is requested or a different explicit
      path is asked for, then walk the candidate paths until one exists.

    Args:
      path: Optional explicit location of ``easync.yaml``.
      reload: When ``True`` forces a fresh load bypassing the cache.

    Returns:
      The validated runtime configuration.

    Raises:
      RuntimeConfigError: If no configuration file can be located or
        validated.
    """

    global _RUNTIME_CACHE
    requested_path = Path(path).expanduser() if isinstance(path, (str, Path)) else None
    if not reload and _RUNTIME_CACHE is not None:
        cached_path, cached_config = _RUNTIME_CACHE
        if requested_path is None or cached_path == requested_path:
            return cached_config
    searched: list[str] = []
    for candidate in _candidate_paths(requested_path):
        if not candidate.exists():
            searched.append(str(candidate))
            continue
        config = _load_runtime_from_path(candidate)
        _RUNTIME_CACHE = (candidate, config)
        return config
    listing = ", ".join(searched) if searched else "<none>"
    raise RuntimeConfigError(f"Unable to locate easync.yaml (searched: {listing})")


def get_runtime_config() -> RuntimeConfig:
    """Return the cached runtime configuration, loading it on demand."""

    return load_runtime_config()


def reset_runtime_config() -> None:
    """Clear the runtime configuration cache."""

    global _RUNTIME_CACHE
    _RUNTIME_CACHE = None
