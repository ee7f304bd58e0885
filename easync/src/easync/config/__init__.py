"""easync configuration package.

What:
  Provide a cohesive import surface for the runtime configuration loader and
  the pydantic models describing policy defaults and heartbeat bounds.

Why:
  Backends and the CLI should not depend on the internal module layout; the
  explicit exports document which helpers are supported.

How:
  Re-export the loader helpers and schema classes and keep ``__all__``
  explicit.

Interfaces:
  - get_runtime_config / load_runtime_config / reset_runtime_config /
    parse_runtime_config: Resolve ``easync.yaml`` and cache the result.
  - RuntimeConfig / SecurityPolicies / HeartbeatConfig / DEFAULT_POLICIES:
    Immutable configuration values passed at construction time.
  - RuntimeConfigError / ValidationError: Error types.
"""

from .loader import (
    RuntimeConfigError,
    get_runtime_config,
    load_runtime_config,
    parse_runtime_config,
    reset_runtime_config,
)
from .schema import (
    DEFAULT_POLICIES,
    HeartbeatConfig,
    RuntimeConfig,
    SecurityPolicies,
    ValidationError,
)

__all__ = [
    "get_runtime_config",
    "load_runtime_config",
    "parse_runtime_config",
    "reset_runtime_config",
    "RuntimeConfigError",
    "DEFAULT_POLICIES",
    "HeartbeatConfig",
    "RuntimeConfig",
    "SecurityPolicies",
    "ValidationError",
]
