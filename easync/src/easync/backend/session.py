"""Per-request backend session: collaborators, identity, and policies.

What:
  Hold everything a backend adapter needs besides its own data access: the
  injected state store and logger, the effective security policy set, the
  heartbeat bounds, and the identity fields set during a request.

Why:
  Every backend needs the same construction checks (a state store is
  mandatory, a missing logger is replaced by a stub, policy overrides merge
  onto the defaults). Keeping them in one composable object lets concrete
  backends own a session instead of inheriting a base class.

How:
  :class:`BackendSession` validates its arguments eagerly and raises
  :class:`easync.errors.InvalidArgumentError` on anything unusable. Identity
  operations (``logon``, ``setup`` ...) only record values in a
  :class:`SessionContext`; credential validation is a backend concern layered
  on top.

Interfaces:
  :class:`SessionContext`, :class:`BackendSession`.

Invariants & Safety:
  - The policy set is immutable after construction.
  - The session holds plain references to its store and logger; neither
    collaborator holds a reference back.
  - A session belongs to one request; sharing it across concurrent folder
    passes is unsafe because ``logon``/``setup`` mutate it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..config.schema import (
    DEFAULT_POLICIES,
    HeartbeatConfig,
    RuntimeConfig,
    SecurityPolicies,
    ValidationError,
)
from ..errors import InvalidArgumentError
from ..utils.logging import resolve_logger
from .contract import StateStore


@dataclass
class SessionContext:
    """Identity fields of one request.

    Attributes:
      user: Identity the sync runs as, bound by ``setup``.
      auth_user: Identity that authenticated, recorded by ``logon``.
      auth_pass: Password recorded by ``logon``.
      domain: Optional authentication domain.
      version: Negotiated protocol version.
      policies: Effective security policy set.
    """

    user: Optional[str] = None
    auth_user: Optional[str] = None
    auth_pass: Optional[str] = field(default=None, repr=False)
    domain: Optional[str] = None
    version: Optional[str] = None
    policies: SecurityPolicies = DEFAULT_POLICIES


class BackendSession:
    """Validated collaborators and identity state for a backend adapter.

    What:
      Owns the state store, logger, effective policies, heartbeat bounds, and
      the :class:`SessionContext` of the current request.

    Why:
      The contract requires construction to fail fast when the state store is
      missing and never to fail because of the logger; centralising those
      rules keeps every backend consistent.

    How:
      Checks ``state`` against the :class:`StateStore` protocol, substitutes
      a :class:`~easync.utils.logging.NullLogger` when ``logger`` lacks a
      callable ``log`` and wraps any other logger in a
      :class:`~easync.utils.logging.LogForwarder`, merges
      ``policies`` onto ``base_policies`` and validates ``ping`` through
      :class:`HeartbeatConfig`.
    """

    def __init__(
        self,
        *,
        state: Any = None,
        logger: Any = None,
        policies: Optional[Mapping[str, Any]] = None,
        ping: Optional[Mapping[str, Any]] = None,
        base_policies: SecurityPolicies = DEFAULT_POLICIES,
        params: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Validate and store the construction parameters.

        Args:
          state: State store handle; required.
          logger: Optional logger exposing a callable ``log``.
          policies: Optional partial policy override.
          ping: Optional heartbeat override (keys of :class:`HeartbeatConfig`).
          base_policies: Policy set the override is merged onto.
          params: Extra backend-specific parameters kept verbatim.

        Raises:
          InvalidArgumentError: If ``state`` is missing or does not conform to
            :class:`StateStore`, or if ``policies``/``ping`` fail validation.
        """

        if state is None or not isinstance(state, StateStore):
            raise InvalidArgumentError("Missing required state object")
        self.state = state
        self.logger = resolve_logger(logger)
        if policies is not None and not isinstance(policies, Mapping):
            raise InvalidArgumentError(f"Policy override must be a mapping, got {type(policies).__name__}")
        if ping is not None and not isinstance(ping, Mapping):
            raise InvalidArgumentError(f"Heartbeat override must be a mapping, got {type(ping).__name__}")
        try:
            effective = base_policies.merged(policies)
        except ValidationError as exc:
            raise InvalidArgumentError(f"Invalid policy override: {exc}") from exc
        try:
            self.heartbeat = HeartbeatConfig.model_validate(dict(ping or {}))
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid heartbeat configuration: {exc}") from exc
        self.params = dict(params or {})
        self.context = SessionContext(policies=effective)

    @classmethod
    def from_runtime_config(
        cls,
        runtime: RuntimeConfig,
        *,
        state: Any,
        logger: Any = None,
        policies: Optional[Mapping[str, Any]] = None,
    ) -> "BackendSession":
        """Build a session whose defaults come from ``easync.yaml``.

        Per-user ``policies`` still override the deployment defaults.
        """

        return cls(
            state=state,
            logger=logger,
            policies=policies,
            ping=runtime.heartbeat.model_dump(),
            base_policies=runtime.policies,
        )

    @property
    def policies(self) -> SecurityPolicies:
        return self.context.policies

    @property
    def user(self) -> Optional[str]:
        return self.context.user

    def set_logger(self, logger: Any) -> None:
        self.logger = resolve_logger(logger)

    def set_protocol_version(self, version: str) -> None:
        self.context.version = version

    def logon(self, username: str, password: str, domain: Optional[str] = None) -> bool:
        """Record the authenticating credentials; always succeeds at this level."""

        self.context.auth_user = username
        self.context.auth_pass = password
        self.context.domain = domain
        self.logger.info("logon", user=username, domain=domain)
        return True

    def get_user(self) -> Optional[str]:
        return self.context.auth_user

    def log_off(self) -> bool:
        self.logger.info("logoff", user=self.context.auth_user)
        return True

    def setup(self, user: str) -> bool:
        """Bind the synchronizing identity, enabling delegated sync."""

        self.context.user = user
        if user != self.context.auth_user:
            self.logger.info("setup_impersonation", user=user, auth_user=self.context.auth_user)
        return True

    def require_setup(self) -> str:
        """Return the sync user or fail when :meth:`setup` was never called."""

        if not self.context.user:
            raise InvalidArgumentError("setup() must be called before folder or message operations")
        return self.context.user
