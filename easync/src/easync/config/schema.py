"""Pydantic models describing easync configuration values."""
from __future__ import annotations

from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as _PydanticValidationError
from pydantic import model_validator


class ValidationError(ValueError):
    """Raised when configuration data does not satisfy the schema."""


class SecurityPolicies(BaseModel):
    """Provisioning policy set negotiated with devices.

    Backends may carry additional provisionable properties beyond the
    documented ones; they are kept verbatim.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    pin: bool = True
    extended_policies: bool = True
    inactivity: int = Field(default=5, ge=0)
    wipethreshold: int = Field(default=10, ge=0)
    codewordfrequency: int = Field(default=0, ge=0)
    minimumlength: int = Field(default=5, ge=0)
    complexity: int = Field(default=2, ge=0)

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "SecurityPolicies":
        """Return a new policy set with every key of ``overrides`` replaced.

        Keys absent from ``overrides`` keep their current value; the result
        is validated as a whole so a bad override never yields a partially
        applied set.
        """

        if not overrides:
            return self
        payload = self.as_dict()
        payload.update(overrides)
        try:
            return type(self).model_validate(payload)
        except _PydanticValidationError as exc:
            raise ValidationError(str(exc)) from exc

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump()


DEFAULT_POLICIES = SecurityPolicies()


class HeartbeatConfig(BaseModel):
    """Ping/heartbeat bounds handed to the protocol engine."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    heartbeatmin: int = Field(default=60, gt=0)
    heartbeatmax: int = Field(default=2700, gt=0)
    heartbeatdefault: int = Field(default=480, gt=0)
    deviceping: bool = True
    waitinterval: int = Field(default=10, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "HeartbeatConfig":
        if not self.heartbeatmin <= self.heartbeatdefault <= self.heartbeatmax:
            raise ValueError("heartbeatdefault must lie between heartbeatmin and heartbeatmax")
        return self


class StateSettings(BaseModel):
    """Where the file-backed state store keeps folder state blobs."""

    model_config = ConfigDict(extra="forbid")

    directory: str = "state"


class LoggingSettings(BaseModel):
    """Structured logging defaults."""

    model_config = ConfigDict(extra="forbid")

    component: str = "easync"


class RuntimeConfig(BaseModel):
    """Top-level ``easync.yaml`` document."""

    model_config = ConfigDict(extra="forbid")

    version: Literal[1] = 1
    policies: SecurityPolicies = Field(default_factory=SecurityPolicies)
    heartbeat: HeartbeatConfig = Field(default_factory=HeartbeatConfig)
    state: StateSettings = Field(default_factory=StateSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def minimal(cls) -> "RuntimeConfig":
        return cls()
