"""easync logging helpers with deterministic JSON emission and redaction.

What:
  Offer a tiny facade over Python streams so every easync component can emit
  JSON log lines with consistent fields, plus a no-op stub that adapters fall
  back to when the embedding engine injects no usable logger.

Why:
  Sync sessions carry credentials and message bodies. A structured layout
  keeps log parsing trivial while preventing those payloads from ending up in
  shared log files when debugging a device that refuses to sync.

How:
  :class:`JsonLogger` accepts a target stream and a component label. ``extra``
  keyword arguments are scrubbed by a recursive redaction helper before being
  serialised with ``json.dump``. :class:`NullLogger` exposes the same methods
  and discards everything.

Interfaces:
  :class:`JsonLogger`, :class:`NullLogger`, :func:`get_logger`,
  :class:`LogForwarder`, :func:`is_usable_logger`, :func:`resolve_logger`.

Invariants & Safety:
  - Each emitted line includes an ISO8601 timestamp, severity and component.
  - Credential and body keys (``password``, ``auth_pass``, ``body``, ``data``)
    are replaced with ``[redacted]`` even inside nested dictionaries.
  - Streams are flushed after every write.
  - Injected loggers are only ever called through ``log``, the one method
    :func:`is_usable_logger` checks for.
"""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"password", "auth_pass", "body", "data"})


@dataclass
class JsonLogger:
    """Structured JSON logger with automatic redaction.

    What:
      Emits single-line JSON log entries that include timestamps, severity, a
      component tag, and optional supplemental fields.

    Why:
      Centralising structured logging avoids duplicating the redaction logic
      and gives tests a stable schema to assert against.

    How:
      Stores the destination stream and component label, then exposes helper
      methods (:meth:`debug`, :meth:`info`, :meth:`warning`, :meth:`error`)
      that merge a canonical payload with redacted extras.
    """

    stream: Any = field(default_factory=lambda: sys.stdout)
    component: str = "easync"

    def log(self, level: str, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        """Emit a structured JSON log entry.

        Args:
          level: Human-readable severity (e.g., ``"info"`` or ``"error"``).
          message: Core log message.
          extra: Optional context dictionary that will be redacted recursively.
        """

        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "lvl": level.upper(),
            "msg": message,
            "component": self.component,
        }
        if extra:
            payload.update(self._redact(extra))
        json.dump(payload, self.stream, separators=(",", ":"), default=str)
        self.stream.write("\n")
        self.stream.flush()

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log("DEBUG", message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log("INFO", message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log("WARN", message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log("ERROR", message, extra=kwargs)

    @staticmethod
    def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``data`` with sensitive keys masked recursively."""

        result: Dict[str, Any] = {}
        for key, value in data.items():
            if key in SENSITIVE_KEYS:
                result[key] = REDACTED
            elif isinstance(value, dict):
                result[key] = JsonLogger._redact(value)
            else:
                result[key] = value
        return result


class NullLogger:
    """Logger stub used when no usable logger was injected.

    What:
      Accepts every call :class:`JsonLogger` accepts and does nothing.

    Why:
      Adapters log unconditionally; substituting a stub keeps call sites free
      of ``if logger`` guards and guarantees that a missing logger never
      changes control flow or fails construction.

    How:
      Each method ignores its arguments and returns ``None``.
    """

    def log(self, level: str, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        return None

    def debug(self, message: str, **kwargs: Any) -> None:
        return None

    def info(self, message: str, **kwargs: Any) -> None:
        return None

    def warning(self, message: str, **kwargs: Any) -> None:
        return None

    def error(self, message: str, **kwargs: Any) -> None:
        return None


def is_usable_logger(candidate: Any) -> bool:
    """Return ``True`` when ``candidate`` exposes a callable ``log`` method."""

    return candidate is not None and callable(getattr(candidate, "log", None))


def get_logger(component: str, stream: Any = None) -> JsonLogger:
    """Construct a :class:`JsonLogger` for the requested component.

    What:
      Returns a ready-to-use :class:`JsonLogger` bound to ``component``.

    Why:
      Call sites avoid instantiating :class:`JsonLogger` directly so the
      redaction keys and default stream can evolve centrally.

    How:
      Delegates to :class:`JsonLogger` with the supplied component label and
      either ``stream`` or the default ``stdout``.

    Args:
      component: Logical subsystem name to include in log payloads.
      stream: Optional destination overriding ``sys.stdout``.

    Returns:
      Configured :class:`JsonLogger` instance.
    """

    if stream is None:
        return JsonLogger(component=component)
    return JsonLogger(stream=stream, component=component)


_STDLIB_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class LogForwarder:
    """Expose the leveled helpers on top of any logger with a ``log`` method.

    What:
      Turns ``info("msg", key=value)`` style calls into a single
      ``log(level, message, extra=fields)`` call on the wrapped logger.

    Why:
      Embedding engines only promise a callable ``log``. Calling anything
      else on their logger could raise and change the outcome of a request.

    How:
      :class:`logging.Logger` targets receive the numeric level and the fields
      under a single ``easync`` key of ``extra`` so they never collide with
      ``LogRecord`` attributes. Every other target receives the level name and
      the fields as ``extra``.

    Attributes:
      target: The wrapped logger.
    """

    def __init__(self, target: Any) -> None:
        self.target = target

    def log(self, level: str, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        fields = dict(extra or {})
        if isinstance(self.target, logging.Logger):
            self.target.log(_STDLIB_LEVELS.get(level.upper(), logging.INFO), message, extra={"easync": fields})
        else:
            self.target.log(level, message, extra=fields)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log("DEBUG", message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log("INFO", message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log("WARN", message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log("ERROR", message, extra=kwargs)


def resolve_logger(candidate: Any) -> Any:
    """Return a logger offering ``debug``/``info``/``warning``/``error``.

    Project loggers are returned as is, other usable loggers are wrapped in a
    :class:`LogForwarder`, and anything else becomes a :class:`NullLogger`.
    """

    if isinstance(candidate, (JsonLogger, NullLogger, LogForwarder)):
        return candidate
    if is_usable_logger(candidate):
        return LogForwarder(candidate)
    return NullLogger()
