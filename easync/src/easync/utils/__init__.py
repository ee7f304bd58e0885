"""Expose the public utility surface for easync.

What:
  Re-export the logging and identifier helpers that other packages import
  without knowing the underlying module layout.

Why:
  A stable facade lets backends perform ``from easync.utils import
  get_logger`` without depending on internal filenames.

How:
  Imports the canonical helpers and populates ``__all__``.

Interfaces:
  ``get_logger``, ``JsonLogger``, ``NullLogger``, ``LogForwarder``,
  ``is_usable_logger``, ``resolve_logger``,
  ``checksum``, ``state_slot_name``.
"""

from .ids import checksum, state_slot_name
from .logging import JsonLogger, LogForwarder, NullLogger, get_logger, is_usable_logger, resolve_logger

__all__ = [
    "get_logger",
    "JsonLogger",
    "NullLogger",
    "is_usable_logger",
    "LogForwarder",
    "resolve_logger",
    "checksum",
    "state_slot_name",
]
