"""
Module: easync.__init__

What:
  Aggregate package exports for easync, the ActiveSync backend adapter
  contract and per-folder change-tracking state, and expose the namespace
  segments backends and protocol engines build on.

Why:
  Backend authors and the protocol engine import from these subpackages; an
  explicit list keeps helper modules out of the supported surface.

How:
  Provide an explicit ``__all__`` enumerating the public subpackages.

Interfaces:
  - backend: Adapter protocol, session, default behaviours, object shapes.
  - folder: Folder and hierarchy state machines.
  - state: State store implementations.
  - core: Sync pass orchestration.
  - config: Runtime configuration loader and schema.
  - utils: Logging and identifier helpers.
"""

__all__ = [
    "backend",
    "config",
    "core",
    "errors",
    "folder",
    "state",
    "utils",
]

__version__ = "0.1.0"
