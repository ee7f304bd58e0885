"""Pytest configuration shared by the unit and end-to-end suites.

What:
  Establish project import paths and pin the runtime configuration to the
  canned ``tests/data/config.yaml`` for every test.

Why:
  Tests must import the in-repo ``easync`` package rather than an installed
  wheel, and the runtime configuration is cached globally; without a reset a
  test could observe settings loaded by another one.

How:
  Prepend ``easync/src`` to ``sys.path`` when present and define the autouse
  :func:`runtime_config` fixture which sets ``EASYNC_CONFIG_PATH`` and clears
  the cache before and after each test.

Interfaces:
  :func:`runtime_config` (pytest fixture).
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "easync" / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

import pytest

from easync.config.loader import reset_runtime_config

CONFIG_PATH = Path(__file__).resolve().parent / "data" / "config.yaml"


@pytest.fixture(autouse=True)
def runtime_config(monkeypatch: pytest.MonkeyPatch):
    """Apply the canned configuration file for every test."""

    monkeypatch.setenv("EASYNC_CONFIG_PATH", str(CONFIG_PATH))
    reset_runtime_config()
    try:
        yield CONFIG_PATH
    finally:
        reset_runtime_config()
