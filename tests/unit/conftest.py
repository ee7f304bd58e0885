"""Pytest fixtures for unit tests built on the in-memory backend.

What:
  Make ``tests/unit`` importable and expose fixtures wiring a
  :class:`FakeBackend` to a recording store and logger, both raw and wrapped
  in :class:`~easync.backend.defaults.DefaultedBackend`.

Why:
  Most tests need the same three collaborators; building them in one place
  keeps each test focused on the behaviour it asserts.

Interfaces:
  :func:`store`, :func:`logger`, :func:`fake_backend`, :func:`backend`.
"""

import sys
from pathlib import Path

import pytest

from easync.backend.defaults import DefaultedBackend

UNIT_DIR = Path(__file__).resolve().parent
if str(UNIT_DIR) not in sys.path:
    sys.path.insert(0, str(UNIT_DIR))

from fakes import FakeBackend, RecordingLogger, RecordingStore


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def fake_backend(store, logger) -> FakeBackend:
    """Fake backend with an inbox and a contacts folder."""

    fake = FakeBackend(store=store, logger=logger)
    fake.add_folder("inbox", "0", "Inbox", folder_type=2)
    fake.add_folder("contacts", "0", "Contacts", folder_type=9)
    return fake


@pytest.fixture
def backend(fake_backend) -> DefaultedBackend:
    """Defaulted adapter around :func:`fake_backend`, logged on and set up."""

    adapter = DefaultedBackend(fake_backend)
    adapter.logon("alice", "secret")
    adapter.setup("alice")
    return adapter
