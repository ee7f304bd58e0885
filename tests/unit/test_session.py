"""
Module: tests/unit/test_session.py

What:
    Validate :class:`easync.backend.session.BackendSession` construction
    checks, policy merging, logger substitution, and identity bookkeeping.

Why:
    A backend built without a state store must never reach a device, and a
    missing logger must never be the reason a backend fails to start.

How:
    Construct sessions with valid and invalid collaborators and assert on the
    raised errors and the effective policy set.
"""

import logging

import pytest

from easync.backend.session import BackendSession
from easync.config.loader import load_runtime_config
from easync.config.schema import DEFAULT_POLICIES
from easync.errors import InvalidArgumentError
from easync.state.store import MemoryStateStore
from easync.utils.logging import LogForwarder, NullLogger

from fakes import RecordingLogger


def test_missing_state_is_rejected():
    with pytest.raises(InvalidArgumentError, match="Missing required state object"):
        BackendSession(logger=RecordingLogger())


def test_state_without_store_interface_is_rejected():
    with pytest.raises(InvalidArgumentError):
        BackendSession(state=object())


def test_missing_logger_falls_back_to_stub():
    session = BackendSession(state=MemoryStateStore())
    assert isinstance(session.logger, NullLogger)
    session.logger.info("anything", password="x")


def test_logger_without_callable_log_is_replaced():
    class Broken:
        log = "not callable"

    session = BackendSession(state=MemoryStateStore(), logger=Broken())
    assert isinstance(session.logger, NullLogger)


def test_default_policies_apply_without_override():
    session = BackendSession(state=MemoryStateStore())
    assert session.policies == DEFAULT_POLICIES
    assert session.policies.inactivity == 5
    assert session.policies.wipethreshold == 10


def test_policy_override_replaces_only_given_keys():
    session = BackendSession(state=MemoryStateStore(), policies={"inactivity": 30, "maxattsize": 1024})
    policies = session.policies.as_dict()
    assert policies["inactivity"] == 30
    assert policies["maxattsize"] == 1024
    assert policies["pin"] is True
    assert policies["minimumlength"] == 5


def test_invalid_policy_override_is_rejected():
    with pytest.raises(InvalidArgumentError):
        BackendSession(state=MemoryStateStore(), policies={"inactivity": -1})


def test_heartbeat_defaults_and_validation():
    session = BackendSession(state=MemoryStateStore())
    assert session.heartbeat.heartbeatdefault == 480
    with pytest.raises(InvalidArgumentError):
        BackendSession(state=MemoryStateStore(), ping={"heartbeatmin": 600, "heartbeatdefault": 480})


def test_from_runtime_config_uses_deployment_defaults():
    runtime = load_runtime_config()
    session = BackendSession.from_runtime_config(runtime, state=MemoryStateStore(), policies={"pin": False})
    assert session.policies.inactivity == 15
    assert session.policies.pin is False


def test_logon_and_setup_support_impersonation():
    logger = RecordingLogger()
    session = BackendSession(state=MemoryStateStore(), logger=logger)
    assert session.logon("admin", "secret", "corp") is True
    assert session.get_user() == "admin"
    assert session.setup("bob") is True
    assert session.user == "bob"
    assert "setup_impersonation" in logger.messages("INFO")
    assert "secret" not in repr(session.context)


def test_require_setup_before_data_access():
    session = BackendSession(state=MemoryStateStore())
    with pytest.raises(InvalidArgumentError):
        session.require_setup()
    session.setup("carol")
    assert session.require_setup() == "carol"


class LogOnly:
    """Logger exposing nothing but ``log``."""

    def __init__(self):
        self.calls = []

    def log(self, level, message, *, extra=None):
        self.calls.append((level, message, extra))


def test_log_only_logger_receives_every_event():
    sink = LogOnly()
    session = BackendSession(state=MemoryStateStore(), logger=sink)
    assert isinstance(session.logger, LogForwarder)
    assert session.logon("alice", "secret") is True
    session.setup("bob")
    assert session.log_off() is True
    assert [message for _, message, _ in sink.calls] == ["logon", "setup_impersonation", "logoff"]
    assert sink.calls[0] == ("INFO", "logon", {"user": "alice", "domain": None})


def test_stdlib_logger_gets_fields_under_one_key(caplog):
    target = logging.getLogger("easync.tests.session")
    caplog.set_level(logging.DEBUG, logger=target.name)
    session = BackendSession(state=MemoryStateStore(), logger=target)
    session.logon("alice", "secret")
    (record,) = [record for record in caplog.records if record.name == target.name]
    assert record.levelno == logging.INFO
    assert record.getMessage() == "logon"
    assert record.easync == {"user": "alice", "domain": None}


@pytest.mark.parametrize("overrides", [["pin", False], "pin=false", 5])
def test_non_mapping_policy_override_is_rejected(overrides):
    with pytest.raises(InvalidArgumentError, match="mapping"):
        BackendSession(state=MemoryStateStore(), policies=overrides)


def test_non_mapping_heartbeat_override_is_rejected():
    with pytest.raises(InvalidArgumentError, match="mapping"):
        BackendSession(state=MemoryStateStore(), ping=[("heartbeatmin", 30)])
