"""Tests for the structured JSON logger and its redaction."""

import io
import json

from easync.utils.logging import JsonLogger, LogForwarder, NullLogger, get_logger, is_usable_logger, resolve_logger


def test_lines_are_json_with_canonical_fields():
    stream = io.StringIO()
    logger = get_logger("easync.test", stream=stream)
    logger.info("folder_synced", folder="inbox", added=2)
    logger.warning("change_message_rejected")
    first, second = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert first["lvl"] == "INFO"
    assert first["msg"] == "folder_synced"
    assert first["component"] == "easync.test"
    assert first["folder"] == "inbox" and first["added"] == 2
    assert "ts" in first
    assert second["lvl"] == "WARN"


def test_credentials_and_bodies_are_redacted():
    stream = io.StringIO()
    JsonLogger(stream=stream).debug("logon", user="alice", password="hunter2", extra={"auth_pass": "x", "body": "hi"})
    payload = json.loads(stream.getvalue())
    assert payload["user"] == "alice"
    assert payload["password"] == "[redacted]"
    assert payload["extra"] == {"auth_pass": "[redacted]", "body": "[redacted]"}
    assert "hunter2" not in stream.getvalue()


def test_usable_logger_detection():
    assert is_usable_logger(JsonLogger(stream=io.StringIO()))
    assert is_usable_logger(NullLogger())
    assert not is_usable_logger(None)
    assert not is_usable_logger(object())


def test_resolve_logger_wraps_foreign_loggers():
    calls = []

    class LogOnly:
        def log(self, level, message, *, extra=None):
            calls.append((level, message, extra))

    own = JsonLogger(stream=io.StringIO())
    assert resolve_logger(own) is own
    assert isinstance(resolve_logger(None), NullLogger)
    forwarder = resolve_logger(LogOnly())
    assert isinstance(forwarder, LogForwarder)
    forwarder.warning("change_message_rejected", folder="inbox")
    forwarder.debug("server_changes")
    assert calls == [("WARN", "change_message_rejected", {"folder": "inbox"}), ("DEBUG", "server_changes", {})]
