"""
Module: tests/unit/test_config_loader.py

What:
    Validate ``easync.yaml`` discovery, parsing, caching, and error reporting.

Why:
    Sessions take their policy and heartbeat defaults from this file; a
    partially parsed configuration must never reach a device.

How:
    Feed YAML payloads and paths through the loader and assert on the
    resulting models and on :class:`RuntimeConfigError`.
"""

import pytest

from easync.config.loader import (
    RuntimeConfigError,
    get_runtime_config,
    load_runtime_config,
    parse_runtime_config,
    reset_runtime_config,
)
from easync.config.schema import RuntimeConfig


def test_env_config_is_loaded_and_cached(runtime_config):
    config = get_runtime_config()
    assert config.policies.inactivity == 15
    assert config.logging.component == "easync-test"
    assert get_runtime_config() is config


def test_explicit_path_wins(tmp_path):
    path = tmp_path / "easync.yaml"
    path.write_text("version: 1\npolicies:\n  inactivity: 42\n", encoding="utf-8")
    config = load_runtime_config(path)
    assert config.policies.inactivity == 42
    assert config.heartbeat.heartbeatmax == 2700


def test_reset_forces_reload(tmp_path, monkeypatch):
    path = tmp_path / "easync.yaml"
    path.write_text("version: 1\n", encoding="utf-8")
    monkeypatch.setenv("EASYNC_CONFIG_PATH", str(path))
    reset_runtime_config()
    assert get_runtime_config().policies.inactivity == 5
    path.write_text("version: 1\npolicies:\n  inactivity: 7\n", encoding="utf-8")
    assert get_runtime_config().policies.inactivity == 5
    reset_runtime_config()
    assert get_runtime_config().policies.inactivity == 7


def test_empty_document_yields_defaults():
    assert parse_runtime_config("") == RuntimeConfig.minimal()


@pytest.mark.parametrize(
    "text",
    [
        "version: 2\n",
        "- just\n- a list\n",
        "policies: [1, 2\n",
        "version: 1\nunknown: true\n",
        "heartbeat:\n  heartbeatmin: 900\n",
    ],
)
def test_invalid_documents_raise(text):
    with pytest.raises(RuntimeConfigError):
        parse_runtime_config(text, "inline")


def test_missing_config_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("EASYNC_CONFIG_PATH", str(tmp_path / "absent.yaml"))
    monkeypatch.chdir(tmp_path)
    reset_runtime_config()
    with pytest.raises(RuntimeConfigError, match="absent.yaml"):
        load_runtime_config()
