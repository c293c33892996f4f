# ABOUTME: Tests for debug mode configuration
# ABOUTME: Validates DEBUG env var enables tagged debug output

import os
from importlib import reload
from unittest.mock import patch

import pytest

import toolpick.config
import toolpick.debug


@pytest.fixture(autouse=True)
def restore_modules():
    yield
    reload(toolpick.config)
    reload(toolpick.debug)


def reload_with_env(env: dict):
    # load_dotenv is patched so a local .env can't override the test environment
    with patch("dotenv.load_dotenv"), patch.dict(os.environ, env, clear=True):
        reload(toolpick.config)
        reload(toolpick.debug)


def test_debug_mode_disabled_by_default():
    """Debug mode should be disabled when env var not set"""
    reload_with_env({})

    assert toolpick.config.Config.DEBUG is False


def test_debug_mode_enabled_when_env_true():
    reload_with_env({"DEBUG": "true"})

    assert toolpick.config.Config.DEBUG is True


def test_debug_mode_enabled_case_insensitive():
    """DEBUG=TRUE (uppercase) should also work"""
    reload_with_env({"DEBUG": "TRUE"})

    assert toolpick.config.Config.DEBUG is True


def test_debug_log_outputs_when_enabled(capsys):
    reload_with_env({"DEBUG": "true"})

    toolpick.debug.debug_log("test message", "SCORING")

    assert capsys.readouterr().out == "[SCORING] test message\n"


def test_debug_log_default_category(capsys):
    reload_with_env({"DEBUG": "true"})

    toolpick.debug.debug_log("test message")

    assert "[DEBUG] test message" in capsys.readouterr().out


def test_debug_log_silent_when_disabled(capsys):
    reload_with_env({"DEBUG": "false"})

    toolpick.debug.debug_log("test message")

    assert capsys.readouterr().out == ""
