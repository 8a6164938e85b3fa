import logging
from pathlib import Path

import config


def test_int_env_fallbacks(monkeypatch):
    monkeypatch.setenv("TW_TEST_INT", "42")
    assert config._get_int_env("TW_TEST_INT", 7) == 42
    monkeypatch.setenv("TW_TEST_INT", "nope")
    assert config._get_int_env("TW_TEST_INT", 7) == 7
    monkeypatch.setenv("TW_TEST_INT", "-3")
    assert config._get_int_env("TW_TEST_INT", 7, minval=0) == 7
    monkeypatch.delenv("TW_TEST_INT")
    assert config._get_int_env("TW_TEST_INT", 7) == 7


def test_float_and_bool_env(monkeypatch):
    monkeypatch.setenv("TW_TEST_FLOAT", "2.5")
    assert config._get_float_env("TW_TEST_FLOAT", 1.0) == 2.5
    monkeypatch.setenv("TW_TEST_BOOL", "Yes")
    assert config._get_bool_env("TW_TEST_BOOL", False) == True
    monkeypatch.setenv("TW_TEST_BOOL", "off")
    assert config._get_bool_env("TW_TEST_BOOL", True) == False


def test_strict_mode_and_assets_dir(monkeypatch):
    monkeypatch.delenv("TW_STRICT", raising=False)
    monkeypatch.delenv("TW_ASSETS_DIR", raising=False)
    assert config.get_strict_mode() == False
    assert config.get_assets_dir() == config.DEFAULT_ASSETS_DIR

    monkeypatch.setenv("TW_STRICT", "true")
    monkeypatch.setenv("TW_ASSETS_DIR", "/srv/content")
    assert config.get_strict_mode() == True
    assert config.get_assets_dir() == Path("/srv/content")


def test_log_level(monkeypatch):
    monkeypatch.setenv("TW_LOG_LEVEL", "debug")
    assert config.get_log_level() == logging.DEBUG
    monkeypatch.setenv("TW_LOG_LEVEL", "chatty")
    assert config.get_log_level() == logging.WARNING


def test_friendship_thresholds_are_ordered():
    assert 0 <= config.ACQUAINTANCE_THRESHOLD <= config.GOOD_FRIEND_THRESHOLD <= config.MAX_FRIENDSHIP_POINTS
