"""Tests for shared/config_store.py — centralized config read/write."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

import shared.config_store as config_mod


@pytest.fixture(autouse=True)
def _isolate_config_dir(tmp_path):
    """Redirect CONFIG_DIR to tmp_path for every test."""
    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True)
    with patch.object(config_mod, "CONFIG_DIR", config_dir):
        yield config_dir


# ── load_config ──────────────────────────────────────────────────────────


class TestLoadConfig:
    def test_returns_none_when_missing(self):
        assert config_mod.load_config("nonexistent") is None

    def test_reads_valid_json(self, _isolate_config_dir):
        path = _isolate_config_dir / "my-tool.json"
        path.write_text(json.dumps({"key": "value"}))
        result = config_mod.load_config("my-tool")
        assert result == {"key": "value"}

    def test_returns_none_on_corrupt_json(self, _isolate_config_dir):
        path = _isolate_config_dir / "bad.json"
        path.write_text("NOT VALID JSON")
        assert config_mod.load_config("bad") is None


# ── save_config ──────────────────────────────────────────────────────────


class TestSaveConfig:
    def test_creates_file(self, _isolate_config_dir):
        config_mod.save_config("new-tool", {"a": 1, "b": "two"})
        path = _isolate_config_dir / "new-tool.json"
        assert path.exists()
        data = json.loads(path.read_text())
        assert data == {"a": 1, "b": "two"}

    def test_overwrites_existing(self, _isolate_config_dir):
        config_mod.save_config("tool", {"v": 1})
        config_mod.save_config("tool", {"v": 2})
        result = config_mod.load_config("tool")
        assert result["v"] == 2


# ── get_config_value ─────────────────────────────────────────────────────


class TestGetConfigValue:
    def test_returns_default_when_no_config(self):
        assert config_mod.get_config_value("missing", "key", "default") == "default"

    def test_returns_value_when_present(self, _isolate_config_dir):
        config_mod.save_config("tool", {"timeout": 30})
        assert config_mod.get_config_value("tool", "timeout", 10) == 30

    def test_returns_default_for_missing_key(self, _isolate_config_dir):
        config_mod.save_config("tool", {"timeout": 30})
        assert config_mod.get_config_value("tool", "retries", 3) == 3


class TestListConfig:
    def test_list_round_trip(self, _isolate_config_dir):
        config_mod.save_config("templates", [{"id": "a"}, {"id": "b"}])
        assert config_mod.load_config("templates") == [{"id": "a"}, {"id": "b"}]


# ── set_config_value ─────────────────────────────────────────────────────


class TestSetConfigValue:
    def test_preserves_other_keys(self, _isolate_config_dir):
        config_mod.save_config("tool", {"a": 1})
        config_mod.set_config_value("tool", "b", 2)
        assert config_mod.load_config("tool") == {"a": 1, "b": 2}

    def test_creates_config(self, _isolate_config_dir):
        config_mod.set_config_value("fresh", "k", "v")
        assert config_mod.load_config("fresh") == {"k": "v"}


# ── get_secret ───────────────────────────────────────────────────────────


class TestGetSecret:
    def test_config_value_wins(self, _isolate_config_dir, monkeypatch):
        monkeypatch.setenv("BOT_TOKEN", "from-env")
        config_mod.save_config("tool", {"telegram": {"bot_token": "from-config"}})
        assert config_mod.get_secret("tool", "telegram", "bot_token", "BOT_TOKEN") == "from-config"

    def test_falls_back_to_env(self, monkeypatch):
        monkeypatch.setenv("BOT_TOKEN", "from-env")
        assert config_mod.get_secret("tool", "telegram", "bot_token", "BOT_TOKEN") == "from-env"

    def test_blank_config_value_falls_back(self, _isolate_config_dir, monkeypatch):
        monkeypatch.setenv("BOT_TOKEN", "from-env")
        config_mod.save_config("tool", {"telegram": {"bot_token": ""}})
        assert config_mod.get_secret("tool", "telegram", "bot_token", "BOT_TOKEN") == "from-env"

    def test_missing_everywhere(self, monkeypatch):
        monkeypatch.delenv("BOT_TOKEN", raising=False)
        assert config_mod.get_secret("tool", "telegram", "bot_token", "BOT_TOKEN") == ""

    def test_numeric_chat_id_returned_as_string(self, _isolate_config_dir):
        config_mod.save_config("tool", {"telegram": {"chat_id": -100123}})
        assert config_mod.get_secret("tool", "telegram", "chat_id", "CHAT_ID") == "-100123"
