"""Centralized configuration store for the agency tools.

Reads and writes per-tool JSON config files in data/config/.
Each tool gets a single JSON file keyed by tool name (e.g. "briefing-forms.json").
Tools load config values with fallback to their hardcoded defaults; secrets
may instead come from environment variables or the project's .env file.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

CONFIG_DIR = Path(__file__).resolve().parent.parent / "data" / "config"

# Load .env from the project directory (where bot tokens live)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
if _ENV_PATH.exists():
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH)


def load_config(tool_name: str) -> dict | list | None:
    """Load a tool's JSON config. Returns None if file doesn't exist."""
    path = CONFIG_DIR / f"{tool_name}.json"
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return None


def save_config(tool_name: str, config: dict | list) -> None:
    """Write a tool's config to JSON. Creates dir if needed."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    path = CONFIG_DIR / f"{tool_name}.json"
    path.write_text(json.dumps(config, indent=2, ensure_ascii=False))


def get_config_value(tool_name: str, key: str, default: Any) -> Any:
    """Get a single key from a tool's config, with fallback to default."""
    config = load_config(tool_name)
    if config is None:
        return default
    return config.get(key, default)


def set_config_value(tool_name: str, key: str, value: Any) -> None:
    """Set a single key in a tool's config, preserving other keys."""
    config = load_config(tool_name) or {}
    config[key] = value
    save_config(tool_name, config)


def get_secret(tool_name: str, section: str, key: str, env_var: str) -> str:
    """Read ``config[section][key]``, falling back to the *env_var* variable."""
    section_cfg = get_config_value(tool_name, section, {}) or {}
    value = section_cfg.get(key) if isinstance(section_cfg, dict) else None
    if value:
        return str(value)
    return os.environ.get(env_var, "")
