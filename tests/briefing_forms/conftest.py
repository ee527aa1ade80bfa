"""Put briefing-forms/ on sys.path and redirect every data directory to tmp_path."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "briefing-forms"))

import shared.config_store as config_mod  # noqa: E402
import app.audit_log as audit_mod  # noqa: E402
import app.form_store as store_mod  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_data(tmp_path):
    """Keep forms, responses, audit files and config out of the repo."""
    with patch.object(store_mod, "DATA_DIR", tmp_path / "briefings"), \
            patch.object(audit_mod, "DATA_DIR", tmp_path / "audit"), \
            patch.object(config_mod, "CONFIG_DIR", tmp_path / "config"):
        yield tmp_path
