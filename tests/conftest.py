"""Shared fixtures for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture()
def tmp_config_dir(tmp_path: Path):
    """Provide a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture()
def sample_form_dict():
    """A briefing form as stored on disk, with one conditional field."""
    return {
        "id": "form-1",
        "title": "Client Onboarding",
        "description": "Tell us about your brand.",
        "display_mode": "page",
        "client_id": "client-42",
        "is_public": True,
        "fields": [
            {"id": "intro", "kind": "section", "label": "About you"},
            {"id": "name", "kind": "text_short", "label": "Brand name", "required": True},
            {
                "id": "has_site",
                "kind": "select_single",
                "label": "Do you have a website?",
                "required": True,
                "options": [
                    {"id": "o-yes", "value": "yes", "label": "Yes"},
                    {"id": "o-no", "value": "no", "label": "No"},
                ],
            },
            {
                "id": "site",
                "kind": "link",
                "label": "Website address",
                "required": True,
                "rule": {"field_id": "has_site", "expected": ["yes"]},
            },
            {"id": "notes", "kind": "text_long", "label": "Anything else?"},
        ],
    }
