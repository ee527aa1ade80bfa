"""Briefing templates: reusable block lists that new forms start from.

Templates live in data/config/briefing-templates.json and are seeded with
the defaults below on first load.
"""

from __future__ import annotations

import copy
import sys
import uuid
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))
from shared.config_store import load_config, save_config

from app.audit_log import log_action
from app.form_editor import new_field_id
from app.schema import BriefingTemplate, DisplayMode, FormDefinition, VisibilityRule

CONFIG_NAME = "briefing-templates"

_DEFAULT_TEMPLATES: list[dict] = [
    {
        "id": "social_media_onboarding",
        "name": "Social Media Onboarding",
        "description": "First briefing for a new social media client.",
        "blocks": [
            {"id": "sec_brand", "kind": "section", "label": "About your brand"},
            {
                "id": "brand_name",
                "kind": "text_short",
                "label": "Brand name",
                "required": True,
            },
            {
                "id": "brand_summary",
                "kind": "text_long",
                "label": "Describe your business in a few sentences",
                "required": True,
            },
            {"id": "website", "kind": "link", "label": "Website"},
            {
                "id": "has_visual_identity",
                "kind": "select_single",
                "label": "Do you already have a visual identity?",
                "required": True,
                "options": [
                    {"id": "vi_yes", "value": "yes", "label": "Yes"},
                    {"id": "vi_no", "value": "no", "label": "No"},
                ],
            },
            {
                "id": "brand_files",
                "kind": "upload",
                "label": "Upload your logo and brand manual",
                "rule": {"field_id": "has_visual_identity", "expected": ["yes"]},
            },
            {"id": "sec_channels", "kind": "section", "label": "Channels"},
            {
                "id": "networks",
                "kind": "select_multiple",
                "label": "Which networks should we manage?",
                "required": True,
                "options": [
                    {"id": "net_ig", "value": "instagram", "label": "Instagram"},
                    {"id": "net_fb", "value": "facebook", "label": "Facebook"},
                    {"id": "net_tt", "value": "tiktok", "label": "TikTok"},
                    {"id": "net_li", "value": "linkedin", "label": "LinkedIn"},
                ],
            },
            {
                "id": "instagram_login",
                "kind": "login",
                "label": "Instagram username",
                "rule": {"field_id": "networks", "expected": ["instagram"]},
            },
            {"id": "contact_email", "kind": "email", "label": "Best contact email", "required": True},
        ],
    },
    {
        "id": "campaign_request",
        "name": "Campaign Request",
        "description": "Briefing for a one-off campaign or launch.",
        "blocks": [
            {
                "id": "campaign_name",
                "kind": "text_short",
                "label": "Campaign name",
                "required": True,
            },
            {"id": "launch_date", "kind": "date", "label": "Launch date", "required": True},
            {"id": "budget", "kind": "number", "label": "Budget"},
            {
                "id": "objective",
                "kind": "dropdown",
                "label": "Main objective",
                "required": True,
                "options": [
                    {"id": "obj_awareness", "value": "awareness", "label": "Awareness"},
                    {"id": "obj_leads", "value": "leads", "label": "Lead generation"},
                    {"id": "obj_sales", "value": "sales", "label": "Sales"},
                ],
            },
            {
                "id": "references",
                "kind": "description",
                "label": "Attach any references that inspire you in the next step.",
            },
            {"id": "reference_files", "kind": "upload", "label": "References"},
        ],
    },
]


def get_templates() -> list[BriefingTemplate]:
    """Load templates from config, seeding defaults on first call."""
    data = load_config(CONFIG_NAME)
    if data is None:
        data = copy.deepcopy(_DEFAULT_TEMPLATES)
        save_config(CONFIG_NAME, data)
    return [BriefingTemplate.from_dict(t) for t in data]


def get_template(template_id: str) -> BriefingTemplate | None:
    for t in get_templates():
        if t.id == template_id:
            return t
    return None


def _save_all(templates: list[BriefingTemplate]) -> None:
    save_config(CONFIG_NAME, [t.to_dict() for t in templates])


def save_template(template: BriefingTemplate) -> BriefingTemplate:
    """Create or replace a template by id."""
    if not template.id:
        template.id = str(uuid.uuid4())
    templates = [t for t in get_templates() if t.id != template.id]
    templates.insert(0, template)
    _save_all(templates)
    log_action("template_saved", record_id=template.id, details={"name": template.name})
    return template


def delete_template(template_id: str) -> bool:
    templates = get_templates()
    remaining = [t for t in templates if t.id != template_id]
    if len(remaining) == len(templates):
        return False
    _save_all(remaining)
    log_action("template_deleted", record_id=template_id)
    return True


def form_from_template(
    template: BriefingTemplate,
    title: str = "",
    display_mode: DisplayMode = DisplayMode.PAGE,
    client_id: str = "",
) -> FormDefinition:
    """Build an unsaved form from *template* with fresh field ids.

    Visibility rules are remapped so they keep pointing at the copied fields.
    """
    id_map = {b.id: new_field_id() for b in template.blocks}
    fields = []
    for block in template.blocks:
        rule = block.rule
        if rule is not None and rule.field_id in id_map:
            rule = VisibilityRule(field_id=id_map[rule.field_id], expected=rule.expected)
        fields.append(block.with_changes(id=id_map[block.id], rule=rule))
    return FormDefinition(
        id="",
        title=title or template.name,
        description=template.description,
        display_mode=display_mode,
        client_id=client_id,
        fields=fields,
    )
