"""Tests for briefing-forms/app/formatting.py."""

from __future__ import annotations

from app.formatting import NOT_ANSWERED, answered_fields, format_answer
from app.schema import BriefingResponse, FieldDefinition, FieldKind, FieldOption, FormDefinition

NETWORKS = FieldDefinition(
    id="networks", kind=FieldKind.SELECT_MULTIPLE, label="Networks",
    options=(
        FieldOption(id="n1", value="instagram", label="Instagram"),
        FieldOption(id="n2", value="tiktok", label="TikTok"),
    ),
)


class TestFormatAnswer:
    def test_empty(self):
        text = FieldDefinition(id="t", kind=FieldKind.TEXT_SHORT)
        assert format_answer(text, None) == NOT_ANSWERED
        assert format_answer(text, "") == NOT_ANSWERED
        assert format_answer(NETWORKS, []) == NOT_ANSWERED

    def test_date(self):
        field_def = FieldDefinition(id="d", kind=FieldKind.DATE)
        assert format_answer(field_def, "2025-03-04T15:30:00") == "04/03/2025 15:30"

    def test_unparseable_date_shown_raw(self):
        field_def = FieldDefinition(id="d", kind=FieldKind.DATE)
        assert format_answer(field_def, "soon") == "soon"

    def test_multi_choice_uses_labels(self):
        assert format_answer(NETWORKS, ["instagram", "other"]) == "Instagram, other"

    def test_single_choice_uses_label(self):
        field_def = FieldDefinition(
            id="c", kind=FieldKind.SELECT_SINGLE,
            options=(FieldOption(id="o1", value="yes", label="Yes, please"),),
        )
        assert format_answer(field_def, "yes") == "Yes, please"

    def test_dropdown_blank_value_option_uses_label(self):
        field_def = FieldDefinition(
            id="plan", kind=FieldKind.DROPDOWN,
            options=(
                FieldOption(id="opt-1", value="basic", label="Basic"),
                FieldOption(id="opt-3", value="", label="Premium"),
            ),
        )
        assert format_answer(field_def, "opt-3") == "Premium"
        assert format_answer(field_def, "basic") == "Basic"

    def test_upload_lists_file_names(self):
        field_def = FieldDefinition(id="u", kind=FieldKind.UPLOAD)
        files = [{"name": "logo.png", "path": "uploads/a_logo.png"}, {"name": "manual.pdf"}]
        assert format_answer(field_def, files) == "logo.png, manual.pdf"

    def test_number(self):
        assert format_answer(FieldDefinition(id="n", kind=FieldKind.NUMBER), 1500) == "1500"


def test_answered_fields_in_form_order(sample_form_dict):
    form = FormDefinition.from_dict(sample_form_dict)
    response = BriefingResponse(
        id="r1", form_id="form-1",
        answers={"notes": "", "has_site": "yes", "name": "Acme", "intro": "x"},
    )
    rows = [(f.id, text) for f, text in answered_fields(form, response)]
    assert rows == [("name", "Acme"), ("has_site", "Yes"), ("notes", NOT_ANSWERED)]
