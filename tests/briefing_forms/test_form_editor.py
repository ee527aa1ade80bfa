"""Tests for briefing-forms/app/form_editor.py — authoring operations."""

from __future__ import annotations

from app.form_editor import (
    FIELD_KIND_LABELS,
    add_option,
    add_question,
    add_section,
    condition_candidates,
    delete_field,
    disable_condition,
    duplicate_field,
    enable_condition,
    move_field,
    remove_option,
    rename_option,
    set_condition,
    supports_placeholder,
    supports_required,
    update_field,
    validate_form_definition,
)
from app.form_renderer import FormSession
from app.schema import (
    FieldDefinition,
    FieldKind,
    FieldOption,
    FormDefinition,
    VisibilityRule,
)


def _choice(fid: str = "color") -> FieldDefinition:
    return FieldDefinition(
        id=fid, kind=FieldKind.SELECT_SINGLE, label="Favourite colour",
        options=(
            FieldOption(id="o1", value="red", label="Red"),
            FieldOption(id="o2", value="blue", label="Blue"),
        ),
    )


def _text(fid: str, **kwargs) -> FieldDefinition:
    return FieldDefinition(id=fid, kind=FieldKind.TEXT_SHORT, label=fid.title(), **kwargs)


# ── Field list ────────────────────────────────────────────────────────────


class TestFieldList:
    def test_every_kind_has_a_label(self):
        assert set(FIELD_KIND_LABELS) == set(FieldKind)

    def test_add_question_appends_default(self):
        fields = add_question([_text("a")])
        assert len(fields) == 2
        assert fields[-1].kind is FieldKind.TEXT_SHORT
        assert fields[-1].label == "New question"
        assert fields[-1].id != "a"

    def test_add_section(self):
        fields = add_section([])
        assert fields[0].kind is FieldKind.SECTION

    def test_operations_do_not_mutate_input(self):
        original = [_text("a"), _text("b")]
        snapshot = list(original)
        add_question(original)
        move_field(original, 0, 1)
        delete_field(original, 0)
        assert original == snapshot

    def test_update_field_changes_label(self):
        fields = update_field([_text("a")], 0, label="Brand name")
        assert fields[0].label == "Brand name"

    def test_switch_to_text_clears_options(self):
        fields = update_field([_choice()], 0, kind=FieldKind.TEXT_LONG)
        assert fields[0].options == ()

    def test_switch_to_section_clears_required(self):
        fields = update_field([_text("a", required=True)], 0, kind=FieldKind.SECTION)
        assert fields[0].required is False

    def test_switch_between_choice_kinds_keeps_options(self):
        fields = update_field([_choice()], 0, kind=FieldKind.DROPDOWN)
        assert len(fields[0].options) == 2

    def test_duplicate_inserts_copy_after_source(self):
        fields = duplicate_field([_text("a"), _text("b")], 0)
        assert [f.label for f in fields] == ["A", "A (Copy)", "B"]
        assert fields[1].id not in ("a", "b")

    def test_delete_clears_dependent_conditions(self):
        dependent = _text("b", rule=VisibilityRule(field_id="color", expected=("red",)))
        fields = delete_field([_choice(), dependent], 0)
        assert [f.id for f in fields] == ["b"]
        assert fields[0].rule is None

    def test_move_field(self):
        fields = move_field([_text("a"), _text("b"), _text("c")], 0, 2)
        assert [f.id for f in fields] == ["b", "c", "a"]

    def test_placeholder_and_required_support(self):
        assert supports_placeholder(FieldKind.EMAIL)
        assert not supports_placeholder(FieldKind.DATE)
        assert not supports_required(FieldKind.DESCRIPTION)
        assert supports_required(FieldKind.UPLOAD)


# ── Options ───────────────────────────────────────────────────────────────


class TestOptions:
    def test_add_option_numbers_label(self):
        field_def = add_option(_choice())
        assert field_def.options[-1].label == "Option 3"
        assert field_def.options[-1].value == "Option 3"

    def test_rename_option_updates_value(self):
        field_def = rename_option(_choice(), "o1", "Crimson")
        assert field_def.options[0] == FieldOption(id="o1", value="Crimson", label="Crimson")

    def test_blank_rename_falls_back_to_id(self):
        field_def = rename_option(_choice(), "o2", "  ")
        assert field_def.options[1].value == "o2"

    def test_remove_option(self):
        field_def = remove_option(_choice(), "o1")
        assert [o.id for o in field_def.options] == ["o2"]


# ── Conditions ────────────────────────────────────────────────────────────


class TestConditions:
    def test_candidates_are_other_fields_with_options(self):
        fields = [_choice(), _text("a")]
        assert [f.id for f in condition_candidates(fields, fields[1])] == ["color"]
        assert condition_candidates(fields, fields[0]) == []

    def test_enable_uses_first_candidate_and_option(self):
        fields = enable_condition([_choice(), _text("a")], 1)
        assert fields[1].rule == VisibilityRule(field_id="color", expected=("red",))

    def test_enable_without_candidates_is_noop(self):
        fields = [_text("a"), _text("b")]
        assert enable_condition(fields, 1) == fields

    def test_disable(self):
        fields = enable_condition([_choice(), _text("a")], 1)
        assert disable_condition(fields, 1)[1].rule is None

    def test_set_condition_with_several_values(self):
        fields = set_condition([_choice(), _text("a")], 1, "color", ["red", "blue"])
        assert fields[1].rule.expected == ("red", "blue")


# ── Form validation ───────────────────────────────────────────────────────


class TestValidateFormDefinition:
    def test_valid_form(self, sample_form_dict):
        assert validate_form_definition(FormDefinition.from_dict(sample_form_dict)) == []

    def test_missing_title_and_fields(self):
        problems = validate_form_definition(FormDefinition(id="x", title="  "))
        assert "Title is required." in problems
        assert "At least one field is required." in problems

    def test_duplicate_ids(self):
        form = FormDefinition(id="x", title="T", fields=[_text("a"), _text("a")])
        assert "Duplicate field id: a" in validate_form_definition(form)

    def test_choice_without_options(self):
        field_def = FieldDefinition(id="c", kind=FieldKind.DROPDOWN, label="Pick")
        form = FormDefinition(id="x", title="T", fields=[field_def])
        assert any("needs at least one option" in p for p in validate_form_definition(form))

    def test_cycle_is_rejected(self):
        form = FormDefinition(id="x", title="T", fields=[
            _text("a", rule=VisibilityRule(field_id="b", expected=("x",))),
            _text("b", rule=VisibilityRule(field_id="a", expected=("x",))),
        ])
        assert any("cycle" in p for p in validate_form_definition(form))


class TestDropdownConditions:
    def _fields(self):
        dropdown = FieldDefinition(
            id="dd", kind=FieldKind.DROPDOWN, label="Plan",
            options=(FieldOption(id="opt-3", value="", label="Premium"),),
        )
        return [dropdown, _text("why")]

    def test_enable_uses_selectable_value(self):
        fields = enable_condition(self._fields(), 1)
        assert fields[1].rule.expected == ("opt-3",)

    def test_condition_on_blank_dropdown_option_shows_field(self):
        fields = enable_condition(self._fields(), 1)
        session = FormSession(FormDefinition(id="f", title="T", fields=fields))
        session.set_field_value("dd", "opt-3")
        assert [f.id for f in session.visible_fields] == ["dd", "why"]
        assert validate_form_definition(session.form) == []

    def test_single_choice_keeps_raw_values(self):
        fields = enable_condition([_choice(), _text("a")], 1)
        assert fields[1].rule.expected == ("red",)
