"""Authoring operations for briefing form field lists.

Every function takes a list of FieldDefinition objects and returns a new
list; the input is left untouched so the dashboard can keep the previous
version around for undo.
"""

from __future__ import annotations

import uuid
from typing import Any

from app.schema import (
    OPTION_KINDS,
    STATIC_KINDS,
    FieldDefinition,
    FieldKind,
    FieldOption,
    FormDefinition,
    VisibilityRule,
)
from app.field_renderer import stored_value
from app.visibility import rule_problems

FIELD_KIND_LABELS: dict[FieldKind, str] = {
    FieldKind.TEXT_SHORT: "Short text",
    FieldKind.TEXT_LONG: "Long text",
    FieldKind.NUMBER: "Number",
    FieldKind.EMAIL: "Email",
    FieldKind.LOGIN: "Login / username",
    FieldKind.LINK: "Link / URL",
    FieldKind.DATE: "Date",
    FieldKind.SELECT_SINGLE: "Single choice (radio)",
    FieldKind.SELECT_MULTIPLE: "Multiple choice (checkbox)",
    FieldKind.DROPDOWN: "Dropdown list",
    FieldKind.UPLOAD: "File upload",
    FieldKind.SECTION: "Section / heading",
    FieldKind.DESCRIPTION: "Description (info text)",
}

_PLACEHOLDER_KINDS = frozenset({
    FieldKind.TEXT_SHORT,
    FieldKind.TEXT_LONG,
    FieldKind.NUMBER,
    FieldKind.LINK,
    FieldKind.EMAIL,
    FieldKind.LOGIN,
    FieldKind.DROPDOWN,
})


def new_field_id() -> str:
    """Generate a short unique ID for a new field or option."""
    return str(uuid.uuid4())[:8]


def supports_options(kind: FieldKind | str) -> bool:
    return kind in OPTION_KINDS


def supports_placeholder(kind: FieldKind | str) -> bool:
    return kind in _PLACEHOLDER_KINDS


def supports_required(kind: FieldKind | str) -> bool:
    return kind not in STATIC_KINDS


def new_question() -> FieldDefinition:
    return FieldDefinition(id=new_field_id(), kind=FieldKind.TEXT_SHORT, label="New question")


def new_section() -> FieldDefinition:
    return FieldDefinition(id=new_field_id(), kind=FieldKind.SECTION, label="New section")


# ---------------------------------------------------------------------------
# Field list operations
# ---------------------------------------------------------------------------

def add_question(fields: list[FieldDefinition]) -> list[FieldDefinition]:
    return [*fields, new_question()]


def add_section(fields: list[FieldDefinition]) -> list[FieldDefinition]:
    return [*fields, new_section()]


def update_field(fields: list[FieldDefinition], index: int, **changes: Any) -> list[FieldDefinition]:
    """Replace the field at *index* with a copy carrying *changes*.

    Switching to a kind without options clears them; switching to a static
    kind also clears ``required``.
    """
    updated = fields[index].with_changes(**changes)
    if "kind" in changes:
        if not supports_options(updated.kind) and updated.options:
            updated = updated.with_changes(options=())
        if not supports_required(updated.kind) and updated.required:
            updated = updated.with_changes(required=False)
    result = list(fields)
    result[index] = updated
    return result


def duplicate_field(fields: list[FieldDefinition], index: int) -> list[FieldDefinition]:
    source = fields[index]
    copy = source.with_changes(id=new_field_id(), label=f"{source.label} (Copy)")
    result = list(fields)
    result.insert(index + 1, copy)
    return result


def delete_field(fields: list[FieldDefinition], index: int) -> list[FieldDefinition]:
    """Remove the field at *index* and any conditions that pointed at it."""
    removed_id = fields[index].id
    result = []
    for i, f in enumerate(fields):
        if i == index:
            continue
        if f.rule is not None and f.rule.field_id == removed_id:
            f = f.with_changes(rule=None)
        result.append(f)
    return result


def move_field(fields: list[FieldDefinition], source: int, destination: int) -> list[FieldDefinition]:
    """Drag-and-drop reorder: take the item at *source* and drop it at *destination*."""
    result = list(fields)
    item = result.pop(source)
    result.insert(destination, item)
    return result


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

def add_option(field_def: FieldDefinition) -> FieldDefinition:
    label = f"Option {len(field_def.options) + 1}"
    option = FieldOption(id=new_field_id(), value=label, label=label)
    return field_def.with_changes(options=(*field_def.options, option))


def rename_option(field_def: FieldDefinition, option_id: str, label: str) -> FieldDefinition:
    """Relabel an option; its value follows the label, or its id when blank."""
    options = []
    for o in field_def.options:
        if o.id == option_id:
            value = label if label.strip() else o.id
            o = FieldOption(id=o.id, value=value, label=label)
        options.append(o)
    return field_def.with_changes(options=tuple(options))


def remove_option(field_def: FieldDefinition, option_id: str) -> FieldDefinition:
    return field_def.with_changes(
        options=tuple(o for o in field_def.options if o.id != option_id)
    )


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

def condition_candidates(
    fields: list[FieldDefinition],
    field_def: FieldDefinition,
) -> list[FieldDefinition]:
    """Fields another field may depend on: any other field with options."""
    return [f for f in fields if f.id != field_def.id and f.options]


def enable_condition(fields: list[FieldDefinition], index: int) -> list[FieldDefinition]:
    """Attach a default condition on the first candidate field, if any."""
    candidates = condition_candidates(fields, fields[index])
    if not candidates:
        return list(fields)
    target = candidates[0]
    rule = VisibilityRule(field_id=target.id, expected=(stored_value(target, target.options[0]),))
    return update_field(fields, index, rule=rule)


def disable_condition(fields: list[FieldDefinition], index: int) -> list[FieldDefinition]:
    return update_field(fields, index, rule=None)


def set_condition(
    fields: list[FieldDefinition],
    index: int,
    target_id: str,
    expected: list[str] | tuple[str, ...],
) -> list[FieldDefinition]:
    return update_field(fields, index, rule=VisibilityRule(field_id=target_id, expected=tuple(expected)))


# ---------------------------------------------------------------------------
# Form-level validation
# ---------------------------------------------------------------------------

def validate_form_definition(form: FormDefinition) -> list[str]:
    """Check a form before it is saved.

    Returns:
        List of problems. Empty list means the form can be saved.
    """
    problems: list[str] = []
    if not form.title.strip():
        problems.append("Title is required.")
    if not form.fields:
        problems.append("At least one field is required.")

    seen: set[str] = set()
    for f in form.fields:
        if f.id in seen:
            problems.append(f"Duplicate field id: {f.id}")
        seen.add(f.id)
        if supports_options(f.kind) and not f.options:
            problems.append(f"Field '{f.label or f.id}' needs at least one option.")

    problems.extend(rule_problems(form.fields))
    return problems
