"""Field rendering for briefing forms.

``render_field`` turns one field definition plus its current value into a
RenderedField descriptor, or None when the field's visibility rule is not
met. The dashboard maps descriptors onto Streamlit widgets and the API
returns them as JSON, so no UI toolkit is imported here.

Each FieldKind has exactly one handler in ``_HANDLERS``. Adding a kind means
adding an enum member and registering a handler.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any

from app.schema import FieldDefinition, FieldKind, FieldOption, kind_value
from app.visibility import is_visible

MULTI_REQUIRED_WARNING = "Select at least one option."

_DEFAULT_PLACEHOLDERS = {
    FieldKind.EMAIL: "your.email@example.com",
    FieldKind.LOGIN: "Username or ID",
    FieldKind.LINK: "https://example.com",
    FieldKind.DATE: "Select a date",
    FieldKind.DROPDOWN: "Select an option",
}

_ICONS = {
    FieldKind.EMAIL: "mail",
    FieldKind.LOGIN: "user",
    FieldKind.LINK: "link",
    FieldKind.DATE: "calendar",
    FieldKind.UPLOAD: "upload",
}


@dataclass(frozen=True)
class RenderedField:
    """Everything a front end needs to draw one field."""

    field_id: str
    kind: str
    widget: str
    label: str = ""
    required: bool = False
    placeholder: str = ""
    icon: str = ""
    value: Any = None
    choices: tuple[tuple[str, str], ...] = ()
    warning: str = ""
    error: str = ""
    interactive: bool = True

    def to_dict(self) -> dict:
        return {
            "field_id": self.field_id,
            "kind": self.kind,
            "widget": self.widget,
            "label": self.label,
            "required": self.required,
            "placeholder": self.placeholder,
            "icon": self.icon,
            "value": self.value,
            "choices": [list(c) for c in self.choices],
            "warning": self.warning,
            "error": self.error,
            "interactive": self.interactive,
        }


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def option_value(option: FieldOption) -> str:
    """Effective selectable value of an option.

    Select widgets cannot represent an empty value, so a blank value falls
    back to the option's own id.
    """
    if option.value is not None and str(option.value).strip():
        return option.value
    return option.id


def stored_value(field_def: FieldDefinition, option: FieldOption) -> str:
    """Value an answer holds once *option* is picked in *field_def*."""
    if field_def.kind == FieldKind.DROPDOWN:
        return option_value(option)
    return option.value


def dropdown_choices(options: Iterable[FieldOption]) -> tuple[tuple[str, str], ...]:
    """(value, label) pairs for a dropdown, never containing an empty value."""
    return tuple((option_value(o), o.label or option_value(o)) for o in options)


def toggle_option(current: Any, value: str, checked: bool) -> list[str]:
    """Return a new multi-choice selection with *value* added or removed."""
    selected = list(current) if isinstance(current, (list, tuple)) else []
    if checked:
        if value not in selected:
            selected.append(value)
        return selected
    return [v for v in selected if v != value]


def normalize_date_value(value: Any) -> str | None:
    """Store picked dates as ISO date/time strings."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return datetime.combine(value, time()).isoformat()
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).isoformat()
    except ValueError:
        return text


def parse_date_value(value: Any) -> date | None:
    """Inverse of normalize_date_value, for pre-filling a date picker."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except ValueError:
        return None


def describe_files(files: Iterable[Any] | None) -> list[dict] | None:
    """Capture selected files as plain descriptors; nothing is uploaded here."""
    if not files:
        return None
    described = []
    for f in files:
        if isinstance(f, dict):
            described.append(dict(f))
            continue
        described.append({
            "name": getattr(f, "name", str(f)),
            "size": getattr(f, "size", None),
            "content_type": getattr(f, "type", "") or "",
        })
    return described


# ---------------------------------------------------------------------------
# Handlers, one per kind
# ---------------------------------------------------------------------------

def _base(field_def: FieldDefinition, widget: str, value: Any, **extra: Any) -> RenderedField:
    kind = field_def.kind
    return RenderedField(
        field_id=field_def.id,
        kind=kind_value(kind),
        widget=widget,
        label=field_def.label,
        required=field_def.required,
        placeholder=field_def.placeholder or _DEFAULT_PLACEHOLDERS.get(kind, ""),
        icon=_ICONS.get(kind, ""),
        value=value,
        **extra,
    )


def _text(widget: str) -> Callable[[FieldDefinition, Any], RenderedField]:
    def handler(field_def: FieldDefinition, value: Any) -> RenderedField:
        return _base(field_def, widget, "" if value is None else value)
    return handler


def _date(field_def: FieldDefinition, value: Any) -> RenderedField:
    return _base(field_def, "date_input", normalize_date_value(value))


def _single_choice(field_def: FieldDefinition, value: Any) -> RenderedField:
    choices = tuple((o.value, o.label or o.value) for o in field_def.options)
    return _base(field_def, "radio", value or "", choices=choices)


def _multi_choice(field_def: FieldDefinition, value: Any) -> RenderedField:
    selected = list(value) if isinstance(value, (list, tuple)) else []
    choices = tuple((o.value, o.label or o.value) for o in field_def.options)
    warning = MULTI_REQUIRED_WARNING if field_def.required and not selected else ""
    return _base(field_def, "checkbox_group", selected, choices=choices, warning=warning)


def _dropdown(field_def: FieldDefinition, value: Any) -> RenderedField:
    return _base(field_def, "selectbox", value or "", choices=dropdown_choices(field_def.options))


def _upload(field_def: FieldDefinition, value: Any) -> RenderedField:
    files = value if isinstance(value, list) else []
    return _base(field_def, "file_uploader", files)


def _static(widget: str) -> Callable[[FieldDefinition, Any], RenderedField]:
    def handler(field_def: FieldDefinition, value: Any) -> RenderedField:
        return RenderedField(
            field_id=field_def.id,
            kind=kind_value(field_def.kind),
            widget=widget,
            label=field_def.label,
            interactive=False,
        )
    return handler


_HANDLERS: dict[FieldKind, Callable[[FieldDefinition, Any], RenderedField]] = {
    FieldKind.TEXT_SHORT: _text("text_input"),
    FieldKind.TEXT_LONG: _text("text_area"),
    FieldKind.NUMBER: _text("number_input"),
    FieldKind.EMAIL: _text("text_input"),
    FieldKind.LOGIN: _text("text_input"),
    FieldKind.LINK: _text("text_input"),
    FieldKind.DATE: _date,
    FieldKind.SELECT_SINGLE: _single_choice,
    FieldKind.SELECT_MULTIPLE: _multi_choice,
    FieldKind.DROPDOWN: _dropdown,
    FieldKind.SECTION: _static("heading"),
    FieldKind.DESCRIPTION: _static("caption"),
    FieldKind.UPLOAD: _upload,
}


def _unknown(field_def: FieldDefinition) -> RenderedField:
    kind = kind_value(field_def.kind)
    return RenderedField(
        field_id=field_def.id,
        kind=kind,
        widget="error",
        label=field_def.label,
        error=f"Unknown field type: {kind}",
        interactive=False,
    )


def render_field(
    field_def: FieldDefinition,
    value: Any,
    answers: Mapping[str, Any],
) -> RenderedField | None:
    """Render one field, or return None when it is hidden by its rule."""
    if not is_visible(field_def, answers):
        return None
    handler = _HANDLERS.get(field_def.kind) if isinstance(field_def.kind, FieldKind) else None
    if handler is None:
        return _unknown(field_def)
    return handler(field_def, value)


def has_handler(kind: FieldKind | str) -> bool:
    return isinstance(kind, FieldKind) and kind in _HANDLERS
