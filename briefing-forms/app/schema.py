"""Data models for briefing forms.

Dataclasses for field definitions, visibility rules, form definitions,
responses and templates. All models support JSON serialization via
to_dict/from_dict. ``from_dict`` also accepts the camelCase keys used by
rows exported from the old dashboard (``isRequired``, ``conditionalLogic``,
``displayMode`` ...).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any


class FieldKind(str, Enum):
    """Every kind of element a briefing form can hold."""

    TEXT_SHORT = "text_short"
    TEXT_LONG = "text_long"
    NUMBER = "number"
    EMAIL = "email"
    LOGIN = "login"
    LINK = "link"
    DATE = "date"
    SELECT_SINGLE = "select_single"
    SELECT_MULTIPLE = "select_multiple"
    DROPDOWN = "dropdown"
    SECTION = "section"
    DESCRIPTION = "description"
    UPLOAD = "upload"


class DisplayMode(str, Enum):
    PAGE = "page"
    SEQUENTIAL = "sequential"


# Non-interactive kinds: shown as text and never answered
STATIC_KINDS = frozenset({FieldKind.SECTION, FieldKind.DESCRIPTION})

OPTION_KINDS = frozenset({
    FieldKind.SELECT_SINGLE,
    FieldKind.SELECT_MULTIPLE,
    FieldKind.DROPDOWN,
})

# "typeform" is what the old dashboard called one-question-per-screen
_MODE_ALIASES = {"typeform": DisplayMode.SEQUENTIAL}

AnswerMap = Mapping[str, Any]


def freeze_answers(answers: Mapping[str, Any] | None) -> AnswerMap:
    """Return a read-only copy of *answers*."""
    return MappingProxyType(dict(answers or {}))


def parse_kind(raw: Any) -> FieldKind | str:
    """Coerce *raw* to a FieldKind, keeping unrecognised kinds as strings."""
    if isinstance(raw, FieldKind):
        return raw
    try:
        return FieldKind(str(raw))
    except ValueError:
        return str(raw)


def parse_display_mode(raw: Any) -> DisplayMode:
    if isinstance(raw, DisplayMode):
        return raw
    raw = str(raw or DisplayMode.PAGE.value)
    if raw in _MODE_ALIASES:
        return _MODE_ALIASES[raw]
    return DisplayMode(raw)


def kind_value(kind: FieldKind | str) -> str:
    return kind.value if isinstance(kind, FieldKind) else kind


@dataclass(frozen=True)
class FieldOption:
    """One selectable option of a choice or dropdown field."""

    id: str
    value: str = ""
    label: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "value": self.value, "label": self.label}

    @classmethod
    def from_dict(cls, d: dict) -> FieldOption:
        value = d.get("value")
        return cls(
            id=str(d.get("id", "")),
            value="" if value is None else str(value),
            label=str(d.get("label") or ""),
        )


@dataclass(frozen=True)
class VisibilityRule:
    """Show a field only when another field holds one of the expected values."""

    field_id: str
    expected: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"field_id": self.field_id, "expected": list(self.expected)}

    @classmethod
    def from_dict(cls, d: dict) -> VisibilityRule:
        field_id = d.get("field_id", d.get("fieldId", ""))
        expected = d.get("expected", d.get("expectedValue", ()))
        if isinstance(expected, (list, tuple)):
            expected = tuple(expected)
        else:
            expected = (expected,)
        return cls(field_id=str(field_id), expected=expected)


@dataclass(frozen=True)
class FieldDefinition:
    """A single question or static element within a briefing form."""

    id: str
    kind: FieldKind | str
    label: str = ""
    placeholder: str = ""
    required: bool = False
    options: tuple[FieldOption, ...] = ()
    rule: VisibilityRule | None = None

    @property
    def is_static(self) -> bool:
        return self.kind in STATIC_KINDS

    @property
    def is_interactive(self) -> bool:
        return not self.is_static

    def with_changes(self, **changes: Any) -> FieldDefinition:
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": kind_value(self.kind),
            "label": self.label,
            "placeholder": self.placeholder,
            "required": self.required,
            "options": [o.to_dict() for o in self.options],
            "rule": self.rule.to_dict() if self.rule else None,
        }

    @classmethod
    def from_dict(cls, d: dict) -> FieldDefinition:
        rule_data = d.get("rule", d.get("conditionalLogic"))
        return cls(
            id=str(d["id"]),
            kind=parse_kind(d.get("kind", d.get("type", FieldKind.TEXT_SHORT.value))),
            label=str(d.get("label") or ""),
            placeholder=str(d.get("placeholder") or ""),
            required=bool(d.get("required", d.get("isRequired", False))),
            options=tuple(FieldOption.from_dict(o) for o in d.get("options") or []),
            rule=VisibilityRule.from_dict(rule_data) if rule_data else None,
        )


@dataclass
class FormDefinition:
    """A complete briefing form: ordered fields plus presentation metadata."""

    id: str
    title: str
    fields: list[FieldDefinition] = field(default_factory=list)
    description: str = ""
    display_mode: DisplayMode = DisplayMode.PAGE
    client_id: str = ""
    is_public: bool = True
    created_at: str = ""
    updated_at: str = ""

    def get_field(self, field_id: str) -> FieldDefinition | None:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    @property
    def is_sequential(self) -> bool:
        return self.display_mode is DisplayMode.SEQUENTIAL

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "display_mode": self.display_mode.value,
            "client_id": self.client_id,
            "is_public": self.is_public,
            "fields": [f.to_dict() for f in self.fields],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> FormDefinition:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title") or ""),
            description=str(d.get("description") or ""),
            display_mode=parse_display_mode(d.get("display_mode", d.get("displayMode"))),
            client_id=str(d.get("client_id", d.get("clientId")) or ""),
            is_public=bool(d.get("is_public", d.get("isPublic", True))),
            fields=[FieldDefinition.from_dict(f) for f in d.get("fields") or []],
            created_at=str(d.get("created_at", d.get("createdAt")) or ""),
            updated_at=str(d.get("updated_at") or ""),
        )


@dataclass
class BriefingResponse:
    """A submitted answer set for one form."""

    id: str
    form_id: str
    answers: dict[str, Any] = field(default_factory=dict)
    client_id: str = ""
    submitted_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "form_id": self.form_id,
            "client_id": self.client_id,
            "answers": dict(self.answers),
            "submitted_at": self.submitted_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> BriefingResponse:
        return cls(
            id=str(d.get("id", "")),
            form_id=str(d.get("form_id", "")),
            answers=dict(d.get("answers", d.get("response_data")) or {}),
            client_id=str(d.get("client_id") or ""),
            submitted_at=str(d.get("submitted_at") or ""),
        )


@dataclass
class BriefingTemplate:
    """A reusable list of blocks new forms can start from."""

    id: str
    name: str
    description: str = ""
    blocks: list[FieldDefinition] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "blocks": [b.to_dict() for b in self.blocks],
        }

    @classmethod
    def from_dict(cls, d: dict) -> BriefingTemplate:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name") or ""),
            description=str(d.get("description") or ""),
            blocks=[FieldDefinition.from_dict(b) for b in d.get("blocks") or []],
        )


@dataclass
class AuditEntry:
    """A single audit trail entry."""

    timestamp: str
    action: str                # form_saved | response_submitted | notification_failed ...
    form_id: str = ""
    record_id: str = ""
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> AuditEntry:
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})
