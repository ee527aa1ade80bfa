"""Human-readable formatting of submitted briefing answers."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from app.field_renderer import stored_value
from app.schema import BriefingResponse, FieldDefinition, FieldKind, FormDefinition
from app.visibility import is_empty

NOT_ANSWERED = "Not answered"


def format_answer(field_def: FieldDefinition, value: Any) -> str:
    if is_empty(value):
        return NOT_ANSWERED

    if field_def.kind == FieldKind.DATE:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return str(value)
        return parsed.strftime("%d/%m/%Y %H:%M")

    if isinstance(value, list):
        if field_def.kind == FieldKind.UPLOAD:
            return ", ".join(
                str(v.get("name", "file")) if isinstance(v, dict) else str(v) for v in value
            )
        # Show option labels rather than stored values when we can
        labels = {stored_value(field_def, o): o.label for o in field_def.options if o.label}
        return ", ".join(labels.get(v, str(v)) for v in value)

    if isinstance(value, dict):
        return str(value.get("name", value))

    for o in field_def.options:
        if stored_value(field_def, o) == value and o.label:
            return o.label
    return str(value)


def answered_fields(
    form: FormDefinition,
    response: BriefingResponse,
) -> list[tuple[FieldDefinition, str]]:
    """Pair each answered, non-static field with its formatted answer, in form order."""
    rows = []
    for f in form.fields:
        if f.is_static or f.id not in response.answers:
            continue
        rows.append((f, format_answer(f, response.answers[f.id])))
    return rows
