"""Conditional visibility for briefing fields.

A field with a VisibilityRule is shown only while the referenced field holds
a non-empty value matching one of the rule's expected values. Everything here
is a pure function of its arguments.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from app.schema import FieldDefinition, VisibilityRule


def is_empty(value: Any) -> bool:
    """True for None, blank strings and empty lists/tuples."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def is_rule_met(rule: VisibilityRule | None, answers: Mapping[str, Any]) -> bool:
    """Evaluate *rule* against the current answer map.

    Lists match when they share at least one element with the expected
    values; scalars match when they are one of them.
    """
    if rule is None:
        return True
    target = answers.get(rule.field_id)
    if is_empty(target):
        return False
    expected = list(rule.expected)
    if isinstance(target, (list, tuple, set, frozenset)):
        return any(v in expected for v in target)
    return target in expected


def is_visible(field_def: FieldDefinition, answers: Mapping[str, Any]) -> bool:
    return is_rule_met(field_def.rule, answers)


def visible_fields(
    fields: Iterable[FieldDefinition],
    answers: Mapping[str, Any],
) -> list[FieldDefinition]:
    """Filter *fields* to those currently visible, keeping definition order."""
    return [f for f in fields if is_visible(f, answers)]


# ---------------------------------------------------------------------------
# Authoring-time checks
# ---------------------------------------------------------------------------

def find_rule_cycle(fields: Iterable[FieldDefinition]) -> list[str]:
    """Return the field ids of the first rule cycle found, or [] if none.

    Each field has at most one rule, so the dependency graph is a set of
    chains; following a chain until it revisits a node finds any cycle.
    """
    depends_on = {f.id: f.rule.field_id for f in fields if f.rule}
    for start in depends_on:
        path: list[str] = []
        current: str | None = start
        while current in depends_on:
            if current in path:
                return path[path.index(current):] + [current]
            path.append(current)
            current = depends_on[current]
    return []


def rule_problems(fields: list[FieldDefinition]) -> list[str]:
    """List every problem with the visibility rules in *fields*."""
    problems: list[str] = []
    ids = {f.id for f in fields}
    for f in fields:
        if f.rule is None:
            continue
        if f.rule.field_id == f.id:
            problems.append(f"Field '{f.label or f.id}' cannot depend on itself.")
        elif f.rule.field_id not in ids:
            problems.append(
                f"Field '{f.label or f.id}' depends on missing field '{f.rule.field_id}'."
            )
        if all(is_empty(v) for v in f.rule.expected):
            problems.append(f"Field '{f.label or f.id}' has a condition with no expected value.")

    cycle = find_rule_cycle(fields)
    # A self reference is already reported above
    if len(cycle) > 2:
        problems.append("Conditional fields form a cycle: " + " -> ".join(cycle))
    return problems
