"""Fill-out sessions for briefing forms.

A FormSession owns one answer map for one form definition. In page mode all
visible fields are shown together and validated on submit; in sequential
mode one visible field is shown at a time behind a cursor, and the field
under the cursor is validated on every step forward.

The answer map is never mutated in place: every ``set_field_value`` swaps
in a new read-only mapping, and all derived field lists are recomputed
from the form and the current map.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from app.errors import SessionClosedError, UnknownFieldError, WrongModeError
from app.field_renderer import RenderedField, render_field
from app.schema import AnswerMap, FieldDefinition, FormDefinition, freeze_answers
from app.visibility import is_empty, is_visible

Submitter = Callable[[str, dict], Awaitable[Any]]


@dataclass(frozen=True)
class DerivedFields:
    interactive: tuple[FieldDefinition, ...]
    visible: tuple[FieldDefinition, ...]
    to_validate: tuple[FieldDefinition, ...]


@dataclass(frozen=True)
class NavigationOutcome:
    moved: bool
    cursor: int
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class SubmitOutcome:
    status: str  # submitted | invalid | failed | ignored
    pending: int = 0
    errors: tuple[str, ...] = ()
    payload: dict | None = field(default=None)

    @property
    def ok(self) -> bool:
        return self.status == "submitted"


def derive_fields(form: FormDefinition, answers: Mapping[str, Any]) -> DerivedFields:
    """Compute the interactive, visible and to-validate field lists."""
    interactive = tuple(f for f in form.fields if f.is_interactive)
    visible = tuple(f for f in form.fields if is_visible(f, answers))
    to_validate = tuple(f for f in visible if f.required and f.is_interactive)
    return DerivedFields(interactive=interactive, visible=visible, to_validate=to_validate)


def is_field_valid(field_def: FieldDefinition, value: Any) -> bool:
    """Required interactive fields must hold a non-empty value."""
    if not field_def.required or field_def.is_static:
        return True
    return not is_empty(value)


def required_message(field_def: FieldDefinition) -> str:
    return f"Please fill in the required field: {field_def.label or field_def.id}"


def pending_message(count: int) -> str:
    return f"Please fill in all required fields ({count} pending)."


class FormSession:
    """One fill-out session of a briefing form."""

    def __init__(
        self,
        form: FormDefinition,
        initial_answers: Mapping[str, Any] | None = None,
    ) -> None:
        self.form = form
        self._answers: AnswerMap = freeze_answers(initial_answers)
        self.cursor = 0
        self.submitted = False
        self.submitting = False
        self.errors: list[str] = []

    # -- Derived state --------------------------------------------------------

    @property
    def answers(self) -> AnswerMap:
        return self._answers

    @property
    def state(self) -> str:
        return "submitted" if self.submitted else "filling"

    @property
    def derived(self) -> DerivedFields:
        return derive_fields(self.form, self._answers)

    @property
    def interactive_fields(self) -> list[FieldDefinition]:
        return list(self.derived.interactive)

    @property
    def visible_fields(self) -> list[FieldDefinition]:
        return list(self.derived.visible)

    @property
    def fields_to_validate(self) -> list[FieldDefinition]:
        return list(self.derived.to_validate)

    @property
    def current_field(self) -> FieldDefinition | None:
        visible = self.visible_fields
        if not self.form.is_sequential or not visible:
            return None
        return visible[min(self.cursor, len(visible) - 1)]

    @property
    def is_last_step(self) -> bool:
        return self.cursor >= len(self.visible_fields) - 1

    @property
    def progress_percent(self) -> int:
        total = len(self.visible_fields)
        if not self.form.is_sequential or total == 0:
            return 0
        return round((self.cursor + 1) / total * 100)

    def rendered_fields(self) -> list[RenderedField]:
        """Descriptors for what is on screen right now."""
        if self.form.is_sequential:
            targets = [self.current_field] if self.current_field else []
        else:
            targets = self.visible_fields
        rendered = []
        for f in targets:
            r = render_field(f, self._answers.get(f.id), self._answers)
            if r is not None:
                rendered.append(r)
        return rendered

    def pending_fields(self) -> list[FieldDefinition]:
        return [
            f for f in self.fields_to_validate
            if not is_field_valid(f, self._answers.get(f.id))
        ]

    def build_payload(self) -> dict:
        """Answers restricted to interactive fields that hold a value."""
        payload = {}
        for f in self.interactive_fields:
            if self._answers.get(f.id) is not None:
                payload[f.id] = self._answers[f.id]
        return payload

    # -- Mutation -------------------------------------------------------------

    def set_field_value(self, field_id: str, value: Any) -> AnswerMap:
        if self.submitted:
            raise SessionClosedError("This briefing has already been submitted.")
        if self.form.get_field(field_id) is None:
            raise UnknownFieldError(field_id)
        updated = dict(self._answers)
        updated[field_id] = value
        self._answers = freeze_answers(updated)
        self._clamp_cursor()
        return self._answers

    def _clamp_cursor(self) -> None:
        last = max(len(self.visible_fields) - 1, 0)
        if self.cursor > last:
            self.cursor = last

    def _require_sequential(self) -> None:
        if not self.form.is_sequential:
            raise WrongModeError("Navigation is only available in sequential mode.")

    def go_next(self) -> NavigationOutcome:
        self._require_sequential()
        current = self.current_field
        if current is not None and not is_field_valid(current, self._answers.get(current.id)):
            self.errors = [required_message(current)]
            return NavigationOutcome(moved=False, cursor=self.cursor, errors=tuple(self.errors))

        self.errors = []
        if self.cursor < len(self.visible_fields) - 1:
            self.cursor += 1
            return NavigationOutcome(moved=True, cursor=self.cursor)
        return NavigationOutcome(moved=False, cursor=self.cursor)

    def go_previous(self) -> NavigationOutcome:
        self._require_sequential()
        self.errors = []
        if self.cursor > 0:
            self.cursor -= 1
            return NavigationOutcome(moved=True, cursor=self.cursor)
        return NavigationOutcome(moved=False, cursor=self.cursor)

    async def submit(self, submitter: Submitter) -> SubmitOutcome:
        """Validate and hand the payload to *submitter*.

        A no-op once submitted or while a previous call is still awaiting
        the submitter. A raised submitter error leaves the session editable.
        """
        if self.submitted or self.submitting:
            return SubmitOutcome(status="ignored")

        pending = self.pending_fields()
        if pending:
            self.errors = [pending_message(len(pending))]
            if self.form.is_sequential:
                visible_ids = [f.id for f in self.visible_fields]
                self.cursor = visible_ids.index(pending[0].id)
            return SubmitOutcome(
                status="invalid", pending=len(pending), errors=tuple(self.errors)
            )

        payload = self.build_payload()
        self.submitting = True
        try:
            await submitter(self.form.id, payload)
        except Exception as exc:
            self.errors = [f"Submission failed: {exc}"]
            return SubmitOutcome(status="failed", errors=tuple(self.errors), payload=payload)
        finally:
            self.submitting = False

        self.submitted = True
        self.errors = []
        return SubmitOutcome(status="submitted", payload=payload)
