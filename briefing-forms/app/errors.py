"""Exceptions raised by the briefing form engine.

Validation problems, dropdown repairs, unknown field kinds and failed
submissions are handled where they occur and never raised. These exceptions
only signal misuse of a session or an invalid form definition.
"""

from __future__ import annotations


class BriefingError(Exception):
    """Base class for briefing form errors."""


class WrongModeError(BriefingError):
    """Navigation was requested on a form that is not in sequential mode."""


class SessionClosedError(BriefingError):
    """The session has already been submitted and accepts no more edits."""


class UnknownFieldError(BriefingError):
    """A field id does not exist in the form definition."""

    def __init__(self, field_id: str) -> None:
        super().__init__(f"Unknown field: {field_id}")
        self.field_id = field_id


class InvalidFormError(BriefingError):
    """A form definition failed authoring-time validation."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = problems
