"""Persistence for briefing forms, responses and uploaded files.

Forms and responses are stored as one JSON file each under
data/briefings/forms/ and data/briefings/responses/. Uploaded files are
written to data/briefings/uploads/. Also provides the default submission
collaborator used by fill-out sessions: it stores the response and sends
the new-briefing Telegram notification.
"""

from __future__ import annotations

import asyncio
import json
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import sys as _sys
_sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))
from shared.telegram_notifier import escape_markdown, notify_client_action

from app.audit_log import log_action
from app.errors import InvalidFormError
from app.form_editor import validate_form_definition
from app.form_renderer import Submitter
from app.schema import BriefingResponse, FormDefinition

DATA_DIR = Path(__file__).resolve().parent.parent / "data" / "briefings"
TOOL_NAME = "briefing-forms"


def _forms_dir() -> Path:
    path = DATA_DIR / "forms"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _responses_dir() -> Path:
    path = DATA_DIR / "responses"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _uploads_dir() -> Path:
    path = DATA_DIR / "uploads"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_record_id() -> str:
    """Generate a unique ID for a form or response."""
    return str(uuid.uuid4())


def _read_json(path: Path) -> dict | None:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return None


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------

def list_forms() -> list[FormDefinition]:
    """Return all saved forms, most recently updated first."""
    forms: list[FormDefinition] = []
    for p in _forms_dir().glob("*.json"):
        data = _read_json(p)
        if data is None:
            continue
        try:
            forms.append(FormDefinition.from_dict(data))
        except (KeyError, ValueError):
            continue
    forms.sort(key=lambda f: f.updated_at or f.created_at, reverse=True)
    return forms


def load_form(form_id: str) -> FormDefinition | None:
    data = _read_json(_forms_dir() / f"{form_id}.json")
    if data is None:
        return None
    return FormDefinition.from_dict(data)


def save_form(form: FormDefinition) -> FormDefinition:
    """Validate and save a form, creating it when it has no id yet.

    Raises:
        InvalidFormError: if the form fails authoring-time validation.
    """
    problems = validate_form_definition(form)
    if problems:
        raise InvalidFormError(problems)

    now = _now()
    if not form.id:
        form.id = new_record_id()
    existing = _read_json(_forms_dir() / f"{form.id}.json")
    form.created_at = (existing or {}).get("created_at") or form.created_at or now
    form.updated_at = now

    path = _forms_dir() / f"{form.id}.json"
    path.write_text(json.dumps(form.to_dict(), indent=2, ensure_ascii=False))
    log_action("form_saved", form_id=form.id, details={"title": form.title})
    return form


def duplicate_form(form_id: str) -> FormDefinition | None:
    form = load_form(form_id)
    if form is None:
        return None
    form.id = ""
    form.title = f"{form.title} (Copy)"
    form.created_at = ""
    return save_form(form)


def delete_form(form_id: str) -> bool:
    """Delete a form and every response submitted to it."""
    path = _forms_dir() / f"{form_id}.json"
    if not path.exists():
        return False
    path.unlink()
    for response in list_responses(form_id):
        delete_response(response.id)
    log_action("form_deleted", form_id=form_id)
    return True


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

def add_response(
    form_id: str,
    answers: dict[str, Any],
    client_id: str = "",
) -> BriefingResponse:
    response = BriefingResponse(
        id=new_record_id(),
        form_id=form_id,
        answers=dict(answers),
        client_id=client_id,
        submitted_at=_now(),
    )
    path = _responses_dir() / f"{response.id}.json"
    path.write_text(json.dumps(response.to_dict(), indent=2, ensure_ascii=False, default=str))
    log_action("response_submitted", form_id=form_id, record_id=response.id)
    return response


def list_responses(form_id: str | None = None) -> list[BriefingResponse]:
    """Return responses (optionally for one form), newest first."""
    responses: list[BriefingResponse] = []
    for p in _responses_dir().glob("*.json"):
        data = _read_json(p)
        if data is None:
            continue
        response = BriefingResponse.from_dict(data)
        if form_id is None or response.form_id == form_id:
            responses.append(response)
    responses.sort(key=lambda r: r.submitted_at, reverse=True)
    return responses


def load_response(response_id: str) -> BriefingResponse | None:
    data = _read_json(_responses_dir() / f"{response_id}.json")
    if data is None:
        return None
    return BriefingResponse.from_dict(data)


def delete_response(response_id: str) -> bool:
    path = _responses_dir() / f"{response_id}.json"
    if not path.exists():
        return False
    path.unlink()
    log_action("response_deleted", record_id=response_id)
    return True


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

def _safe_filename(filename: str) -> str:
    name = Path(filename or "upload").name
    return re.sub(r"[^A-Za-z0-9._-]", "_", name) or "upload"


def save_upload(filename: str, content: bytes, content_type: str = "") -> dict:
    """Store an uploaded file and return its stored-location descriptor."""
    safe = _safe_filename(filename)
    stored = _uploads_dir() / f"{uuid.uuid4().hex[:12]}_{safe}"
    stored.write_bytes(content)
    return {
        "name": filename,
        "path": str(stored.relative_to(DATA_DIR)),
        "size": len(content),
        "content_type": content_type,
    }


# ---------------------------------------------------------------------------
# Submission collaborator
# ---------------------------------------------------------------------------

def notify_new_response(form: FormDefinition | None, response: BriefingResponse) -> dict:
    """Send the "new briefing" notification; failures are audited, not raised."""
    if form is None:
        return {"success": False, "skipped": True}
    client_name = response.client_id or form.client_id or "Public"
    result = notify_client_action(
        TOOL_NAME,
        client_name,
        "NEW BRIEFING",
        form.title,
        f"New briefing received: *{escape_markdown(form.title)}*",
    )
    if not result.get("success") and not result.get("skipped"):
        log_action(
            "notification_failed",
            form_id=form.id,
            record_id=response.id,
            details={"error": result.get("error", "")},
        )
    return result


def make_store_submitter(client_id: str = "", notify: bool = True) -> Submitter:
    """Build the submitter FormSession.submit hands its payload to."""

    async def submit(form_id: str, answers: dict) -> BriefingResponse:
        # Blocking file and network I/O stays off the event loop
        response = await asyncio.to_thread(add_response, form_id, answers, client_id)
        if notify:
            form = await asyncio.to_thread(load_form, form_id)
            await asyncio.to_thread(notify_new_response, form, response)
        return response

    return submit
