"""FastAPI backend for the Briefing Forms tool.

Provides endpoints for authoring briefing forms and templates, computing
which fields are visible for a given set of answers, submitting responses
through a server-side fill-out session, browsing responses, and uploading
files referenced by upload fields.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, File, HTTPException, UploadFile
from pydantic import BaseModel, Field

from app.errors import InvalidFormError
from app.field_renderer import render_field
from app.form_editor import (
    FIELD_KIND_LABELS,
    supports_options,
    supports_placeholder,
    supports_required,
)
from app.form_renderer import FormSession, derive_fields
from app.form_store import (
    delete_form,
    delete_response,
    duplicate_form,
    list_forms,
    list_responses,
    load_form,
    make_store_submitter,
    save_form,
    save_upload,
)
from app.schema import (
    BriefingResponse,
    BriefingTemplate,
    FieldDefinition,
    FormDefinition,
    freeze_answers,
    parse_display_mode,
)
from app.templates_store import delete_template, form_from_template, get_template, get_templates, save_template

app = FastAPI(title="Briefing Forms API")


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------

class OptionModel(BaseModel):
    id: str
    value: str = ""
    label: str = ""


class RuleModel(BaseModel):
    field_id: str
    expected: list[str] = Field(default_factory=list)


class FieldModel(BaseModel):
    """One field as authored in the editor."""

    id: str
    kind: str
    label: str = ""
    placeholder: str = ""
    required: bool = False
    options: list[OptionModel] = Field(default_factory=list)
    rule: RuleModel | None = None


class FormPayload(BaseModel):
    """Payload for creating or updating a briefing form."""

    title: str
    description: str = ""
    display_mode: str = "page"
    client_id: str = ""
    is_public: bool = True
    fields: list[FieldModel] = Field(default_factory=list)


class AnswersRequest(BaseModel):
    """Payload carrying an in-progress or finished answer map."""

    answers: dict[str, Any] = Field(default_factory=dict)
    client_id: str = ""


class TemplatePayload(BaseModel):
    id: str = ""
    name: str
    description: str = ""
    blocks: list[FieldModel] = Field(default_factory=list)


class FromTemplateRequest(BaseModel):
    title: str = ""
    display_mode: str = "page"
    client_id: str = ""


def _form_from_payload(form_id: str, payload: FormPayload) -> FormDefinition:
    data = payload.model_dump()
    data["id"] = form_id
    try:
        return FormDefinition.from_dict(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _save_or_400(form: FormDefinition) -> dict[str, Any]:
    try:
        return save_form(form).to_dict()
    except InvalidFormError as e:
        raise HTTPException(status_code=400, detail={"problems": e.problems}) from e


def _get_form_or_404(form_id: str) -> FormDefinition:
    form = load_form(form_id)
    if form is None:
        raise HTTPException(status_code=404, detail=f"Form not found: {form_id}")
    return form


# ---------------------------------------------------------------------------
# Field kinds
# ---------------------------------------------------------------------------

@app.get("/api/field-kinds")
def list_field_kinds() -> list[dict[str, Any]]:
    """List every field kind with what the editor should offer for it."""
    return [
        {
            "kind": kind.value,
            "label": label,
            "supports_options": supports_options(kind),
            "supports_placeholder": supports_placeholder(kind),
            "supports_required": supports_required(kind),
        }
        for kind, label in FIELD_KIND_LABELS.items()
    ]


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------

@app.get("/api/forms")
def get_forms() -> list[dict[str, Any]]:
    """List all briefing forms, most recently updated first."""
    return [
        {
            "id": f.id,
            "title": f.title,
            "display_mode": f.display_mode.value,
            "client_id": f.client_id,
            "field_count": len(f.fields),
            "updated_at": f.updated_at,
        }
        for f in list_forms()
    ]


@app.post("/api/forms")
def create_form(payload: FormPayload) -> dict[str, Any]:
    """Create a new briefing form."""
    return _save_or_400(_form_from_payload("", payload))


@app.get("/api/forms/{form_id}")
def get_form(form_id: str) -> dict[str, Any]:
    return _get_form_or_404(form_id).to_dict()


@app.put("/api/forms/{form_id}")
def update_form(form_id: str, payload: FormPayload) -> dict[str, Any]:
    """Replace an existing form's definition."""
    _get_form_or_404(form_id)
    return _save_or_400(_form_from_payload(form_id, payload))


@app.delete("/api/forms/{form_id}")
def remove_form(form_id: str) -> dict[str, Any]:
    """Delete a form and all of its responses."""
    if not delete_form(form_id):
        raise HTTPException(status_code=404, detail=f"Form not found: {form_id}")
    return {"deleted": True, "id": form_id}


@app.post("/api/forms/{form_id}/duplicate")
def copy_form(form_id: str) -> dict[str, Any]:
    form = duplicate_form(form_id)
    if form is None:
        raise HTTPException(status_code=404, detail=f"Form not found: {form_id}")
    return form.to_dict()


@app.post("/api/forms/{form_id}/visible-fields")
def get_visible_fields(form_id: str, request: AnswersRequest) -> dict[str, Any]:
    """Compute which fields are visible for the given answers.

    Returns the visible field ids, rendered descriptors for each visible
    field, and the ids of required visible fields that are still empty.
    """
    form = _get_form_or_404(form_id)
    answers = freeze_answers(request.answers)
    derived = derive_fields(form, answers)
    rendered = [render_field(f, answers.get(f.id), answers) for f in derived.visible]
    session = FormSession(form, answers)
    return {
        "form_id": form_id,
        "visible_field_ids": [f.id for f in derived.visible],
        "fields": [r.to_dict() for r in rendered if r is not None],
        "pending": [f.id for f in session.pending_fields()],
    }


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

@app.post("/api/forms/{form_id}/responses")
async def submit_response(form_id: str, request: AnswersRequest) -> dict[str, Any]:
    """Validate and store a finished answer map.

    Runs the same session logic as the dashboard: hidden fields are not
    validated, static fields and unknown keys are dropped from the payload.
    """
    form = _get_form_or_404(form_id)
    if not form.is_public:
        raise HTTPException(status_code=403, detail="This briefing is not accepting responses.")

    stored: list[BriefingResponse] = []
    store_submitter = make_store_submitter(client_id=request.client_id or form.client_id)

    async def submitter(fid: str, answers: dict) -> None:
        stored.append(await store_submitter(fid, answers))

    session = FormSession(form, request.answers)
    outcome = await session.submit(submitter)

    if outcome.status == "invalid":
        raise HTTPException(
            status_code=400,
            detail={
                "message": outcome.errors[0],
                "pending": outcome.pending,
                "fields": [f.id for f in session.pending_fields()],
            },
        )
    if outcome.status == "failed":
        raise HTTPException(status_code=502, detail=outcome.errors[0])

    return stored[0].to_dict()


@app.get("/api/forms/{form_id}/responses")
def get_form_responses(form_id: str) -> list[dict[str, Any]]:
    _get_form_or_404(form_id)
    return [r.to_dict() for r in list_responses(form_id)]


@app.get("/api/responses")
def get_all_responses() -> list[dict[str, Any]]:
    return [r.to_dict() for r in list_responses()]


@app.delete("/api/responses/{response_id}")
def remove_response(response_id: str) -> dict[str, Any]:
    if not delete_response(response_id):
        raise HTTPException(status_code=404, detail=f"Response not found: {response_id}")
    return {"deleted": True, "id": response_id}


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

@app.get("/api/templates")
def list_templates() -> list[dict[str, Any]]:
    return [t.to_dict() for t in get_templates()]


@app.post("/api/templates")
def create_template(payload: TemplatePayload) -> dict[str, Any]:
    """Create or replace a template."""
    template = BriefingTemplate(
        id=payload.id,
        name=payload.name,
        description=payload.description,
        blocks=[FieldDefinition.from_dict(b.model_dump()) for b in payload.blocks],
    )
    return save_template(template).to_dict()


@app.delete("/api/templates/{template_id}")
def remove_template(template_id: str) -> dict[str, Any]:
    if not delete_template(template_id):
        raise HTTPException(status_code=404, detail=f"Template not found: {template_id}")
    return {"deleted": True, "id": template_id}


@app.post("/api/templates/{template_id}/forms")
def create_form_from_template(template_id: str, request: FromTemplateRequest) -> dict[str, Any]:
    """Start a new form from a template and save it."""
    template = get_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template not found: {template_id}")
    try:
        mode = parse_display_mode(request.display_mode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    form = form_from_template(template, request.title, mode, request.client_id)
    return _save_or_400(form)


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

@app.post("/api/uploads")
async def upload_file(file: UploadFile = File(...)) -> dict[str, Any]:
    """Store a file selected in an upload field and return where it lives."""
    content = await file.read()
    return save_upload(file.filename or "upload", content, file.content_type or "")
