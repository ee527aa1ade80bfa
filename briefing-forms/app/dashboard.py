"""Briefing Forms -- Streamlit dashboard.

Two views: a client-facing fill-out page (open with ``?form=<id>``) that
renders a briefing in page or one-question-per-screen mode, and a staff view
for authoring forms from templates and reading submitted responses.
"""

from __future__ import annotations

import asyncio
import html as html_mod
import sys
from pathlib import Path
from typing import Any

import streamlit as st

from app.audit_log import get_entries_for_form
from app.errors import InvalidFormError
from app.field_renderer import (
    RenderedField,
    describe_files,
    normalize_date_value,
    parse_date_value,
    stored_value,
    toggle_option,
)
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
    supports_options,
    supports_placeholder,
    supports_required,
    update_field,
)
from app.form_renderer import FormSession
from app.form_store import (
    delete_response,
    list_forms,
    list_responses,
    load_form,
    make_store_submitter,
    save_form,
    save_upload,
)
from app.formatting import answered_fields
from app.schema import DisplayMode, FieldKind, FormDefinition
from app.templates_store import form_from_template, get_templates

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))
from shared.config_store import get_config_value, set_config_value

TOOL_NAME = "briefing-forms"

_ICON_PREFIX = {
    "mail": ":material/mail: ",
    "user": ":material/person: ",
    "link": ":material/link: ",
}

# -- Page config --------------------------------------------------------------

st.set_page_config(
    page_title="Briefing Forms",
    layout="centered",
    initial_sidebar_state="collapsed",
)

st.markdown(
    """
<style>
#MainMenu, footer,
div[data-testid="stToolbar"] { display: none !important; }

.briefing-title {
    font-size: 1.9rem;
    font-weight: 700;
    color: #1a2744;
    text-align: center;
    margin-bottom: 0.2rem;
}
.briefing-desc {
    text-align: center;
    color: #5a6a85;
    margin-bottom: 1.4rem;
}
.field-warning {
    font-size: 0.78rem;
    color: #c62828;
    margin-top: -6px;
}
</style>
""",
    unsafe_allow_html=True,
)


# -- Widgets ------------------------------------------------------------------

def _label(rf: RenderedField) -> str:
    label = _ICON_PREFIX.get(rf.icon, "") + (rf.label or rf.field_id)
    return f"{label} *" if rf.required else label


def _render_widget(rf: RenderedField, key: str) -> Any:
    """Draw one rendered field and return the value the user left in it."""
    if rf.widget == "heading":
        st.subheader(rf.label)
        return None
    if rf.widget == "caption":
        st.caption(rf.label)
        return None
    if rf.widget == "error":
        st.error(rf.error)
        return None

    label = _label(rf)
    if rf.widget == "text_input":
        return st.text_input(label, value=rf.value, placeholder=rf.placeholder, key=key)
    if rf.widget == "text_area":
        return st.text_area(label, value=rf.value, placeholder=rf.placeholder, key=key, height=140)
    if rf.widget == "number_input":
        current = None
        if rf.value not in ("", None):
            try:
                current = float(rf.value)
            except (TypeError, ValueError):
                current = None
        return st.number_input(label, value=current, placeholder=rf.placeholder, key=key)
    if rf.widget == "date_input":
        picked = st.date_input(label, value=parse_date_value(rf.value), format="DD/MM/YYYY", key=key)
        return normalize_date_value(picked)
    if rf.widget == "radio":
        values = [v for v, _ in rf.choices]
        labels = dict(rf.choices)
        index = values.index(rf.value) if rf.value in values else None
        return st.radio(label, values, index=index, format_func=labels.get, key=key)
    if rf.widget == "selectbox":
        values = [v for v, _ in rf.choices]
        labels = dict(rf.choices)
        index = values.index(rf.value) if rf.value in values else None
        return st.selectbox(
            label, values, index=index, format_func=labels.get,
            placeholder=rf.placeholder, key=key,
        )
    if rf.widget == "checkbox_group":
        st.markdown(f"**{label}**")
        selected = list(rf.value)
        for value, option_label in rf.choices:
            checked = st.checkbox(option_label, value=value in selected, key=f"{key}_{value}")
            selected = toggle_option(selected, value, checked)
        if rf.warning and not selected:
            st.markdown(
                f'<div class="field-warning">{html_mod.escape(rf.warning)}</div>',
                unsafe_allow_html=True,
            )
        return selected
    if rf.widget == "file_uploader":
        files = st.file_uploader(label, accept_multiple_files=True, key=key)
        if not files:
            return rf.value or None
        if rf.value and len(rf.value) == len(files):
            return rf.value
        st.caption(f"{len(files)} file(s) selected.")
        return describe_files(
            save_upload(f.name, f.getvalue(), f.type or "") for f in files
        )
    st.error(f"Unknown widget: {rf.widget}")
    return None


def _draw_field(session: FormSession, rf: RenderedField) -> None:
    new_value = _render_widget(rf, key=f"f_{session.form.id}_{rf.field_id}")
    if not rf.interactive:
        return
    if new_value != session.answers.get(rf.field_id) and not (
        new_value in ("", None, []) and session.answers.get(rf.field_id) is None
    ):
        session.set_field_value(rf.field_id, new_value)
        st.rerun()


# -- Fill-out view ------------------------------------------------------------

def _get_session(form: FormDefinition) -> FormSession:
    key = f"session_{form.id}"
    if key not in st.session_state:
        st.session_state[key] = FormSession(form)
    return st.session_state[key]


def _submit(session: FormSession) -> None:
    submitter = make_store_submitter(client_id=session.form.client_id)
    asyncio.run(session.submit(submitter))
    st.rerun()


def render_fill_out(form: FormDefinition) -> None:
    session = _get_session(form)

    st.markdown(f'<div class="briefing-title">{html_mod.escape(form.title)}</div>', unsafe_allow_html=True)
    if form.description:
        st.markdown(
            f'<div class="briefing-desc">{html_mod.escape(form.description)}</div>',
            unsafe_allow_html=True,
        )

    if session.submitted:
        company = get_config_value(TOOL_NAME, "company_name", "") or "our team"
        st.success("Briefing sent successfully!")
        st.markdown(f"Thank you for your answers. {html_mod.escape(company)} will be in touch soon.")
        return

    for err in session.errors:
        st.error(err)

    if not form.is_sequential:
        for rf in session.rendered_fields():
            _draw_field(session, rf)
        st.divider()
        if st.button("Send answers", type="primary", disabled=session.submitting):
            _submit(session)
        return

    total = len(session.visible_fields)
    if total == 0:
        st.info("No fields to show.")
        return
    st.progress(
        session.progress_percent / 100,
        text=f"Question {session.cursor + 1} of {total}",
    )
    with st.container(border=True):
        for rf in session.rendered_fields():
            _draw_field(session, rf)

    back_col, next_col = st.columns(2)
    with back_col:
        if st.button("Back", disabled=session.cursor == 0, use_container_width=True):
            session.go_previous()
            st.rerun()
    with next_col:
        if session.is_last_step:
            if st.button("Send answers", type="primary", use_container_width=True):
                _submit(session)
        elif st.button("Next", type="primary", use_container_width=True):
            session.go_next()
            st.rerun()


# -- Staff view: editor -------------------------------------------------------

def _edit_fields(form: FormDefinition) -> None:
    fields = form.fields
    kinds = list(FIELD_KIND_LABELS)

    for i, f in enumerate(fields):
        title = f"{i + 1}. {f.label or '(no label)'} · {FIELD_KIND_LABELS.get(f.kind, f.kind)}"
        with st.expander(title):
            kind = st.selectbox(
                "Field type", kinds,
                index=kinds.index(f.kind) if f.kind in kinds else 0,
                format_func=FIELD_KIND_LABELS.get, key=f"kind_{f.id}",
            )
            label = st.text_input("Label / question", value=f.label, key=f"label_{f.id}")
            changes: dict[str, Any] = {}
            if kind != f.kind:
                changes["kind"] = FieldKind(kind)
            if label != f.label:
                changes["label"] = label
            if supports_placeholder(kind):
                placeholder = st.text_input("Placeholder", value=f.placeholder, key=f"ph_{f.id}")
                if placeholder != f.placeholder:
                    changes["placeholder"] = placeholder
            if supports_required(kind):
                required = st.toggle("Required", value=f.required, key=f"req_{f.id}")
                if required != f.required:
                    changes["required"] = required
            if changes:
                form.fields = update_field(fields, i, **changes)
                st.rerun()

            if supports_options(kind):
                st.markdown("**Options**")
                for o in f.options:
                    opt_col, del_col = st.columns([5, 1])
                    new_label = opt_col.text_input(
                        "Option", value=o.label, key=f"opt_{f.id}_{o.id}",
                        label_visibility="collapsed",
                    )
                    if new_label != o.label:
                        form.fields = update_field(fields, i, options=rename_option(f, o.id, new_label).options)
                        st.rerun()
                    if del_col.button("✕", key=f"optdel_{f.id}_{o.id}"):
                        form.fields = update_field(fields, i, options=remove_option(f, o.id).options)
                        st.rerun()
                if st.button("Add option", key=f"optadd_{f.id}"):
                    form.fields = update_field(fields, i, options=add_option(f).options)
                    st.rerun()

            candidates = condition_candidates(fields, f)
            has_rule = st.toggle(
                "Show only when another answer matches",
                value=f.rule is not None, key=f"cond_{f.id}",
                disabled=not candidates,
            )
            if has_rule and f.rule is None:
                form.fields = enable_condition(fields, i)
                st.rerun()
            elif not has_rule and f.rule is not None:
                form.fields = disable_condition(fields, i)
                st.rerun()
            elif f.rule is not None:
                ids = [c.id for c in candidates]
                target_id = st.selectbox(
                    "Depends on", ids,
                    index=ids.index(f.rule.field_id) if f.rule.field_id in ids else 0,
                    format_func=lambda fid: next(c.label for c in candidates if c.id == fid),
                    key=f"condfield_{f.id}",
                )
                target = next(c for c in candidates if c.id == target_id)
                values = [stored_value(target, o) for o in target.options]
                expected = st.multiselect(
                    "Expected answers", values,
                    default=[v for v in f.rule.expected if v in values],
                    key=f"condvals_{f.id}",
                )
                if target_id != f.rule.field_id or tuple(expected) != f.rule.expected:
                    form.fields = set_condition(fields, i, target_id, expected)
                    st.rerun()

            up, down, dup, rm = st.columns(4)
            if up.button("Up", key=f"up_{f.id}", disabled=i == 0):
                form.fields = move_field(fields, i, i - 1)
                st.rerun()
            if down.button("Down", key=f"down_{f.id}", disabled=i == len(fields) - 1):
                form.fields = move_field(fields, i, i + 1)
                st.rerun()
            if dup.button("Duplicate", key=f"dup_{f.id}"):
                form.fields = duplicate_field(fields, i)
                st.rerun()
            if rm.button("Delete", key=f"del_{f.id}"):
                form.fields = delete_field(fields, i)
                st.rerun()

    add_q, add_s = st.columns(2)
    if add_q.button("Add question", use_container_width=True):
        form.fields = add_question(form.fields)
        st.rerun()
    if add_s.button("Add section", use_container_width=True):
        form.fields = add_section(form.fields)
        st.rerun()


def render_editor() -> None:
    forms = list_forms()
    templates = get_templates()

    with st.sidebar:
        st.markdown("#### Briefings")
        choices = ["(new)"] + [f.id for f in forms]
        titles = {f.id: f.title for f in forms}
        selected = st.selectbox(
            "Form", choices, format_func=lambda fid: titles.get(fid, "New briefing"),
        )
        if selected == "(new)":
            tpl_ids = [""] + [t.id for t in templates]
            tpl_names = {t.id: t.name for t in templates}
            tpl = st.selectbox(
                "Start from template", tpl_ids,
                format_func=lambda tid: tpl_names.get(tid, "Blank"),
            )
        else:
            tpl = ""

        with st.expander("Settings"):
            company = st.text_input(
                "Company name on the thank-you screen",
                value=get_config_value(TOOL_NAME, "company_name", ""),
            )
            if st.button("Save settings"):
                set_config_value(TOOL_NAME, "company_name", company.strip())
                st.toast("Settings saved.")

    draft_key = f"draft_{selected}_{tpl}"
    if draft_key not in st.session_state:
        if selected != "(new)":
            st.session_state[draft_key] = load_form(selected)
        elif tpl:
            st.session_state[draft_key] = form_from_template(next(t for t in templates if t.id == tpl))
        else:
            st.session_state[draft_key] = FormDefinition(id="", title="", fields=add_question([]))
    form: FormDefinition = st.session_state[draft_key]

    form.title = st.text_input("Briefing title", value=form.title)
    form.description = st.text_area("Description (optional)", value=form.description, height=80)
    modes = [DisplayMode.PAGE, DisplayMode.SEQUENTIAL]
    form.display_mode = st.radio(
        "Display mode", modes, index=modes.index(form.display_mode), horizontal=True,
        format_func=lambda m: "Single page" if m is DisplayMode.PAGE else "One question at a time",
    )
    form.client_id = st.text_input("Client (optional)", value=form.client_id)

    st.markdown("### Fields")
    _edit_fields(form)

    st.divider()
    if st.button("Save briefing", type="primary"):
        try:
            saved = save_form(form)
        except InvalidFormError as e:
            for problem in e.problems:
                st.error(problem)
        else:
            st.success(f"Saved. Share link: ?form={saved.id}")

    if form.id:
        render_responses(form)
        render_activity(form)


def render_responses(form: FormDefinition) -> None:
    responses = list_responses(form.id)
    st.markdown(f"### Responses ({len(responses)})")
    for r in responses:
        with st.expander(f"{r.submitted_at[:16].replace('T', ' ')} · {r.client_id or 'Public'}"):
            for field_def, answer in answered_fields(form, r):
                st.markdown(f"**{html_mod.escape(field_def.label)}**  \n{html_mod.escape(answer)}")
            if st.button("Delete response", key=f"rdel_{r.id}"):
                delete_response(r.id)
                st.rerun()



def render_activity(form: FormDefinition) -> None:
    entries = get_entries_for_form(form.id, limit=20)
    if not entries:
        return
    with st.expander(f"Activity ({len(entries)})"):
        for e in entries:
            st.caption(f"{e.timestamp[:16].replace('T', ' ')} · {e.action.replace('_', ' ')}")


# -- Routing ------------------------------------------------------------------

_form_id = st.query_params.get("form")
if _form_id:
    _form = load_form(_form_id)
    if _form is None or not _form.is_public:
        st.error("Form not found. The link is invalid or the briefing was disabled.")
    else:
        render_fill_out(_form)
else:
    render_editor()
