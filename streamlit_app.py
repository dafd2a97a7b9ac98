import asyncio, json, os, uuid
import streamlit as st
from sqlmodel import Session

from askedith.config import settings
from askedith.deps import engine, init_db
from askedith.errors import WizardValidationError
from askedith.logging_config import setup_logging
from askedith.services import catalog, tracking, wizard
from askedith.services.delivery import OutgoingEmail, build_dispatcher, unsent_indices
from askedith.services.email_log import log_sends
from askedith.services.export_docx import build_results_doc
from askedith.services.questions import SELECT_ALL, InputKind
from askedith.services.state_store import StateStore

setup_logging(settings.LOG_LEVEL)
init_db()

# ---------- Session ----------
if "wiz" not in st.session_state:
    st.session_state.wiz = wizard.WizardSession(StateStore())
    st.session_state.sid = uuid.uuid4().hex
    st.session_state.sent = {}
wiz: wizard.WizardSession = st.session_state.wiz

def _apply(transition, *args):
    try:
        wiz.apply(transition, *args)
    except WizardValidationError as e:
        st.error(e.message)
        return
    if transition in (wizard.submit_answer, wizard.skip_question):
        with Session(engine) as s:
            wiz.apply(tracking.track_progress, s, st.session_state.sid)
    st.rerun()

def _load_resources():
    with Session(engine) as s:
        catalog.seed_resources(s)
        found = catalog.match_resources(catalog.list_resources(s), wiz.state.answers)
    wiz.apply(wizard.set_resources, found)

# ---------- Inputs ----------
def render_input(q, stored):
    key = f"in_{q.key}"
    if q.kind == InputKind.SINGLE_SELECT:
        idx = q.options.index(stored) if stored in q.options else None
        return st.radio(q.text, q.options, index=idx, key=key)
    if q.kind == InputKind.MULTI_SELECT:
        if key not in st.session_state:
            current = json.loads(stored) if stored else []
            if q.has_select_all and current and len(current) == len(q.options) - 1:
                current = [SELECT_ALL] + current
            st.session_state[key] = current
            for opt in q.options:
                st.session_state[f"{key}_{opt}"] = opt in current

        def on_toggle(opt):
            selection = wizard.toggle_option(q, st.session_state[key], opt, st.session_state[f"{key}_{opt}"])
            st.session_state[key] = selection
            # push the synced selection back into every checkbox
            for o in q.options:
                st.session_state[f"{key}_{o}"] = o in selection

        for opt in q.options:
            st.checkbox(opt, key=f"{key}_{opt}", on_change=on_toggle, args=(opt,))
        return st.session_state[key]
    if q.kind == InputKind.CONTACT:
        current = json.loads(stored) if stored else {}
        return {sf.name: st.text_input(sf.placeholder or sf.name, current.get(sf.name, ""), key=f"{key}_{sf.name}")
                for sf in q.subfields}
    if q.kind == InputKind.FREE_TEXT:
        return st.text_area(q.text, "" if stored == wizard.SKIPPED else (stored or ""), placeholder=q.placeholder,
                            key=key)
    return st.text_input(q.text, stored or "", placeholder=q.placeholder or "", key=key)

# ---------- UI ----------
st.set_page_config(page_title="AskEdith", page_icon="🧭", layout="centered")
st.title("AskEdith Care Navigator")

with st.sidebar:
    st.header("Progress")
    if st.button("Start over"):
        with Session(engine) as s:
            tracking.abandon(s, wiz.state.questionnaire_id, st.session_state.sid)
        wiz.reset()
        st.session_state.sent = {}
        for k in [k for k in st.session_state if k.startswith(("in_", "res_"))]:
            del st.session_state[k]
        st.rerun()

q = wiz.question
if q is not None:
    total = len(wizard.QUESTIONS)
    st.progress((wiz.state.current_question - 1) / total, text=f"Question {wiz.state.current_question} of {total}")
    if q.subtext:
        st.caption(q.subtext)
    if q.kind in (InputKind.MULTI_SELECT, InputKind.CONTACT):
        st.subheader(q.text)
    answer = render_input(q, wiz.state.answers.get(q.key))

    c1, c2, c3 = st.columns(3)
    if c1.button("Back", disabled=wiz.state.current_question == 1):
        _apply(wizard.go_back)
    if q.kind == InputKind.FREE_TEXT and c2.button("Skip"):
        _apply(wizard.skip_question)
    if c3.button("Next", type="primary"):
        _apply(wizard.submit_answer, answer)
else:
    st.subheader("Your matched resources")
    if not wiz.state.resources:
        _load_resources()
    chosen = []
    for r in wiz.state.resources:
        label = f"**{r.name}** · {r.category} · {r.email}"
        if st.checkbox(label, value=r.id in wiz.state.selected_resource_ids, key=f"res_{r.id}"):
            chosen.append(r.id)
    if chosen != wiz.state.selected_resource_ids:
        wiz.apply(wizard.select_resources, chosen)

    c1, c2 = st.columns(2)
    if c1.button("Back to questions"):
        _apply(wizard.go_back)
    if c2.button("Preview emails", type="primary", disabled=not chosen):
        wiz.apply(wizard.prepare_emails)
        st.session_state.sent = {}

    by_email = {r.email: r for r in wizard.selected_resources(wiz.state)}
    for e in wiz.state.emails_to_send:
        with st.expander(e.subject):
            st.text(f"To: {e.to}")
            st.text(e.body)

    reply_to = json.loads(wiz.state.answers.get("q14") or "{}").get("email")
    outgoing = [OutgoingEmail(to=e.to, subject=e.subject, body=e.body, reply_to=reply_to,
                              category=by_email[e.to].category if e.to in by_email else "General")
                for e in wiz.state.emails_to_send]
    sent = st.session_state.sent

    def deliver(indices):
        batch = asyncio.run(build_dispatcher().send_batch([outgoing[i] for i in indices]))
        with Session(engine) as s:
            log_sends(s, zip([outgoing[i] for i in indices], batch.results))
        for i, r in zip(indices, batch.results):
            sent[i] = r
        return batch

    pending = unsent_indices(sent, len(outgoing))
    if pending and st.button("Send all" if len(pending) == len(outgoing) else f"Send remaining {len(pending)}"):
        deliver(pending)
        st.rerun()

    for i, e in enumerate(outgoing):
        r = sent.get(i)
        if r is None:
            continue
        if r.success:
            st.success(f"{e.to}: sent via {r.transport}")
        else:
            st.error(f"{e.to}: {r.error}")
            if st.button("Retry", key=f"retry_{i}"):
                deliver([i])
                st.rerun()

    if st.button("Build printable summary"):
        path = build_results_doc(wiz.state, job_id=str(uuid.uuid4()))
        with open(path, "rb") as f:
            st.download_button("Download summary (.docx)", data=f.read(), file_name=os.path.basename(path),
                               mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document")
