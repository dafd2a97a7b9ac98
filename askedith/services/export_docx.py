from docx import Document
from askedith.config import settings
from askedith.services.answers import render_answer
from askedith.services.questions import QUESTIONS
from askedith.services.wizard import WizardState, selected_resources
import os

def _h(doc, text, lvl=1): doc.add_heading(text, level=lvl)
def _p(doc, text): doc.add_paragraph(text)
def _bullets(doc, items):
    for it in items: doc.add_paragraph(it, style="List Bullet")

def _resource_lines(r):
    lines = []
    if r.company_name and r.company_name != r.name: lines.append(r.company_name)
    address = ", ".join(x for x in [r.address, r.city, r.zip_code] if x)
    if address: lines.append(f"Address: {address}")
    lines.append(f"Email: {r.email}")
    if r.phone: lines.append(f"Phone: {r.phone}")
    if r.website: lines.append(f"Website: {r.website}")
    if r.hours: lines.append(f"Hours: {r.hours}")
    return lines

def build_results_doc(state: WizardState, job_id: str, export_dir: str | None = None) -> str:
    """Printable summary of the questionnaire and the chosen resources."""
    export_dir = export_dir or settings.EXPORT_DIR
    os.makedirs(export_dir, exist_ok=True)
    doc = Document()
    _h(doc, "AskEdith Care Plan Summary", 0)

    _h(doc, "Your Answers", 1)
    for q in QUESTIONS:
        _h(doc, q.text, 2)
        _p(doc, render_answer(q, state.answers.get(q.key)))

    _h(doc, "Selected Resources", 1)
    chosen = selected_resources(state)
    if not chosen:
        _p(doc, "No resources selected.")
    for r in chosen:
        _h(doc, f"{r.name} ({r.category})", 2)
        if r.description: _p(doc, r.description)
        _bullets(doc, _resource_lines(r))

    if state.emails_to_send:
        _h(doc, "Outreach Emails", 1)
        for e in state.emails_to_send:
            _h(doc, e.subject, 2)
            _p(doc, f"To: {e.to}")
            _p(doc, e.body)

    outpath = os.path.join(export_dir, f"{job_id}.docx")
    doc.save(outpath)
    return outpath
