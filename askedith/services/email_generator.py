from typing import Dict, List
from pydantic import BaseModel
from askedith.services.answers import NOT_SPECIFIED, SKIPPED, contact_info, render_answer
from askedith.services.catalog import ResourceRecord
from askedith.services.questions import QUESTIONS, QuestionSpec

# semantic slot -> question key
ANSWER_KEYS = {
    "first_name": "q1",
    "relationship": "q3",
    "living_situation": "q4",
    "primary_concern": "q5",
    "budget": "q7",
    "timeline": "q8",
    "contact": "q14",
}

_BY_KEY: Dict[str, QuestionSpec] = {q.key: q for q in QUESTIONS}

class EmailTemplate(BaseModel):
    to: str
    subject: str
    body: str

def _slot(answers: Dict[str, str], slot: str) -> str:
    key = ANSWER_KEYS[slot]
    return render_answer(_BY_KEY[key], answers.get(key))

def _relationship(answers: Dict[str, str]) -> str:
    value = answers.get(ANSWER_KEYS["relationship"])
    if not value or value == SKIPPED:
        return NOT_SPECIFIED
    return value.lower()

def _signature(answers: Dict[str, str]) -> str:
    first = answers.get(ANSWER_KEYS["first_name"]) or ""
    if first == SKIPPED:
        first = ""
    last = contact_info(answers, ANSWER_KEYS["contact"]).get("lastname", "")
    name = " ".join(p for p in (first.strip(), last.strip()) if p)
    return name or NOT_SPECIFIED

def generate_subject(resource: ResourceRecord, answers: Dict[str, str]) -> str:
    return f"Seeking {resource.category} help for my {_relationship(answers)}"

def generate_email_body(resource: ResourceRecord, answers: Dict[str, str]) -> str:
    return (
        f"Hi {resource.name},\n"
        f"\n"
        f"I'm looking after my {_relationship(answers)} and, based on the following details,\n"
        f"I think your {resource.category} services might help.\n"
        f"\n"
        f"Quick snapshot from your intake:\n"
        f"• Living situation: {_slot(answers, 'living_situation')}\n"
        f"• Primary concern: {_slot(answers, 'primary_concern')}\n"
        f"• Budget thoughts: {_slot(answers, 'budget')}\n"
        f"• Timeline: {_slot(answers, 'timeline')}\n"
        f"\n"
        f"Could we schedule a brief call?\n"
        f"\n"
        f"Thank you!\n"
        f"{_signature(answers)}"
    )

def generate_email(resource: ResourceRecord, answers: Dict[str, str]) -> EmailTemplate:
    return EmailTemplate(
        to=resource.email,
        subject=generate_subject(resource, answers),
        body=generate_email_body(resource, answers),
    )

def generate_emails(selected: List[ResourceRecord], answers: Dict[str, str]) -> List[EmailTemplate]:
    """One template per selected resource, in selection order."""
    return [generate_email(r, answers) for r in selected]
