import json
import logging
import math
import re
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from askedith.errors import WizardValidationError
from askedith.services.answers import SKIPPED
from askedith.services.catalog import ResourceRecord
from askedith.services.email_generator import EmailTemplate, generate_emails
from askedith.services.questions import QUESTIONS, SELECT_ALL, InputKind, QuestionSpec, get_question

logger = logging.getLogger(__name__)

STORAGE_KEY = "careGuideAnswers"
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_MSG = "This field is required"
EMAIL_MSG = "Please enter a valid email address"

class Stage(str, Enum):
    QUESTIONS = "questions"
    RESULTS = "results"

class WizardState(BaseModel):
    """The whole questionnaire as the browser holds it. Transitions below return new states and never mutate."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_question: int = Field(1, ge=1)
    stage: Stage = Stage.QUESTIONS
    answers: Dict[str, str] = Field(default_factory=dict)
    resources: List[ResourceRecord] = Field(default_factory=list)
    selected_resource_ids: List[int] = Field(default_factory=list)
    emails_to_send: List[EmailTemplate] = Field(default_factory=list)
    current_email_index: int = Field(0, ge=0)
    questionnaire_id: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

def update_state(state: WizardState, **changes) -> WizardState:
    """The only way a WizardState changes."""
    return state.model_copy(update=changes)

# ---------- validation ----------
def validate_answer(question: QuestionSpec, raw: Any) -> str:
    """Check ``raw`` against the question's kind and return the string to store."""
    kind = question.kind
    if kind == InputKind.MULTI_SELECT:
        return _validate_multiselect(question, raw)
    if kind == InputKind.CONTACT:
        return _validate_contact(question, raw)
    if isinstance(raw, (list, dict)):
        raise WizardValidationError(question.key, "Please enter a single value")

    text = "" if raw is None else str(raw).strip()
    if not text:
        if question.required:
            raise WizardValidationError(question.key, REQUIRED_MSG)
        return ""

    if kind == InputKind.EMAIL and not EMAIL_RE.match(text):
        raise WizardValidationError(question.key, EMAIL_MSG)
    if kind == InputKind.NUMBER:
        return _coerce_number(question.key, text)
    if kind == InputKind.SINGLE_SELECT and text not in question.options:
        raise WizardValidationError(question.key, "Please choose one of the listed options")
    return text

def _coerce_number(field: str, text: str) -> str:
    try:
        num = float(text)
    except ValueError:
        raise WizardValidationError(field, "Please enter a number")
    if not math.isfinite(num):
        raise WizardValidationError(field, "Please enter a number")
    return str(int(num)) if num.is_integer() else str(num)

def _validate_multiselect(question: QuestionSpec, raw: Any) -> str:
    if raw is None or raw == "":
        values: List[Any] = []
    elif isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            parsed = [raw]
        values = parsed if isinstance(parsed, list) else [raw]
    elif isinstance(raw, (list, tuple)):
        values = list(raw)
    else:
        raise WizardValidationError(question.key, "Please choose from the listed options")

    unknown = [v for v in values if not isinstance(v, str) or v not in question.options]
    if unknown:
        raise WizardValidationError(question.key, f"Unknown option(s): {', '.join(map(str, unknown))}")
    selection = stored_selection(question, values)
    if question.required and not selection:
        raise WizardValidationError(question.key, "Please select at least one option")
    return json.dumps(selection)

def _validate_contact(question: QuestionSpec, raw: Any) -> str:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else {}
        except ValueError:
            raise WizardValidationError(question.key, "There was a problem with the contact information")
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise WizardValidationError(question.key, "There was a problem with the contact information")

    cleaned = {sf.name: str(raw.get(sf.name) or "").strip() for sf in question.subfields}
    missing = [sf.name for sf in question.subfields if sf.required and not cleaned[sf.name]]
    if missing:
        raise WizardValidationError(f"{question.key}.{missing[0]}",
                                    f"Please fill in these required fields: {', '.join(missing)}")
    for sf in question.subfields:
        if sf.kind == "email" and cleaned[sf.name] and not EMAIL_RE.match(cleaned[sf.name]):
            raise WizardValidationError(f"{question.key}.{sf.name}", EMAIL_MSG)
    return json.dumps(cleaned)

# ---------- multi-select with "Select All" ----------
def stored_selection(question: QuestionSpec, values: Iterable[str]) -> List[str]:
    """Expand Select All and return the options to store, in declared order, without the marker."""
    chosen = set(values)
    others = [o for o in question.options if o != SELECT_ALL]
    if question.has_select_all and SELECT_ALL in chosen:
        return others
    return [o for o in others if o in chosen]

def toggle_option(question: QuestionSpec, selection: Iterable[str], option: str, checked: bool) -> List[str]:
    """Apply one checkbox change and keep Select All in sync with the rest of the list."""
    if option not in question.options:
        raise WizardValidationError(question.key, f"Unknown option: {option}")
    others = [o for o in question.options if o != SELECT_ALL]
    if option == SELECT_ALL:
        return list(question.options) if checked else []

    chosen = set(selection) - {SELECT_ALL}
    if checked:
        chosen.add(option)
    else:
        chosen.discard(option)
    if question.has_select_all and others and all(o in chosen for o in others):
        chosen.add(SELECT_ALL)
    return [o for o in question.options if o in chosen]

# ---------- navigation ----------
def _current(state: WizardState, questions: List[QuestionSpec]) -> QuestionSpec:
    if state.stage == Stage.RESULTS:
        raise WizardValidationError("stage", "The questionnaire is already complete")
    if not 1 <= state.current_question <= len(questions):
        raise WizardValidationError("currentQuestion", f"There is no question {state.current_question}")
    return get_question(state.current_question, questions)

def _advance(state: WizardState, answers: Dict[str, str], questions: List[QuestionSpec]) -> WizardState:
    if state.current_question < len(questions):
        return update_state(state, answers=answers, current_question=state.current_question + 1)
    logger.info(f"Questionnaire complete with {len(answers)} answers")
    return update_state(state, answers=answers, stage=Stage.RESULTS)

def submit_answer(state: WizardState, raw: Any, questions: List[QuestionSpec] = QUESTIONS) -> WizardState:
    question = _current(state, questions)
    value = validate_answer(question, raw)
    return _advance(state, {**state.answers, question.key: value}, questions)

def skip_question(state: WizardState, questions: List[QuestionSpec] = QUESTIONS) -> WizardState:
    question = _current(state, questions)
    if question.kind != InputKind.FREE_TEXT:
        raise WizardValidationError(question.key, "Only free-text questions can be skipped")
    return _advance(state, {**state.answers, question.key: SKIPPED}, questions)

def go_back(state: WizardState, questions: List[QuestionSpec] = QUESTIONS) -> WizardState:
    if state.stage == Stage.RESULTS:
        return update_state(state, stage=Stage.QUESTIONS, current_question=len(questions))
    return update_state(state, current_question=min(len(questions), max(1, state.current_question - 1)))

def reset_state(state: WizardState) -> WizardState:
    # fetched resources survive a reset
    return WizardState(resources=list(state.resources))

# ---------- results stage ----------
def set_resources(state: WizardState, resources: List[ResourceRecord]) -> WizardState:
    return update_state(state, resources=list(resources))

def select_resources(state: WizardState, resource_ids: Iterable[int]) -> WizardState:
    known = {r.id for r in state.resources}
    ids: List[int] = []
    for rid in resource_ids:
        if known and rid not in known:
            raise WizardValidationError("selectedResourceIds", f"Unknown resource id: {rid}")
        if rid not in ids:
            ids.append(rid)
    return update_state(state, selected_resource_ids=ids)

def selected_resources(state: WizardState) -> List[ResourceRecord]:
    by_id = {r.id: r for r in state.resources}
    return [by_id[rid] for rid in state.selected_resource_ids if rid in by_id]

def prepare_emails(state: WizardState) -> WizardState:
    """Regenerate the outgoing emails from the answers and current selection."""
    emails = generate_emails(selected_resources(state), state.answers)
    return update_state(state, emails_to_send=emails, current_email_index=0)

def next_email(state: WizardState) -> WizardState:
    return update_state(state, current_email_index=min(state.current_email_index + 1, len(state.emails_to_send)))

class WizardSession:
    """Binds a WizardState to a store so every change is persisted."""

    def __init__(self, store):
        self.store = store
        self.state = store.load()

    def apply(self, transition, *args, **kwargs) -> WizardState:
        self.state = transition(self.state, *args, **kwargs)
        self.store.save(self.state)
        return self.state

    def reset(self) -> WizardState:
        self.state = reset_state(self.state)
        self.store.clear()
        return self.state

    @property
    def question(self) -> Optional[QuestionSpec]:
        if self.state.stage == Stage.RESULTS:
            return None
        return get_question(self.state.current_question)
