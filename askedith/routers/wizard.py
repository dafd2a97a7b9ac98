from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from pydantic import BaseModel, Field
from typing import Any, List
from askedith.deps import get_session, get_session_id
from askedith.services import wizard, catalog, tracking
from askedith.services.questions import QUESTIONS, get_question
from askedith.services.wizard import WizardState

router = APIRouter()

class StatePayload(BaseModel):
    state: WizardState = Field(default_factory=WizardState)

class SubmitPayload(StatePayload):
    answer: Any = Field(None, description="str for text kinds, list for multiselect, object for contact_info")

class TogglePayload(BaseModel):
    question: int
    selection: List[str] = Field(default_factory=list)
    option: str
    checked: bool

class SelectPayload(StatePayload):
    resourceIds: List[int]

def _question_json(q):
    data = q.model_dump(mode="json")
    data.update({"key": q.key, "autoAdvance": q.auto_advances, "hasSelectAll": q.has_select_all})
    return data

@router.get("/questions")
def list_questions():
    return [_question_json(q) for q in QUESTIONS]

@router.post("/submit")
def submit(payload: SubmitPayload, session_id: str = Depends(get_session_id),
           session: Session = Depends(get_session)):
    state = wizard.submit_answer(payload.state, payload.answer)
    return tracking.track_progress(session, state, session_id).to_json()

@router.post("/skip")
def skip(payload: StatePayload, session_id: str = Depends(get_session_id),
         session: Session = Depends(get_session)):
    state = wizard.skip_question(payload.state)
    return tracking.track_progress(session, state, session_id).to_json()

@router.post("/back")
def back(payload: StatePayload):
    return wizard.go_back(payload.state).to_json()

@router.post("/reset")
def reset(payload: StatePayload, session_id: str = Depends(get_session_id),
          session: Session = Depends(get_session)):
    tracking.abandon(session, payload.state.questionnaire_id, session_id)
    return wizard.reset_state(payload.state).to_json()

@router.post("/toggle-option")
def toggle(payload: TogglePayload):
    try:
        q = get_question(payload.question)
    except IndexError:
        raise HTTPException(status_code=404, detail="question not found")
    selection = wizard.toggle_option(q, payload.selection, payload.option, payload.checked)
    return {"selection": selection, "stored": wizard.stored_selection(q, selection)}

@router.post("/results")
def results(payload: StatePayload, session: Session = Depends(get_session)):
    matched = catalog.match_resources(catalog.list_resources(session), payload.state.answers)
    return wizard.set_resources(payload.state, matched).to_json()

@router.post("/select")
def select(payload: SelectPayload):
    return wizard.select_resources(payload.state, payload.resourceIds).to_json()

@router.post("/emails")
def emails(payload: StatePayload):
    return wizard.prepare_emails(payload.state).to_json()
