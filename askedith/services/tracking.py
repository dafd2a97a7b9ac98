import logging
from datetime import datetime, timedelta
from typing import List, Optional
from sqlmodel import Session, select
from askedith.models import Questionnaire, as_utc, utcnow
from askedith.services.wizard import Stage, WizardState, update_state

logger = logging.getLogger(__name__)

IN_PROGRESS, COMPLETED, ABANDONED = "in_progress", "completed", "abandoned"
STATUSES = (IN_PROGRESS, COMPLETED, ABANDONED)

def _owned(session: Session, questionnaire_id: Optional[int], session_id: str) -> Optional[Questionnaire]:
    if questionnaire_id is None:
        return None
    q = session.get(Questionnaire, questionnaire_id)
    return q if q and q.session_id == session_id else None

def create_questionnaire(session: Session, session_id: str) -> Questionnaire:
    q = Questionnaire(session_id=session_id)
    session.add(q); session.commit(); session.refresh(q)
    logger.info(f"Questionnaire {q.id} started")
    return q

def update_status(session: Session, questionnaire_id: int, status: str) -> Optional[Questionnaire]:
    if status not in STATUSES:
        raise ValueError(f"unknown questionnaire status {status!r}")
    q = session.get(Questionnaire, questionnaire_id)
    if not q:
        return None
    q.status = status
    q.updated_at = utcnow()
    if status == COMPLETED:
        q.completed_at = q.updated_at
    session.add(q); session.commit(); session.refresh(q)
    return q

def track_progress(session: Session, state: WizardState, session_id: str) -> WizardState:
    """Record how far this run of the questionnaire has got; returns the state carrying its questionnaire id."""
    q = _owned(session, state.questionnaire_id, session_id)
    if q is None or q.status == ABANDONED:
        q = create_questionnaire(session, session_id)
    q.current_question = state.current_question
    q.answers_count = len(state.answers)
    q.updated_at = utcnow()
    session.add(q); session.commit()
    if state.stage == Stage.RESULTS and q.status != COMPLETED:
        update_status(session, q.id, COMPLETED)
    return update_state(state, questionnaire_id=q.id)

def abandon(session: Session, questionnaire_id: Optional[int], session_id: str) -> Optional[Questionnaire]:
    q = _owned(session, questionnaire_id, session_id)
    if q is None or q.status != IN_PROGRESS:
        return None
    return update_status(session, q.id, ABANDONED)

def incomplete_questionnaires(session: Session, older_than: timedelta = timedelta(days=1),
                              now: Optional[datetime] = None) -> List[Questionnaire]:
    """Runs still in progress that were started more than ``older_than`` ago, newest first."""
    cutoff = (now or utcnow()) - older_than
    rows = session.exec(select(Questionnaire).where(Questionnaire.status == IN_PROGRESS)).all()
    return sorted((q for q in rows if as_utc(q.created_at) < cutoff), key=lambda q: q.created_at, reverse=True)

def questionnaire_analytics(session: Session) -> dict:
    rows = session.exec(select(Questionnaire)).all()
    total = len(rows)
    completed = sum(1 for q in rows if q.status == COMPLETED)
    return {
        "total": total,
        "completed": completed,
        "abandoned": sum(1 for q in rows if q.status == ABANDONED),
        "inProgress": sum(1 for q in rows if q.status == IN_PROGRESS),
        "completionRate": round(completed / total * 100, 2) if total else 0,
    }
