from collections import Counter
from datetime import timedelta
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select
from askedith.deps import get_session
from askedith.models import EmailLog, as_utc, utcnow
from askedith.services import catalog, tracking

router = APIRouter()

@router.post("/reseed-resources")
def reseed_resources(session: Session = Depends(get_session)):
    added = catalog.seed_resources(session, force=True)
    return {"status": "reseeded", "count": added}

@router.get("/email-analytics")
def email_analytics(session: Session = Depends(get_session)):
    logs = session.exec(select(EmailLog)).all()
    now = utcnow()
    sent = [l for l in logs if l.status == "sent"]

    def since(delta):
        return sum(1 for l in sent if as_utc(l.sent_at) >= now - delta)

    return {
        "totalSent": len(sent),
        "totalFailed": len(logs) - len(sent),
        "sentLast24Hours": since(timedelta(days=1)),
        "sentLastWeek": since(timedelta(days=7)),
        "sentLastMonth": since(timedelta(days=30)),
        "byCategory": dict(Counter(l.category or "Other" for l in sent)),
        "byTransport": dict(Counter(l.transport for l in sent)),
    }

@router.get("/questionnaire-analytics")
def questionnaire_analytics(session: Session = Depends(get_session)):
    return tracking.questionnaire_analytics(session)

@router.get("/incomplete-questionnaires")
def incomplete_questionnaires(olderThanHours: float = Query(24, ge=0), session: Session = Depends(get_session)):
    return tracking.incomplete_questionnaires(session, older_than=timedelta(hours=olderThanHours))
