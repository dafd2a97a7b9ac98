from datetime import date, datetime
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select
from typing import Optional
from askedith.deps import get_session
from askedith.models import Appointment, as_utc
from askedith.services import appointments as appts

router = APIRouter()

class AppointmentIn(BaseModel):
    title: str
    date: datetime
    organization: str = ""
    to: str = ""
    notes: str = ""

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("date")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)

def _all(session: Session):
    return session.exec(select(Appointment)).all()

@router.get("/appointments")
def list_appointments(on: Optional[date] = None, session: Session = Depends(get_session)):
    items = _all(session)
    if on:
        return appts.appointments_on(items, on)
    return sorted(items, key=lambda a: a.date)

@router.post("/appointments")
def create_appointment(payload: AppointmentIn, session: Session = Depends(get_session)):
    appt = Appointment(**payload.model_dump())
    session.add(appt); session.commit(); session.refresh(appt)
    return appt

@router.delete("/appointments/{appointment_id}")
def delete_appointment(appointment_id: int, session: Session = Depends(get_session)):
    appt = session.get(Appointment, appointment_id)
    if not appt:
        raise HTTPException(status_code=404, detail="appointment not found")
    session.delete(appt); session.commit()
    return {"deleted": appointment_id}

@router.get("/upcoming")
def upcoming(today: Optional[date] = None, session: Session = Depends(get_session)):
    return appts.upcoming(_all(session), today or date.today())

@router.get("/month/{year}/{month}")
def month(year: int, month: int, session: Session = Depends(get_session)):
    if not 1 <= month <= 12:
        raise HTTPException(status_code=422, detail="month must be 1-12")
    cells = appts.month_cells(year, month, _all(session))
    return [c.model_dump(mode="json", by_alias=True) for c in cells]
