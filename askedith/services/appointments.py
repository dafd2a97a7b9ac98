import calendar as _cal
from datetime import date, datetime, timedelta
from typing import Iterable, List
from pydantic import BaseModel, Field
from askedith.models import Appointment

UPCOMING_DAYS = 28

class DayCell(BaseModel):
    """One day of the month grid; carries its own id so a UI never has to infer the date from text."""
    cell_id: str = Field(serialization_alias="cellId")
    day: date = Field(serialization_alias="date")
    in_month: bool = Field(serialization_alias="inMonth")
    appointment_ids: List[int] = Field(default_factory=list, serialization_alias="appointmentIds")

def _day(value) -> date:
    return value.date() if isinstance(value, datetime) else value

def appointments_on(appointments: Iterable[Appointment], day: date) -> List[Appointment]:
    return sorted((a for a in appointments if _day(a.date) == day), key=lambda a: a.date)

def has_appointment(appointments: Iterable[Appointment], day: date) -> bool:
    return any(_day(a.date) == day for a in appointments)

def upcoming(appointments: Iterable[Appointment], today: date, days: int = UPCOMING_DAYS) -> List[Appointment]:
    """Appointments after today and no later than ``days`` ahead, soonest first."""
    horizon = today + timedelta(days=days)
    return sorted((a for a in appointments if today < _day(a.date) <= horizon), key=lambda a: a.date)

def month_cells(year: int, month: int, appointments: Iterable[Appointment]) -> List[DayCell]:
    """Whole Monday-first weeks covering the month, leading and trailing days marked out of month."""
    by_day: dict = {}
    for a in appointments:
        by_day.setdefault(_day(a.date), []).append(a)

    cells = []
    for day in _cal.Calendar(firstweekday=0).itermonthdates(year, month):
        ids = [a.id for a in sorted(by_day.get(day, []), key=lambda a: a.date)]
        cells.append(DayCell(cell_id=day.isoformat(), day=day, in_month=day.month == month, appointment_ids=ids))
    return cells
