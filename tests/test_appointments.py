from datetime import date, datetime
from askedith.models import Appointment
from askedith.services.appointments import appointments_on, has_appointment, month_cells, upcoming

def _appt(id, when, title="Visit"):
    return Appointment(id=id, title=title, date=when)

def test_month_cells_cover_whole_weeks():
    cells = month_cells(2026, 10, [_appt(1, datetime(2026, 10, 15, 10, 0))])
    assert len(cells) % 7 == 0
    assert cells[0].day == date(2026, 9, 28) and not cells[0].in_month
    assert cells[-1].day == date(2026, 11, 1) and not cells[-1].in_month
    assert sum(c.in_month for c in cells) == 31
    hit = next(c for c in cells if c.day == date(2026, 10, 15))
    assert hit.appointment_ids == [1]
    assert hit.model_dump(mode="json", by_alias=True)["cellId"] == "2026-10-15"

def test_upcoming_window():
    today = date(2026, 10, 1)
    items = [
        _appt(1, datetime(2026, 10, 1, 9)),
        _appt(2, datetime(2026, 10, 29, 9)),
        _appt(3, datetime(2026, 10, 30, 9)),
        _appt(4, datetime(2026, 10, 3, 9)),
    ]
    assert [a.id for a in upcoming(items, today)] == [4, 2]

def test_day_lookup():
    items = [_appt(2, datetime(2026, 10, 5, 15)), _appt(1, datetime(2026, 10, 5, 9))]
    assert [a.id for a in appointments_on(items, date(2026, 10, 5))] == [1, 2]
    assert has_appointment(items, date(2026, 10, 5))
    assert not has_appointment(items, date(2026, 10, 6))

def test_calendar_api(client):
    r = client.post("/calendar/appointments", json={"title": "Tour", "date": "2030-03-10T14:00:00",
                                                    "organization": "Comfort Home Care"})
    assert r.status_code == 200
    appt_id = r.json()["id"]

    on_day = client.get("/calendar/appointments", params={"on": "2030-03-10"}).json()
    assert [a["id"] for a in on_day] == [appt_id]
    assert [a["id"] for a in client.get("/calendar/upcoming", params={"today": "2030-03-01"}).json()] == [appt_id]

    cells = client.get("/calendar/month/2030/3").json()
    assert next(c for c in cells if c["cellId"] == "2030-03-10")["appointmentIds"] == [appt_id]
    assert client.get("/calendar/month/2030/13").status_code == 422

    assert client.delete(f"/calendar/appointments/{appt_id}").json() == {"deleted": appt_id}
    assert client.delete(f"/calendar/appointments/{appt_id}").status_code == 404

def test_appointment_needs_title(client):
    r = client.post("/calendar/appointments", json={"title": "  ", "date": "2030-03-10T14:00:00"})
    assert r.status_code == 422
