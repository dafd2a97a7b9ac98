from datetime import timedelta
import pytest
from sqlmodel import Session
from askedith.deps import engine
from askedith.models import Questionnaire, utcnow
from askedith.services import tracking, wizard
from askedith.services.wizard import Stage, WizardState

def test_progress_reuses_one_record_per_run():
    with Session(engine) as s:
        state = tracking.track_progress(s, wizard.submit_answer(WizardState(), "Ann"), "sess-a")
        qid = state.questionnaire_id
        state = tracking.track_progress(s, wizard.submit_answer(state, "80"), "sess-a")
        assert state.questionnaire_id == qid
        row = s.get(Questionnaire, qid)
        assert (row.status, row.current_question, row.answers_count) == ("in_progress", 3, 2)

def test_reaching_results_completes_and_reset_abandons():
    with Session(engine) as s:
        done = tracking.track_progress(s, WizardState(stage=Stage.RESULTS, current_question=15), "sess-b")
        row = s.get(Questionnaire, done.questionnaire_id)
        assert row.status == "completed" and row.completed_at is not None
        # a finished run stays finished
        assert tracking.abandon(s, done.questionnaire_id, "sess-b") is None

        back = tracking.track_progress(s, wizard.go_back(done), "sess-b")
        assert back.questionnaire_id == done.questionnaire_id
        s.refresh(row)
        assert row.status == "completed"

        fresh = tracking.track_progress(s, WizardState(current_question=2), "sess-c")
        assert tracking.abandon(s, fresh.questionnaire_id, "sess-c").status == "abandoned"

def test_other_sessions_cannot_touch_a_record():
    with Session(engine) as s:
        mine = tracking.track_progress(s, WizardState(current_question=2), "owner")
        assert tracking.abandon(s, mine.questionnaire_id, "intruder") is None
        theirs = tracking.track_progress(s, mine, "intruder")
        assert theirs.questionnaire_id != mine.questionnaire_id

def test_update_status_validates():
    with Session(engine) as s:
        q = tracking.create_questionnaire(s, "sess-d")
        with pytest.raises(ValueError):
            tracking.update_status(s, q.id, "paused")
        assert tracking.update_status(s, 10**9, "completed") is None

def test_incomplete_means_in_progress_for_over_a_day():
    with Session(engine) as s:
        old = Questionnaire(session_id="sess-e", created_at=utcnow() - timedelta(days=2))
        s.add(old); s.commit(); s.refresh(old)
        recent = tracking.create_questionnaire(s, "sess-e")
        ids = [q.id for q in tracking.incomplete_questionnaires(s)]
        assert old.id in ids and recent.id not in ids

def test_analytics_route_counts_runs(client, answers_script):
    before = client.get("/admin/questionnaire-analytics").json()
    state = {}
    for answer in answers_script:
        state = client.post("/wizard/submit", json={"state": state, "answer": answer}).json()
    assert state["questionnaireId"] is not None

    half = client.post("/wizard/submit", json={"state": {}, "answer": "Bea"}).json()
    client.post("/wizard/reset", json={"state": half})

    after = client.get("/admin/questionnaire-analytics").json()
    assert after["total"] == before["total"] + 2
    assert after["completed"] == before["completed"] + 1
    assert after["abandoned"] == before["abandoned"] + 1
    assert 0 < after["completionRate"] <= 100

def test_incomplete_route(client):
    r = client.get("/admin/incomplete-questionnaires", params={"olderThanHours": 0})
    assert r.status_code == 200
    assert all(q["status"] == "in_progress" for q in r.json())
