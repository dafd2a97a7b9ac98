def test_questions_listed(client):
    js = client.get("/wizard/questions").json()
    assert len(js) == 15
    assert js[14]["hasSelectAll"] is True
    assert js[2]["autoAdvance"] is True and js[2]["kind"] == "select"

def test_invalid_answer_is_422_with_field(client):
    r = client.post("/wizard/submit", json={"state": {}, "answer": ""})
    assert r.status_code == 422
    assert r.json() == {"field": "q1", "message": "This field is required"}

def test_walk_to_results_and_emails(client, answers_script):
    state = {}
    for answer in answers_script:
        r = client.post("/wizard/submit", json={"state": state, "answer": answer})
        assert r.status_code == 200, r.text
        state = r.json()
    assert state["stage"] == "results"

    state = client.post("/wizard/results", json={"state": state}).json()
    assert [r["category"] for r in state["resources"]] == ["Home Care Companies"]

    rid = state["resources"][0]["id"]
    state = client.post("/wizard/select", json={"state": state, "resourceIds": [rid]}).json()
    state = client.post("/wizard/emails", json={"state": state}).json()
    assert state["emailsToSend"][0]["subject"] == "Seeking Home Care Companies help for my mom"

    back = client.post("/wizard/back", json={"state": state}).json()
    assert back["stage"] == "questions" and back["currentQuestion"] == 15

    fresh = client.post("/wizard/reset", json={"state": state}).json()
    assert fresh["currentQuestion"] == 1 and fresh["answers"] == {}
    assert len(fresh["resources"]) == 1

def test_skip_free_text(client):
    r = client.post("/wizard/skip", json={"state": {"currentQuestion": 12}})
    assert r.json()["answers"]["q12"] == "__skipped__"
    assert client.post("/wizard/skip", json={"state": {}}).status_code == 422

def test_toggle_option(client):
    r = client.post("/wizard/toggle-option", json={"question": 15, "selection": [], "option": "Select All",
                                                   "checked": True})
    js = r.json()
    assert js["selection"][0] == "Select All"
    assert "Select All" not in js["stored"] and len(js["stored"]) == 5
    assert client.post("/wizard/toggle-option", json={"question": 99, "option": "x", "checked": True}).status_code == 404

def test_out_of_range_step_is_422(client):
    r = client.post("/wizard/submit", json={"state": {"currentQuestion": 99}, "answer": "x"})
    assert r.status_code == 422
    assert r.json()["field"] == "currentQuestion"
    assert client.post("/wizard/submit", json={"state": {"currentQuestion": 0}, "answer": "x"}).status_code == 422

def test_non_list_multiselect_is_422(client):
    r = client.post("/wizard/submit", json={"state": {"currentQuestion": 4}, "answer": 5})
    assert r.status_code == 422
    assert r.json()["field"] == "q4"
