from docx import Document
from askedith.services.catalog import ResourceRecord
from askedith.services.export_docx import build_results_doc
from askedith.services.wizard import WizardState, prepare_emails

def _state():
    resource = ResourceRecord(id=7, category="Home Care Companies", name="Comfort Home Care",
                              email="care@example.com", phone="301-555-7400")
    state = WizardState(answers={"q1": "Ann", "q3": "Mom"}, resources=[resource], selected_resource_ids=[7])
    return prepare_emails(state)

def test_export_docx(client):
    r = client.post("/export/docx", json={"state": _state().to_json()})
    assert r.status_code == 200
    url = r.json()["downloadUrl"]
    assert url.endswith(".docx")
    assert client.get(url).status_code == 200
    assert client.get("/export/files/missing.docx").status_code == 404

def test_results_doc_contents(tmp_path):
    path = build_results_doc(_state(), job_id="job-1", export_dir=str(tmp_path))
    text = "\n".join(p.text for p in Document(path).paragraphs)
    assert "Comfort Home Care (Home Care Companies)" in text
    assert "Phone: 301-555-7400" in text
    assert "Seeking Home Care Companies help for my mom" in text
    assert "Not specified" in text
