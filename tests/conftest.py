import os, tempfile
import pytest

# settings are read at import time, so point everything at a scratch dir first
_tmp = tempfile.mkdtemp(prefix="askedith-tests-")
os.environ.update({
    "DB_URL": f"sqlite:///{os.path.join(_tmp, 'askedith.db')}",
    "DATA_DIR": _tmp,
    "EXPORT_DIR": os.path.join(_tmp, "exports"),
    "STATE_DIR": os.path.join(_tmp, "state"),
    "SIMULATION_LOG_PATH": os.path.join(_tmp, "simulated_emails.jsonl"),
    "SENDGRID_API_KEY": "",
    "NYLAS_CLIENT_ID": "",
    "NYLAS_API_KEY": "",
})

from fastapi.testclient import TestClient
from askedith.deps import init_db
from askedith.main import app

ANSWERS = [
    "Ann",
    "80",
    "Mom",
    ["Living home alone"],
    ["Mobility issues", "Memory care"],
    "Moderate",
    "$3,000-5,000",
    "Within 1 month",
    "",
    ["Own a home"],
    "No",
    "",
    "",
    {"lastname": "Lee", "email": "ann@example.com", "zipcode": "20814", "phone": "301-555-0100"},
    ["Home Care Companies"],
]

@pytest.fixture(scope="session", autouse=True)
def database():
    init_db()
    yield

@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

@pytest.fixture
def answers_script():
    return list(ANSWERS)
