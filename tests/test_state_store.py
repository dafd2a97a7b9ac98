from askedith.services.state_store import StateStore
from askedith.services.wizard import Stage, WizardState

def test_missing_file_gives_fresh_state(tmp_path):
    assert StateStore(directory=str(tmp_path)).load() == WizardState()

def test_round_trip(tmp_path):
    store = StateStore(directory=str(tmp_path))
    state = WizardState(current_question=15, stage=Stage.RESULTS, answers={"q1": "Ann"}, selected_resource_ids=[3])
    store.save(state)
    assert store.load() == state

def test_corrupt_file_is_ignored(tmp_path):
    store = StateStore(directory=str(tmp_path))
    with open(store.path, "w") as f:
        f.write("{not json")
    assert store.load() == WizardState()

def test_clear(tmp_path):
    store = StateStore(directory=str(tmp_path))
    store.save(WizardState())
    store.clear()
    store.clear()
    assert store.load() == WizardState()
