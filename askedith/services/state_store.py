import json, logging, os
from pydantic import ValidationError
from askedith.config import settings
from askedith.services.questions import QUESTIONS
from askedith.services.wizard import STORAGE_KEY, WizardState

logger = logging.getLogger(__name__)

class StateStore:
    """One JSON blob per storage key, standing in for the browser's local storage."""

    def __init__(self, directory: str | None = None, key: str = STORAGE_KEY):
        self.directory = directory or settings.STATE_DIR
        self.key = key

    @property
    def path(self) -> str:
        return os.path.join(self.directory, f"{self.key}.json")

    def load(self) -> WizardState:
        if not os.path.exists(self.path):
            return WizardState()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                state = WizardState.model_validate(json.load(f))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Failed to load wizard state from {self.path}: {e}")
            return WizardState()
        if state.current_question > len(QUESTIONS):
            logger.warning("Stored wizard state points past the last question; starting over")
            return WizardState(resources=state.resources)
        return state

    def save(self, state: WizardState) -> None:
        os.makedirs(self.directory, exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(state.to_json(), f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
