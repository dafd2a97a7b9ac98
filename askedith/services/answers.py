import json
from typing import Any, Dict, Optional
from askedith.services.questions import InputKind, QuestionSpec

SKIPPED = "__skipped__"
NOT_SPECIFIED = "Not specified"

def decode_answer(question: QuestionSpec, value: Optional[str]) -> Any:
    if value is None or value == SKIPPED:
        return None
    if question.kind == InputKind.MULTI_SELECT:
        return _loads(value, list) or []
    if question.kind == InputKind.CONTACT:
        return _loads(value, dict) or {}
    if question.kind == InputKind.NUMBER:
        try:
            num = float(value)
        except ValueError:
            return None
        return int(num) if num.is_integer() else num
    return value

def render_answer(question: QuestionSpec, value: Optional[str]) -> str:
    decoded = decode_answer(question, value)
    if decoded is None or decoded == "" or decoded == [] or decoded == {}:
        return NOT_SPECIFIED
    if isinstance(decoded, list):
        return ", ".join(decoded)
    if isinstance(decoded, dict):
        return ", ".join(f"{k}: {v}" for k, v in decoded.items() if v)
    return str(decoded)

def contact_info(answers: Dict[str, str], key: str = "q14") -> Dict[str, str]:
    raw = answers.get(key)
    if not raw or raw == SKIPPED:
        return {}
    return _loads(raw, dict) or {}

def _loads(value: str, expected: type):
    try:
        data = json.loads(value)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, expected) else None
