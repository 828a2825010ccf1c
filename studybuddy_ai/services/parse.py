import json, re
from pydantic import ValidationError
from ..errors import GenerationError
from ..schemas import QuestionCardSet

def _clean(s: str) -> str:
    return re.sub(r"```(json|JSON)?|```", "", s or "").strip()

def parse_question_cards(s: str) -> dict:
    try:
        data = json.loads(_clean(s))
    except json.JSONDecodeError as e:
        raise GenerationError(f"AI returned invalid JSON: {e}") from e
    # some models answer with the bare array
    if isinstance(data, list):
        data = {"questionCards": data}
    try:
        return QuestionCardSet.model_validate(data).model_dump(by_alias=True)
    except ValidationError as e:
        raise GenerationError(f"AI returned unexpected response: {e.error_count()} validation error(s)") from e
