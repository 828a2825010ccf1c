import asyncio, hashlib, json
from loguru import logger
from openai import OpenAI, APIError, AuthenticationError, RateLimitError
from ..errors import GenerationError
from ..settings import settings
from .material import extract_text, parse_data_uri
from .parse import parse_question_cards

MAX_QUESTIONS = 20

CARDS_SYSTEM_PROMPT = (
    "You generate question cards for students from their study material. "
    "The questions should test the student's understanding of the material; "
    "answers must be accurate and derived from the material. "
    "Return only valid JSON with no extra text. "
    "Schema: {\"questionCards\":[{\"question\":\"...\",\"answer\":\"...\"}]}"
)
REPAIR_SYSTEM_PROMPT = "Fix to valid JSON {questionCards:[{question,answer}]} only. No prose."

_client: OpenAI | None = None

def client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(api_key=settings.OPENAI_API_KEY)
    return _client

def _mock_reply(messages) -> str:
    sys = (messages[0].get("content", "") if messages else "")
    user = (messages[-1].get("content", "") if messages else "")
    if "questionCards" not in sys:
        return "This is a MOCK reply."
    n = 3
    for line in user.splitlines():
        if line.startswith("Number of questions:"):
            n = int(line.split(":", 1)[1])
    tag = hashlib.sha256(user.encode("utf-8")).hexdigest()[:8]
    return json.dumps({"questionCards": [
        {"question": f"What is key point {i} of the material ({tag})?", "answer": f"Key point {i} is covered in the material."}
        for i in range(1, n + 1)
    ]})

def _llm_sync(messages, *, max_tokens=400, temperature=0.2):
    if settings.MOCK_MODE:
        return _mock_reply(messages)
    resp = client().chat.completions.create(
        model=settings.OPENAI_MODEL,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
    )
    return resp.choices[0].message.content

async def llm(messages, **kw):
    try:
        return await asyncio.to_thread(_llm_sync, messages, **kw)
    except AuthenticationError as e:
        raise GenerationError("OpenAI auth failed. Check OPENAI_API_KEY.") from e
    except RateLimitError as e:
        raise GenerationError("OpenAI quota/rate limit exceeded.") from e
    except APIError as e:
        raise GenerationError(f"OpenAI API error: {getattr(e, 'message', str(e))}") from e

async def generate_question_cards(study_material: str, number_of_questions: int) -> dict:
    """Generate question cards from a base64 data URI document.

    Returns ``{"questionCards": [{"question": ..., "answer": ...}, ...]}``.
    Raises GenerationError when the model fails or keeps returning malformed
    output, and EncodingError when the document cannot be read.
    """
    if not isinstance(number_of_questions, int) or not 1 <= number_of_questions <= MAX_QUESTIONS:
        raise GenerationError(f"numberOfQuestions must be between 1 and {MAX_QUESTIONS}.")

    media_type, content = parse_data_uri(study_material)
    text = extract_text(media_type, content).strip()
    if not text:
        raise GenerationError("No extractable text found in the study material.")

    messages = [
        {"role": "system", "content": CARDS_SYSTEM_PROMPT},
        {"role": "user", "content": (
            f"Number of questions: {number_of_questions}\n"
            f"Study material ({media_type}):\n{text[:settings.MAX_MATERIAL_CHARS]}"
        )},
    ]
    max_tokens = 120 * number_of_questions + 200
    raw = await llm(messages, max_tokens=max_tokens, temperature=0.2)
    try:
        return parse_question_cards(raw)
    except GenerationError as e:
        logger.warning(f"[llm] malformed cards JSON, asking for a repair: {e}")
        repaired = await llm(
            [
                {"role": "system", "content": REPAIR_SYSTEM_PROMPT},
                {"role": "user", "content": raw or ""},
            ],
            max_tokens=max_tokens,
        )
        return parse_question_cards(repaired)
