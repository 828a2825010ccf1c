"""Upload validation and card generation for one or more study files.

Validation collects every violated constraint before anything is sent to the
generation service. Processing then walks the files strictly in input order,
one request at a time, and keeps going when a single file fails.
"""
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from loguru import logger
from pydantic import BaseModel, ValidationError

from ..errors import PerFileGenerationError, UploadValidationError
from ..schemas import BatchOutcome, Card, QuestionCardSet
from ..settings import settings
from .llm import generate_question_cards
from .material import SUPPORTED_MIME_TYPES, UploadedMaterial, encode_material
from .notify import collect_notifications, toast

MB = 1024 * 1024

Generator = Callable[[str, int], Awaitable[Any]]


class UploadMode(str, Enum):
    SINGLE = "single"
    BATCH = "batch"


class UploadBatch(BaseModel):
    mode: UploadMode
    files: List[UploadedMaterial]
    questions_per_file: int


def max_questions(mode: UploadMode) -> int:
    if mode == UploadMode.SINGLE:
        return settings.MAX_QUESTIONS_SINGLE
    return settings.MAX_QUESTIONS_BATCH


def _coerce_questions(value: Any) -> tuple[Optional[int], Optional[str]]:
    if isinstance(value, bool):
        return None, "Expected a whole number of questions."
    if isinstance(value, str):
        value = value.strip()
        try:
            value = float(value) if value else None
        except ValueError:
            return None, "Expected a whole number of questions."
    if isinstance(value, float):
        if not value.is_integer():
            return None, "Expected a whole number of questions."
        value = int(value)
    if not isinstance(value, int):
        return None, "Expected a whole number of questions."
    return value, None


def _file_errors(index: int, f: UploadedMaterial) -> List[dict]:
    errors = []
    field = f"files.{index}"
    if f.size > settings.MAX_FILE_SIZE_MB * MB:
        errors.append({"field": field, "message": f"Max file size is {settings.MAX_FILE_SIZE_MB}MB."})
    if f.media_type not in SUPPORTED_MIME_TYPES:
        errors.append({"field": field, "message": "Unsupported file type. Please upload PDF, TXT, MD, or DOCX."})
    return errors


def validate_batch(files: List[UploadedMaterial], questions_per_file: Any, mode: UploadMode) -> UploadBatch:
    """Check ``files`` and the question count against the profile for ``mode``.

    Raises UploadValidationError listing every violation.
    """
    errors: List[dict] = []
    files = list(files or [])

    if mode == UploadMode.SINGLE:
        if len(files) != 1:
            errors.append({"field": "file", "message": "Please upload exactly one file."})
    else:
        if not files:
            errors.append({"field": "files", "message": "Please select at least one file."})
        if len(files) > settings.MAX_FILES:
            errors.append({"field": "files", "message": f"You can select a maximum of {settings.MAX_FILES} files."})
        if sum(f.size for f in files) > settings.MAX_TOTAL_SIZE_MB * MB:
            errors.append({"field": "files", "message": f"Total size of all files cannot exceed {settings.MAX_TOTAL_SIZE_MB}MB."})

    per_file = [e for i, f in enumerate(files) for e in _file_errors(i, f)]
    errors.extend(per_file)
    if per_file and mode == UploadMode.BATCH:
        errors.append({"field": "files", "message": "One or more files have validation errors (size/type)."})

    n, problem = _coerce_questions(questions_per_file)
    upper = max_questions(mode)
    if problem:
        errors.append({"field": "numberOfQuestions", "message": problem})
    elif n < 1:
        noun = "question" if mode == UploadMode.SINGLE else "question per file"
        errors.append({"field": "numberOfQuestions", "message": f"Must generate at least 1 {noun}."})
    elif n > upper:
        suffix = " in batch mode" if mode == UploadMode.BATCH else ""
        errors.append({"field": "numberOfQuestions", "message": f"Cannot generate more than {upper} questions per file{suffix}."})

    if errors:
        raise UploadValidationError(errors)
    return UploadBatch(mode=mode, files=files, questions_per_file=n)


async def _cards_for_file(f: UploadedMaterial, n: int, generate: Generator) -> List[Card]:
    try:
        payload = encode_material(f)
        result = await generate(payload, n)
    except Exception as e:
        raise PerFileGenerationError(f.filename, e) from e

    if result is None:
        raise PerFileGenerationError(f.filename)
    try:
        cards = QuestionCardSet.model_validate(result).question_cards
    except ValidationError as e:
        raise PerFileGenerationError(f.filename, e) from e
    if not cards:
        raise PerFileGenerationError(f.filename)
    return cards


async def process_batch(batch: UploadBatch, generate: Optional[Generator] = None) -> BatchOutcome:
    generate = generate or generate_question_cards
    cards: List[Card] = []
    ok = failed = 0

    for f in batch.files:
        try:
            got = await _cards_for_file(f, batch.questions_per_file, generate)
        except PerFileGenerationError as e:
            failed += 1
            logger.warning(f"[upload] generation failed for {f.filename}: {e}")
            detail = str(e.cause) if e.cause else "AI failed to generate cards for this file."
            toast(f"Processing Error ({f.filename})", detail, "destructive")
            continue
        cards.extend(got)
        ok += 1
        logger.info(f"[upload] {f.filename}: {len(got)} card(s)")

    if cards:
        summary = f"Generated {len(cards)} cards from {ok} file(s)."
        if failed:
            summary += f" {failed} file(s) failed."
        toast("Processing Complete!", summary)
        status = "ok"
    elif failed and not ok:
        toast("Processing Failed", "Could not generate cards from any of the selected files.", "destructive")
        status = "failed"
    else:
        toast("No Files", "No valid files were provided for processing.", "destructive")
        status = "empty"

    return BatchOutcome(status=status, cards=cards, successful_files=ok, failed_files=failed)


async def submit(
    files: List[UploadedMaterial],
    questions_per_file: Any,
    mode: UploadMode,
    generate: Optional[Generator] = None,
) -> BatchOutcome:
    """Validate then process an upload, gathering every notification raised.

    Validation failures are re-raised after the aggregate notification is
    emitted; nothing is sent to the generation service in that case.
    """
    with collect_notifications() as notes:
        try:
            batch = validate_batch(files, questions_per_file, mode)
        except UploadValidationError as e:
            description = (
                "Please check the form for errors."
                if mode == UploadMode.SINGLE
                else "Please check the selected files and number of questions."
            )
            toast("Invalid Input", description, "destructive")
            e.notifications = list(notes)
            raise
        outcome = await process_batch(batch, generate)
    outcome.notifications = notes
    return outcome
