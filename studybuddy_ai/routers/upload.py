from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from loguru import logger

from ..errors import TotalBatchFailure, UploadValidationError
from ..schemas import BatchOutcome, GenerateResponse
from ..services.material import UploadedMaterial, resolve_media_type
from ..services.review import sessions
from ..services.uploads import UploadMode, submit

router = APIRouter()

async def _read_uploads(files: Optional[List[UploadFile]]) -> List[UploadedMaterial]:
    out = []
    for f in files or []:
        raw = await f.read()
        out.append(UploadedMaterial(
            filename=f.filename or "untitled",
            media_type=resolve_media_type(f.filename or "", f.content_type),
            content=raw,
        ))
    return out

async def _generate(files: Optional[List[UploadFile]], number_of_questions: str, mode: UploadMode) -> GenerateResponse:
    materials = await _read_uploads(files)
    logger.info(f"[upload] mode={mode.value} files={len(materials)} questions={number_of_questions!r}")
    try:
        outcome: BatchOutcome = await submit(materials, number_of_questions, mode)
        outcome.raise_for_status()
    except UploadValidationError as e:
        raise HTTPException(422, {
            "errors": e.errors,
            "notifications": [n.model_dump() for n in e.notifications],
        })
    except TotalBatchFailure as e:
        raise HTTPException(502, {
            "message": str(e),
            "successful_files": outcome.successful_files,
            "failed_files": outcome.failed_files,
            "notifications": [n.model_dump() for n in outcome.notifications],
        })

    session = sessions.create(outcome.cards).state() if outcome.cards else None
    return GenerateResponse(
        session=session,
        cards=outcome.cards,
        successful_files=outcome.successful_files,
        failed_files=outcome.failed_files,
        notifications=outcome.notifications,
    )

@router.post("/generate", response_model=GenerateResponse)
async def generate_single(
    file: Optional[List[UploadFile]] = File(None),
    number_of_questions: str = Form("5"),
):
    return await _generate(file, number_of_questions, UploadMode.SINGLE)

@router.post("/generate/batch", response_model=GenerateResponse)
async def generate_batch(
    files: Optional[List[UploadFile]] = File(None),
    number_of_questions: str = Form("5"),
):
    return await _generate(files, number_of_questions, UploadMode.BATCH)
