from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from pathlib import Path
import hashlib, io, csv, re, tempfile, os
import genanki
from loguru import logger

from ..services.saved_cards import SavedCardStore, saved_cards

router = APIRouter(prefix="/saved/export")

def int_id_from_text(s: str, salt: int = 0) -> int:
    return int(hashlib.sha256(s.encode("utf-8")).hexdigest()[:10], 16) + salt

def _safe_name(title: str) -> str:
    return re.sub(r'[^A-Za-z0-9._-]+', '_', title)

def _cards_or_404(store: SavedCardStore):
    cards = store.cards
    if not cards: raise HTTPException(404, "No saved cards to export.")
    return cards

@router.get("/csv")
def export_csv(title: str = Query("StudyBuddy"), store: SavedCardStore = Depends(saved_cards)):
    cards = _cards_or_404(store)

    sio = io.StringIO(newline="")
    writer = csv.writer(sio)
    writer.writerow(["question", "answer"])
    for c in cards:
        writer.writerow([c.question, c.answer])
    data = sio.getvalue().encode("utf-8-sig")
    filename = f"{_safe_name(title)}-saved-cards.csv"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(io.BytesIO(data), media_type="text/csv", headers=headers)

@router.get("/apkg")
def export_apkg(title: str = Query("StudyBuddy"), store: SavedCardStore = Depends(saved_cards)):
    cards = _cards_or_404(store)

    deck = genanki.Deck(int_id_from_text(title, 1000), f"{title} - Saved Cards")
    basic_model = genanki.Model(
        int_id_from_text(title, 2000),
        "StudyBuddy AI Basic",
        fields=[{"name": "Question"}, {"name": "Answer"}],
        templates=[{
            "name": "Card 1",
            "qfmt": "{{Question}}",
            "afmt": "{{FrontSide}}<hr id=answer>{{Answer}}",
        }],
        css=".card { font-family: Inter, Arial; font-size: 18px; }",
    )
    for c in cards:
        deck.add_note(genanki.Note(model=basic_model, fields=[c.question, c.answer], guid=genanki.guid_for(c.id)))

    with tempfile.NamedTemporaryFile(delete=False, suffix=".apkg") as tmp:
        tmp_path = tmp.name
    try:
        genanki.Package(deck).write_to_file(tmp_path)
        data = Path(tmp_path).read_bytes()
    finally:
        try: os.remove(tmp_path)
        except OSError as e: logger.warning(f"[export] could not remove {tmp_path}: {e}")

    logger.info(f"[export] apkg with {len(cards)} card(s)")
    filename = f"{_safe_name(title)}-studybuddy.apkg"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(io.BytesIO(data), media_type="application/octet-stream", headers=headers)
