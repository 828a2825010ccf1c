from fastapi import APIRouter, Depends, HTTPException, Query

from ..errors import StoreNotInitialized
from ..schemas import Card, SaveCardResponse, SavedCardsResponse, SavedReviewDeleteResponse, SessionState
from ..services.notify import collect_notifications
from ..services.review import sessions
from ..services.saved_cards import SavedCardStore, saved_cards

router = APIRouter(prefix="/saved")

@router.get("", response_model=SavedCardsResponse)
def list_saved(store: SavedCardStore = Depends(saved_cards)):
    with collect_notifications() as notes:
        cards = store.cards
    return SavedCardsResponse(cards=cards, notifications=notes)

@router.get("/status", response_model=SaveCardResponse)
def saved_status(id: str = Query(...), store: SavedCardStore = Depends(saved_cards)):
    return SaveCardResponse(id=id, saved=store.is_saved(id))

@router.post("", response_model=SaveCardResponse)
def save_card(card: Card, store: SavedCardStore = Depends(saved_cards)):
    with collect_notifications() as notes:
        try:
            store.add(card)
        except StoreNotInitialized as e:
            raise HTTPException(503, str(e))
    card_id = store.card_id(card.question)
    return SaveCardResponse(id=card_id, saved=store.is_saved(card_id), notifications=notes)

@router.post("/toggle", response_model=SaveCardResponse)
def toggle_card(card: Card, store: SavedCardStore = Depends(saved_cards)):
    with collect_notifications() as notes:
        try:
            saved = store.toggle(card)
        except StoreNotInitialized as e:
            raise HTTPException(503, str(e))
    return SaveCardResponse(id=store.card_id(card.question), saved=saved, notifications=notes)

@router.post("/review", response_model=SessionState)
def start_saved_review(store: SavedCardStore = Depends(saved_cards)):
    cards = [Card(question=c.question, answer=c.answer) for c in store.cards]
    return sessions.create(cards, source="saved").state()

@router.delete("/review/{session_id}/current", response_model=SavedReviewDeleteResponse)
def delete_current_review_card(session_id: str, store: SavedCardStore = Depends(saved_cards)):
    session = sessions.get(session_id)
    if session is None or session.source != "saved":
        raise HTTPException(404, "Saved-card review not found.")
    removed = None
    with collect_notifications() as notes:
        card = session.remove_current()
        if card is not None:
            card_id = store.card_id(card.question)
            removed = store.get(card_id)
            try:
                store.remove(card_id)
            except StoreNotInitialized as e:
                raise HTTPException(503, str(e))
    return SavedReviewDeleteResponse(session=session.state(), removed=removed, notifications=notes)

@router.delete("/{card_id:path}", response_model=SaveCardResponse)
def delete_card(card_id: str, store: SavedCardStore = Depends(saved_cards)):
    with collect_notifications() as notes:
        try:
            store.remove(card_id)
        except StoreNotInitialized as e:
            raise HTTPException(503, str(e))
    return SaveCardResponse(id=card_id, saved=False, notifications=notes)
