from fastapi import APIRouter, HTTPException

from ..schemas import SessionState
from ..services.review import ReviewSession, sessions

router = APIRouter(prefix="/sessions")

def _session(session_id: str) -> ReviewSession:
    s = sessions.get(session_id)
    if s is None:
        raise HTTPException(404, "Review session not found.")
    return s

@router.get("/{session_id}", response_model=SessionState)
def get_session(session_id: str):
    return _session(session_id).state()

@router.post("/{session_id}/flip", response_model=SessionState)
def flip(session_id: str):
    s = _session(session_id)
    s.flip()
    return s.state()

@router.post("/{session_id}/advance", response_model=SessionState)
def advance(session_id: str):
    s = _session(session_id)
    s.advance()
    return s.state()

@router.post("/{session_id}/next", response_model=SessionState)
def next_card(session_id: str):
    s = _session(session_id)
    s.next()
    return s.state()

@router.post("/{session_id}/previous", response_model=SessionState)
def previous_card(session_id: str):
    s = _session(session_id)
    s.previous()
    return s.state()

@router.delete("/{session_id}")
def end_session(session_id: str):
    if not sessions.drop(session_id):
        raise HTTPException(404, "Review session not found.")
    return {"deleted": True, "id": session_id}
