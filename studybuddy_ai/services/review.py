import threading
import uuid
from collections import OrderedDict
from typing import List, Literal, Optional

from ..schemas import Card, SessionState

MAX_SESSIONS = 100

SessionSource = Literal["generated", "saved"]

class ReviewSession:
    """A deck of cards being reviewed. Never persisted.

    ``generated`` sessions hold the cards of one generation run and finish
    after the last card. ``saved`` sessions page through the saved library,
    wrap around at both ends, and allow the current card to be deleted.
    Navigation on one session is serialized by a per-session lock.
    """

    def __init__(self, cards: List[Card], session_id: Optional[str] = None,
                 source: SessionSource = "generated"):
        self.id = session_id or uuid.uuid4().hex
        self.source = source
        self.cards = list(cards)
        self.index = 0
        self.flipped = False
        self.finished = not self.cards
        self._lock = threading.Lock()

    @property
    def current(self) -> Optional[Card]:
        if self.finished or not self.cards:
            return None
        return self.cards[self.index]

    def flip(self) -> None:
        with self._lock:
            if not self.finished:
                self.flipped = not self.flipped

    def advance(self) -> None:
        """Show the next card; past the last one the session is finished."""
        with self._lock:
            self.flipped = False
            if self.index < len(self.cards) - 1:
                self.index += 1
            else:
                self.finished = True

    def next(self) -> None:
        with self._lock:
            if self.cards:
                self.flipped = False
                self.index = self.index + 1 if self.index < len(self.cards) - 1 else 0

    def previous(self) -> None:
        with self._lock:
            if self.cards:
                self.flipped = False
                self.index = self.index - 1 if self.index > 0 else len(self.cards) - 1

    def remove_current(self) -> Optional[Card]:
        """Drop the card on screen and return it.

        The following card takes its place; deleting the last card moves back
        to the new last one.
        """
        with self._lock:
            if self.finished or not self.cards:
                return None
            total = len(self.cards)
            removed = self.cards.pop(self.index)
            if total <= 1:
                self.index = 0
            elif self.index >= total - 1:
                self.index = total - 2
            self.flipped = False
            self.finished = not self.cards
            return removed

    def state(self) -> SessionState:
        with self._lock:
            return SessionState(
                id=self.id,
                source=self.source,
                index=self.index,
                total=len(self.cards),
                flipped=self.flipped,
                finished=self.finished,
                card=self.current,
            )


class SessionRegistry:
    """Process-local review sessions, oldest dropped first."""

    def __init__(self, limit: int = MAX_SESSIONS):
        self.limit = limit
        self._sessions: "OrderedDict[str, ReviewSession]" = OrderedDict()
        self._lock = threading.Lock()

    def create(self, cards: List[Card], source: SessionSource = "generated") -> ReviewSession:
        session = ReviewSession(cards, source=source)
        with self._lock:
            self._sessions[session.id] = session
            while len(self._sessions) > self.limit:
                self._sessions.popitem(last=False)
        return session

    def get(self, session_id: str) -> Optional[ReviewSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def drop(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None


sessions = SessionRegistry()
