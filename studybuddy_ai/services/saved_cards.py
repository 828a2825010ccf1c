"""Saved flashcards, persisted to a durable slot.

The store owns the single authoritative in-memory collection. It is loaded
once by :meth:`SavedCardStore.initialize` and every successful mutation
rewrites the whole collection to the slot while holding the store lock, so
the slot never contains a state that did not exist in memory.
"""
import hashlib
import json
import threading
from typing import List, Optional, Union

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from ..errors import LoadCorruption, PersistenceFailure, StoreNotInitialized
from ..schemas import Card, SavedCard
from ..settings import settings
from .notify import toast
from .storage import SlotStorage

_cards_adapter = TypeAdapter(List[SavedCard])


def card_id_for(question: str, mode: str = "question") -> str:
    if mode == "hash":
        return hashlib.sha256(question.encode("utf-8")).hexdigest()
    return question


class SavedCardStore:
    def __init__(self, storage: SlotStorage, key: Optional[str] = None, id_mode: Optional[str] = None):
        self.storage = storage
        self.key = key or settings.SAVED_CARDS_KEY
        self.id_mode = id_mode or settings.SAVED_CARD_ID_MODE
        self._cards: List[SavedCard] = []
        self._loaded = False
        self._lock = threading.RLock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def cards(self) -> List[SavedCard]:
        with self._lock:
            return list(self._cards)

    def card_id(self, question: str) -> str:
        return card_id_for(question, self.id_mode)

    # ---------- lifecycle ----------
    def _load(self) -> List[SavedCard]:
        try:
            raw = self.storage.read(self.key)
        except UnicodeDecodeError as e:
            raise LoadCorruption(f"Saved cards slot {self.key!r} is not valid UTF-8: {e}") from e
        if raw is None:
            return []
        try:
            return _cards_adapter.validate_python(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise LoadCorruption(f"Saved cards slot {self.key!r} is unreadable: {e}") from e

    def initialize(self) -> List[SavedCard]:
        with self._lock:
            if self._loaded:
                return list(self._cards)
            try:
                self._cards = self._load()
                logger.info(f"[saved] loaded {len(self._cards)} card(s) from {self.key!r}")
            except (LoadCorruption, OSError) as e:
                logger.error(f"[saved] failed to load saved cards: {e}")
                self._cards = []
                toast("Load Error", "Could not load saved cards.", "destructive")
            finally:
                self._loaded = True
            return list(self._cards)

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise StoreNotInitialized("Saved cards must be loaded before they can be changed.")

    def _persist(self) -> None:
        body = _cards_adapter.dump_json(self._cards).decode("utf-8")
        try:
            self.storage.write(self.key, body)
        except OSError as e:
            raise PersistenceFailure(f"Could not write saved cards to {self.key!r}: {e}") from e

    def _persist_or_notify(self) -> None:
        try:
            self._persist()
        except PersistenceFailure as e:
            logger.error(f"[saved] {e}")
            toast("Save Error", "Could not save cards.", "destructive")

    # ---------- queries ----------
    def is_saved(self, card_id: str) -> bool:
        with self._lock:
            return any(c.id == card_id for c in self._cards)

    def get(self, card_id: str) -> Optional[SavedCard]:
        with self._lock:
            return next((c for c in self._cards if c.id == card_id), None)

    # ---------- mutations ----------
    def add(self, card: Union[Card, dict]) -> bool:
        """Save ``card``; returns False when a card with the same id exists."""
        card = Card.model_validate(card)
        new_id = self.card_id(card.question)
        with self._lock:
            self._require_loaded()
            if any(c.id == new_id for c in self._cards):
                toast("Already Saved", "This card is already in your saved list.")
                return False
            self._cards.append(SavedCard(id=new_id, question=card.question, answer=card.answer))
            self._persist_or_notify()
        toast("Card Saved!", "The flashcard has been added to your saved list.")
        return True

    def remove(self, card_id: str) -> bool:
        with self._lock:
            self._require_loaded()
            remaining = [c for c in self._cards if c.id != card_id]
            if len(remaining) == len(self._cards):
                return False
            self._cards = remaining
            self._persist_or_notify()
        toast("Card Removed", "The flashcard has been removed from your saved list.")
        return True

    def toggle(self, card: Union[Card, dict]) -> bool:
        """Save an unsaved card or remove a saved one; returns the new state."""
        card = Card.model_validate(card)
        with self._lock:
            card_id = self.card_id(card.question)
            if self.is_saved(card_id):
                self.remove(card_id)
                return False
            return self.add(card)


_store: Optional[SavedCardStore] = None
_store_lock = threading.Lock()

def saved_cards() -> SavedCardStore:
    global _store
    with _store_lock:
        if _store is None:
            _store = SavedCardStore(SlotStorage(settings.STORAGE_DIR))
            _store.initialize()
    return _store
