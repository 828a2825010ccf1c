from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from .errors import TotalBatchFailure

class Card(BaseModel):
    question: str
    answer: str

class QuestionCardSet(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_cards: List[Card] = Field(alias="questionCards")

class SavedCard(BaseModel):
    id: str
    question: str
    answer: str

class Notification(BaseModel):
    title: str
    description: str = ""
    variant: Literal["default", "destructive"] = "default"

class BatchOutcome(BaseModel):
    status: Literal["ok", "failed", "empty"]
    cards: List[Card] = Field(default_factory=list)
    successful_files: int = 0
    failed_files: int = 0
    notifications: List[Notification] = Field(default_factory=list)

    def raise_for_status(self) -> None:
        if self.status == "failed":
            raise TotalBatchFailure(
                f"Could not generate cards from any of the {self.failed_files} file(s)."
            )

class SessionState(BaseModel):
    id: str
    source: Literal["generated", "saved"] = "generated"
    index: int
    total: int
    flipped: bool
    finished: bool
    card: Optional[Card] = None

class GenerateResponse(BaseModel):
    session: Optional[SessionState] = None
    cards: List[Card]
    successful_files: int
    failed_files: int
    notifications: List[Notification]

class SavedCardsResponse(BaseModel):
    cards: List[SavedCard]
    notifications: List[Notification] = Field(default_factory=list)

class SaveCardResponse(BaseModel):
    id: str
    saved: bool
    notifications: List[Notification] = Field(default_factory=list)

class SavedReviewDeleteResponse(BaseModel):
    session: SessionState
    removed: Optional[SavedCard] = None
    notifications: List[Notification] = Field(default_factory=list)
