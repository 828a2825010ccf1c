from typing import List, Optional


class StudyBuddyError(Exception):
    """Base class for recoverable StudyBuddy errors."""


class UploadValidationError(StudyBuddyError):
    """Raised when an upload batch violates one or more constraints.

    Carries every violated constraint as a ``{"field": ..., "message": ...}``
    dict so callers can render them next to the matching form field.
    """

    def __init__(self, errors: List[dict]):
        self.errors = errors
        self.notifications: list = []
        super().__init__("; ".join(e["message"] for e in errors) or "Invalid input")


class EncodingError(StudyBuddyError):
    """Raised when a file cannot be turned into a study material payload."""


class GenerationError(StudyBuddyError):
    """Raised when the generation service fails or returns malformed data."""


class PerFileGenerationError(StudyBuddyError):
    def __init__(self, filename: str, cause: Optional[BaseException] = None):
        self.filename = filename
        self.cause = cause
        detail = str(cause) if cause else "AI failed to generate cards for this file."
        super().__init__(f"{filename}: {detail}")


class TotalBatchFailure(StudyBuddyError):
    """Raised when no file in a batch produced cards."""


class LoadCorruption(StudyBuddyError):
    """Raised when the saved-card slot holds content that cannot be parsed."""


class PersistenceFailure(StudyBuddyError):
    """Raised when the saved-card slot cannot be written."""


class StoreNotInitialized(StudyBuddyError):
    """Raised when the saved-card store is mutated before it was loaded."""
