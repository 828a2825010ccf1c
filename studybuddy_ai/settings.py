from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Literal

class Settings(BaseSettings):
    # OpenAI
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    MOCK_MODE: bool = False

    # Upload limits
    MAX_FILES: int = 10
    MAX_FILE_SIZE_MB: int = 5
    MAX_TOTAL_SIZE_MB: int = 50
    MAX_QUESTIONS_SINGLE: int = 20
    MAX_QUESTIONS_BATCH: int = 10
    MAX_MATERIAL_CHARS: int = 12000

    # Saved cards
    STORAGE_DIR: str = "storage"
    SAVED_CARDS_KEY: str = "studybuddyai_saved_cards"
    SAVED_CARD_ID_MODE: Literal["question", "hash"] = "question"

    # Safety/abuse knobs
    RATE_LIMIT: str = "30/minute"
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOW_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    # Optional extra frontend
    FRONTEND_ORIGIN: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
if settings.FRONTEND_ORIGIN:
    settings.ALLOW_ORIGINS.append(settings.FRONTEND_ORIGIN)
