from __future__ import annotations

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler

from .settings import settings
from .services.saved_cards import saved_cards
from .routers import upload, sessions, library, export

# ---------- logging ----------
logger.remove()
logger.add(
    sys.stdout,
    format="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {message}",
    level=settings.LOG_LEVEL,
)

# ---------- lifecycle ----------
@asynccontextmanager
async def lifespan(app: FastAPI):
    # load saved cards before anything can change them
    store = saved_cards()
    logger.info(f"[startup] {len(store.cards)} saved card(s) ready; mock={settings.MOCK_MODE}")
    yield

# ---------- app / limiter ----------
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT])
app = FastAPI(title="StudyBuddy AI API", version="1.0.0", lifespan=lifespan)
app.state.limiter = limiter

# ---------- CORS ----------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# SlowAPI middleware + handler
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ---------- health ----------
@app.get("/health")
def health():
    return {
        "ok": True,
        "mock": settings.MOCK_MODE,
        "model": settings.OPENAI_MODEL,
        "rate_limit": settings.RATE_LIMIT,
        "max_files": settings.MAX_FILES,
        "max_file_size_mb": settings.MAX_FILE_SIZE_MB,
        "max_total_size_mb": settings.MAX_TOTAL_SIZE_MB,
        "max_questions": {
            "single": settings.MAX_QUESTIONS_SINGLE,
            "batch": settings.MAX_QUESTIONS_BATCH,
        },
    }

# ---------- routers ----------
app.include_router(upload.router, tags=["upload"])
app.include_router(sessions.router, tags=["sessions"])
app.include_router(library.router, tags=["library"])
app.include_router(export.router, tags=["export"])
