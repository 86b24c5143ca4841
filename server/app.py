"""FastAPI server for lingoghost.

Plays the part of the extension's background worker: it owns the word
ledger, score and mistake history, and talks to the language model on behalf
of page clients.
"""

import logging
import os

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

from core.config import DEFAULT_MODEL, DEFAULT_TARGET_LANGUAGE, DEFAULT_DENSITY, MAX_TRANSLATE_CHARS
from core.interfaces import TranslationError
from core.ledger import LocalProgress

from server.gemini_provider import GeminiTranslator
from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class Replacement(BaseModel):
    original: str
    translated: str
    alternatives: list[str] = []


class TranslateRequest(BaseModel):
    text: str
    target_language: str = DEFAULT_TARGET_LANGUAGE
    density: int = DEFAULT_DENSITY
    prioritized_words: Optional[list[str]] = None  # None: use the server's ledger


class TranslateResponse(BaseModel):
    replacements: list[Replacement]


class WordStatsRequest(BaseModel):
    word: str
    is_correct: bool


class WordStatsResponse(BaseModel):
    word: str
    success: int
    fails: int


class ScoreRequest(BaseModel):
    points: int


class MistakeRequest(BaseModel):
    word: str


class StatusResponse(BaseModel):
    score: int
    prioritized_words: list[str]
    tracked_words: int
    top_mistakes: list[dict]  # [{word, count}]


# Global state (in production, use proper DI)
storage = None
translator: GeminiTranslator = None
progress: LocalProgress = None


app = FastAPI(title="LingoGhost API", description="Live vocabulary coach backend")


@app.on_event("startup")
async def startup():
    """Initialize storage, progress tracking and the translator on startup."""
    global storage, translator, progress

    # File storage by default, set LINGOGHOST_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('LINGOGHOST_STORAGE', 'file')
    if storage_type == 'postgres':
        storage = PostgresStorage()
        logger.info("Using PostgreSQL storage")
    else:
        storage = FileStorage()
        logger.info("Using file storage")

    config = {}
    try:
        config = storage.load_config()
    except FileNotFoundError:
        pass

    # Get API key from environment variable first, then fall back to config file
    api_key = os.environ.get('GEMINI_API_KEY') or config.get('gemini_api_key')
    if not api_key:
        logger.warning(
            "GEMINI_API_KEY not set and no key in ~/.config/lingoghost/config.json; "
            "translation requests will fail until one is provided"
        )

    progress = LocalProgress(storage)
    translator = GeminiTranslator(api_key, model_name=config.get('model_id') or DEFAULT_MODEL)
    logger.info(f"Translator initialized: {translator.model_name}")


@app.get("/")
async def root():
    """Health check."""
    return {"service": "lingoghost", "status": "ok"}


@app.post("/api/translate", response_model=TranslateResponse)
async def translate(request: TranslateRequest):
    """Pick and translate words from a batch of page text."""
    words = request.prioritized_words
    if words is None:
        words = progress.get_prioritized_words()
        if words:
            logger.info(f"Memory: prioritizing words {words}")

    try:
        specs = await translator.translate(
            request.text[:MAX_TRANSLATE_CHARS], request.target_language, words, density=request.density
        )
    except TranslationError as e:
        logger.error(f"Translation failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return TranslateResponse(replacements=[Replacement(**spec.to_dict()) for spec in specs])


@app.post("/api/word-stats", response_model=WordStatsResponse)
async def update_word_stats(request: WordStatsRequest):
    """Record a quiz outcome for a word."""
    if not request.word:
        raise HTTPException(status_code=400, detail="Word must not be empty")
    stat = progress.ledger.record_outcome(request.word, request.is_correct)
    return WordStatsResponse(word=request.word, success=stat.success_count, fails=stat.fail_count)


@app.post("/api/score")
async def update_score(request: ScoreRequest):
    """Apply a signed score change."""
    return {"score": progress.add_score(request.points)}


@app.post("/api/mistakes")
async def record_mistake(request: MistakeRequest):
    """Count a missed word in the mistake history."""
    if not request.word:
        raise HTTPException(status_code=400, detail="Word must not be empty")
    return {"word": request.word, "count": progress.mistakes.record(request.word)}


@app.get("/api/priority-words")
async def get_priority_words():
    """Words the learner struggles with, for the next sampling round."""
    return {"words": progress.get_prioritized_words()}


@app.get("/api/status", response_model=StatusResponse)
async def get_status():
    """Score and learning progress."""
    return StatusResponse(
        score=progress.scoreboard.score,
        prioritized_words=progress.get_prioritized_words(),
        tracked_words=len(progress.ledger.words),
        top_mistakes=[{"word": w, "count": c} for w, c in progress.mistakes.top(10)]
    )


@app.get("/api/stats")
async def get_api_stats():
    """Model usage statistics."""
    return translator.get_stats()


def create_app():
    """Factory function for creating the app (useful for testing)."""
    return app
