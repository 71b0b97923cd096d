import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .config import Settings
from .dependencies import (
    get_active_session,
    get_config,
    get_session_id,
    get_sessions,
    get_store,
    get_vocab,
)
from .errors import StoreError
from .leaderboard import LeaderboardStore
from .models import (
    InputUpdate,
    LeaderboardStats,
    ScoreClaim,
    ScoreSubmission,
    SessionStart,
    SessionView,
)
from .session_manager import ActiveSession, SessionManager
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_invalid() -> JSONResponse:
    return JSONResponse({"error": "Session invalid"}, status_code=401)


@router.get("/")
def root(store: LeaderboardStore = Depends(get_store)):
    return {
        "name": "Typemeteor API",
        "status": "ok",
        "database": store.backend,
        "endpoints": {
            "GET /api/languages": "List available languages",
            "GET /api/words/{language}": "Get random words for a language",
            "POST /api/leaderboard": "Save a typing test score",
            "GET /api/leaderboard/{language}": "Get leaderboard for a language",
            "GET /api/stats": "Leaderboard statistics",
            "POST /api/session/start": "Start a typing session",
        },
    }


# --- Words ---


@router.get("/api/languages")
def get_languages(vocab: VocabularyManager = Depends(get_vocab)):
    return vocab.get_languages()


@router.get("/api/words/{language}")
def get_words(
    language: str,
    count: Optional[int] = None,
    vocab: VocabularyManager = Depends(get_vocab),
    config: Settings = Depends(get_config),
):
    if count is None:
        count = config.WORDS_DEFAULT_COUNT
    words = vocab.sample(language, count)
    return {
        "words": words,
        "language": language,
        "total": len(vocab.get_words(language)),
    }


# --- Leaderboard ---


@router.post("/api/leaderboard")
@router.post("/api/scores")
def save_score(payload: ScoreSubmission, store: LeaderboardStore = Depends(get_store)):
    score = store.append(payload)
    return {
        "success": True,
        "score": score.model_dump(mode="json"),
        "message": "Score saved successfully",
    }


@router.get("/api/leaderboard/{language}")
def get_leaderboard(
    language: str,
    limit: Optional[int] = None,
    store: LeaderboardStore = Depends(get_store),
    config: Settings = Depends(get_config),
):
    if limit is None:
        limit = config.LEADERBOARD_LIMIT
    try:
        scores = store.top_n(language, limit)
    except StoreError as e:
        return JSONResponse(
            {"error": e.message, "scores": [], "language": language, "total": 0},
            status_code=500,
        )
    return {
        "scores": [s.model_dump(mode="json") for s in scores],
        "language": language,
        "total": len(scores),
    }


@router.get("/api/stats", response_model=LeaderboardStats)
def get_stats(
    language: Optional[str] = None, store: LeaderboardStore = Depends(get_store)
):
    if language == "all":
        language = None
    return store.stats(language)


@router.delete("/api/scores/{score_id}")
def delete_score(score_id: int, store: LeaderboardStore = Depends(get_store)):
    deleted = store.delete(score_id)
    logger.info(f"Score deleted: {deleted.name} - {deleted.wpm} WPM")
    return {"success": True, "deleted": deleted.model_dump(mode="json")}


# --- Typing sessions ---


@router.post("/api/session/start", response_model=SessionView)
async def start_session(
    payload: SessionStart,
    response: Response,
    sessions: SessionManager = Depends(get_sessions),
    session_id: Optional[str] = Depends(get_session_id),
    config: Settings = Depends(get_config),
):
    new_id = sessions.create(payload.language)
    if session_id:
        sessions.discard(session_id)
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=new_id,
        httponly=True,
        samesite="Lax",
    )
    return sessions.sessions[new_id].session.snapshot(config.VISIBLE_WORDS)


@router.get("/api/session", response_model=SessionView)
async def get_session(
    active: Optional[ActiveSession] = Depends(get_active_session),
    config: Settings = Depends(get_config),
):
    if not active:
        return _session_invalid()
    return active.session.snapshot(config.VISIBLE_WORDS)


@router.put("/api/session/input", response_model=SessionView)
async def update_input(
    payload: InputUpdate,
    active: Optional[ActiveSession] = Depends(get_active_session),
    sessions: SessionManager = Depends(get_sessions),
    config: Settings = Depends(get_config),
):
    if not active:
        return _session_invalid()
    sessions.update_input(active, payload.text)
    return active.session.snapshot(config.VISIBLE_WORDS)


@router.post("/api/session/commit", response_model=SessionView)
async def commit_word(
    active: Optional[ActiveSession] = Depends(get_active_session),
    sessions: SessionManager = Depends(get_sessions),
    config: Settings = Depends(get_config),
):
    if not active:
        return _session_invalid()
    sessions.commit(active)
    return active.session.snapshot(config.VISIBLE_WORDS)


@router.post("/api/session/finish", response_model=SessionView)
async def finish_session(
    active: Optional[ActiveSession] = Depends(get_active_session),
    sessions: SessionManager = Depends(get_sessions),
    config: Settings = Depends(get_config),
):
    if not active:
        return _session_invalid()
    sessions.finish(active)
    return active.session.snapshot(config.VISIBLE_WORDS)


@router.post("/api/session/reset", response_model=SessionView)
async def reset_session(
    active: Optional[ActiveSession] = Depends(get_active_session),
    sessions: SessionManager = Depends(get_sessions),
    config: Settings = Depends(get_config),
):
    if not active:
        return _session_invalid()
    sessions.reset(active)
    return active.session.snapshot(config.VISIBLE_WORDS)


@router.post("/api/session/score")
async def save_session_score(
    payload: ScoreClaim,
    active: Optional[ActiveSession] = Depends(get_active_session),
    store: LeaderboardStore = Depends(get_store),
):
    if not active:
        return _session_invalid()
    session = active.session
    if not session.is_finished:
        return JSONResponse({"error": "Test not finished"}, status_code=409)
    score = await run_in_threadpool(
        store.append,
        {
            "name": payload.name,
            "wpm": session.wpm,
            "accuracy": session.accuracy,
            "language": session.language,
        },
    )
    return {
        "success": True,
        "score": score.model_dump(mode="json"),
        "message": "Score saved successfully",
    }


@router.delete("/api/session")
async def delete_session(
    response: Response,
    sessions: SessionManager = Depends(get_sessions),
    session_id: Optional[str] = Depends(get_session_id),
    config: Settings = Depends(get_config),
):
    if session_id:
        sessions.discard(session_id)
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return {"status": "success"}
