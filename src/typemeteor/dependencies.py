from typing import Optional

from fastapi import Request

from .config import Settings
from .leaderboard import LeaderboardStore
from .session_manager import ActiveSession, SessionManager
from .vocabulary import VocabularyManager


def get_config(request: Request) -> Settings:
    return request.app.state.config


def get_store(request: Request) -> LeaderboardStore:
    return request.app.state.store


def get_vocab(request: Request) -> VocabularyManager:
    return request.app.state.vocab


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_session_id(request: Request) -> Optional[str]:
    return request.cookies.get(request.app.state.config.SESSION_COOKIE_NAME)


async def get_active_session(request: Request) -> Optional[ActiveSession]:
    # must run on the event loop: expiry cancels countdown tasks
    return get_sessions(request).get(get_session_id(request))
