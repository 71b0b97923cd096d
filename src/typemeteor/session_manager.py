import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional

from .config import Settings
from .session import TypingSession
from .timer import Countdown
from .vocabulary import VocabularyManager
from .words import WordStream

logger = logging.getLogger(__name__)


@dataclass
class ActiveSession:
    session: TypingSession
    countdown: Countdown
    created_at: datetime = field(default_factory=datetime.now)


class SessionManager:
    """Server-side typing sessions keyed by id, each owning its countdown."""

    def __init__(
        self,
        vocab: VocabularyManager,
        config: Settings,
        rng: Optional[random.Random] = None,
    ):
        self.vocab = vocab
        self.config = config
        self._rng = rng
        self.sessions: Dict[str, ActiveSession] = {}

    def create(self, language: str) -> str:
        pool = self.vocab.get_words(language)
        stream = WordStream(
            pool,
            initial_size=self.config.WORD_BATCH_SIZE,
            refill_margin=self.config.WORD_REFILL_MARGIN,
            refill_size=self.config.WORD_REFILL_SIZE,
            rng=self._rng,
        )
        session = TypingSession(
            stream, language=language, duration=self.config.TEST_DURATION_SECONDS
        )
        countdown = Countdown(session.tick, interval=self.config.TICK_INTERVAL_SECONDS)

        session_id = str(uuid.uuid4())
        self.sessions[session_id] = ActiveSession(session=session, countdown=countdown)
        logger.info(f"New session: {session_id} [Language: {language}]")
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[ActiveSession]:
        if not session_id or session_id not in self.sessions:
            return None
        active = self.sessions[session_id]
        if datetime.now() - active.created_at > timedelta(
            minutes=self.config.SESSION_TIMEOUT_MINUTES
        ):
            logger.info(f"Session expired: {session_id}")
            self.discard(session_id)
            return None
        return active

    def update_input(self, active: ActiveSession, text: str):
        active.session.update_input(text)
        if active.session.is_running:
            active.countdown.start()

    def commit(self, active: ActiveSession) -> bool:
        return active.session.commit_word()

    def reset(self, active: ActiveSession):
        active.countdown.cancel()
        active.session.reset()
        active.created_at = datetime.now()

    def finish(self, active: ActiveSession):
        active.countdown.cancel()
        active.session.finish()

    def discard(self, session_id: str):
        active = self.sessions.pop(session_id, None)
        if active is not None:
            active.countdown.cancel()

    def shutdown(self):
        for session_id in list(self.sessions):
            self.discard(session_id)
