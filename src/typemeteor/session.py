import logging
from typing import Dict, List

from . import scoring
from .models import CharFeedback, Judgement, Phase, SessionView
from .words import WordStream

logger = logging.getLogger(__name__)


class TypingSession:
    """
    State machine for one timed typing test: idle -> running -> finished.

    The session does no I/O and never raises for illegal operations; input
    while finished, commits of empty input and ticks outside the running
    phase are ignored. The caller owns the clock and calls ``tick`` once per
    second while the session is running.
    """

    def __init__(self, stream: WordStream, language: str = "", duration: int = 60):
        self.stream = stream
        self.language = language
        self.duration = duration
        self._clear()

    def _clear(self):
        self.phase = Phase.IDLE
        self.cursor = 0
        self.current_input = ""
        self.judgements: Dict[int, Judgement] = {}
        self.correct_count = 0
        self.incorrect_count = 0
        self.seconds_remaining = self.duration
        self.wpm = 0
        self.accuracy = 100

    @property
    def elapsed_seconds(self) -> int:
        return self.duration - self.seconds_remaining

    @property
    def is_running(self) -> bool:
        return self.phase is Phase.RUNNING

    @property
    def is_finished(self) -> bool:
        return self.phase is Phase.FINISHED

    @property
    def current_word(self) -> str:
        if self.cursor < len(self.stream):
            return self.stream[self.cursor]
        return ""

    def update_input(self, text: str):
        if self.phase is Phase.FINISHED:
            return
        if self.phase is Phase.IDLE:
            if not text:
                return
            self.phase = Phase.RUNNING
            logger.debug(f"Session started [{self.language}]")
        # space and enter commit a word, they are never part of it
        self.current_input = text.replace(" ", "")

    def commit_word(self) -> bool:
        """Judges the current input against the word at the cursor. Returns False when ignored."""
        if self.phase is not Phase.RUNNING or not self.current_input:
            return False
        if self.cursor >= len(self.stream):
            return False

        submitted = self.current_input.strip()
        is_correct = submitted == self.stream[self.cursor]
        self.judgements[self.cursor] = Judgement(submitted_text=submitted, correct=is_correct)
        if is_correct:
            self.correct_count += 1
        else:
            self.incorrect_count += 1
        self.cursor += 1
        self.current_input = ""

        self.stream.ensure_ahead(self.cursor)
        self._update_metrics()
        return True

    def tick(self) -> bool:
        """Advances the countdown by one second. Returns True while the session keeps running."""
        if self.phase is not Phase.RUNNING:
            return False
        self.seconds_remaining = max(0, self.seconds_remaining - 1)
        self._update_metrics()
        if self.seconds_remaining == 0:
            self.finish()
            return False
        return True

    def finish(self):
        if self.phase is Phase.FINISHED:
            return
        self.phase = Phase.FINISHED
        logger.debug(
            f"Session finished [{self.language}]: {self.wpm} WPM, {self.accuracy}% accuracy"
        )

    def reset(self):
        self.stream.resample()
        self._clear()

    def _update_metrics(self):
        self.wpm = scoring.words_per_minute(self.correct_count, self.elapsed_seconds)
        self.accuracy = scoring.accuracy(self.correct_count, self.incorrect_count)

    def visible_words(self, window: int = 30) -> List[str]:
        return self.stream.window(self.cursor, window)

    def char_feedback(self) -> List[CharFeedback]:
        return scoring.char_feedback(self.current_word, self.current_input)

    def snapshot(self, window: int = 30) -> SessionView:
        tier = None
        if self.phase is Phase.FINISHED:
            tier = scoring.performance_tier(self.wpm, self.accuracy)
        return SessionView(
            language=self.language,
            phase=self.phase,
            duration=self.duration,
            seconds_remaining=self.seconds_remaining,
            cursor=self.cursor,
            current_input=self.current_input,
            correct_count=self.correct_count,
            incorrect_count=self.incorrect_count,
            wpm=self.wpm,
            accuracy=self.accuracy,
            visible_words=self.visible_words(window),
            char_feedback=self.char_feedback(),
            judgements=dict(self.judgements),
            tier=tier,
        )
