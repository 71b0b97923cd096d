from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class Phase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


class Judgement(BaseModel):
    model_config = ConfigDict(frozen=True)

    submitted_text: str
    correct: bool


class CharFeedback(BaseModel):
    char: str
    state: str  # correct | incorrect | pending | extra


class PerformanceTier(BaseModel):
    label: str
    message: str


class ScoreRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    name: str
    wpm: int
    accuracy: int
    language: str
    timestamp: datetime


class ScoreSubmission(BaseModel):
    """Raw client payload; checked by the leaderboard store, not by pydantic."""

    name: Optional[Any] = None
    wpm: Optional[Any] = None
    accuracy: Optional[Any] = None
    language: Optional[Any] = None
    timestamp: Optional[datetime] = None


class LeaderboardStats(BaseModel):
    language: str
    total_scores: int
    total_players: int
    top_wpm: int
    average_wpm: int
    average_accuracy: int


class SessionView(BaseModel):
    language: str
    phase: Phase
    duration: int
    seconds_remaining: int
    cursor: int
    current_input: str
    correct_count: int
    incorrect_count: int
    wpm: int
    accuracy: int
    visible_words: List[str]
    char_feedback: List[CharFeedback]
    judgements: Dict[int, Judgement]
    tier: Optional[PerformanceTier] = None


class SessionStart(BaseModel):
    language: str


class InputUpdate(BaseModel):
    text: str


class ScoreClaim(BaseModel):
    name: Optional[Any] = None
