import json
import logging
import math
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel

from .config import Settings
from .database import get_db_connection, init_db
from .errors import NotFoundError, StoreError, ValidationError
from .models import LeaderboardStats, ScoreRecord
from .scoring import round_half_up

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 50


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def validate_score(record: Any) -> ScoreRecord:
    """
    Checks a raw score payload (mapping or pydantic model) and normalizes it
    into a ScoreRecord without an id. Raises ValidationError naming the field.
    """
    if isinstance(record, BaseModel):
        fields = record.model_dump()
    else:
        fields = dict(record)

    name = fields.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name", "Name is required")

    wpm = fields.get("wpm")
    if not _is_number(wpm) or wpm < 0:
        raise ValidationError("wpm", "Valid WPM is required")

    accuracy = fields.get("accuracy")
    if not _is_number(accuracy) or accuracy < 0 or accuracy > 100:
        raise ValidationError("accuracy", "Valid accuracy (0-100) is required")

    language = fields.get("language")
    if not isinstance(language, str) or not language.strip():
        raise ValidationError("language", "Language is required")

    return ScoreRecord(
        name=name.strip()[:MAX_NAME_LENGTH],
        wpm=round_half_up(wpm),
        accuracy=round_half_up(accuracy),
        language=language.strip(),
        timestamp=fields.get("timestamp") or datetime.now(timezone.utc),
    )


def rank_key(record: ScoreRecord):
    """(wpm desc, accuracy desc), ties in insertion order."""
    return (-record.wpm, -record.accuracy, record.id)


def summarize(records: List[ScoreRecord], language: Optional[str] = None) -> LeaderboardStats:
    label = language or "all"
    if not records:
        return LeaderboardStats(
            language=label,
            total_scores=0,
            total_players=0,
            top_wpm=0,
            average_wpm=0,
            average_accuracy=0,
        )

    df = pd.DataFrame([r.model_dump() for r in records])
    return LeaderboardStats(
        language=label,
        total_scores=len(df),
        total_players=int(df["name"].nunique()),
        top_wpm=int(df["wpm"].max()),
        average_wpm=round_half_up(float(df["wpm"].mean())),
        average_accuracy=round_half_up(float(df["accuracy"].mean())),
    )


class LeaderboardStore(ABC):
    """Per-language score persistence; subclasses supply the backing medium."""

    backend = "abstract"

    def __init__(self, retention: int = 1000):
        self.retention = retention

    def append(self, record: Any) -> ScoreRecord:
        score = validate_score(record)
        stored = self._insert(score)
        logger.info(
            f"New score saved: {stored.name} - {stored.wpm} WPM ({stored.language})"
        )
        return stored

    @abstractmethod
    def _insert(self, score: ScoreRecord) -> ScoreRecord:
        """Persists a validated score, assigns its id and applies retention."""

    @abstractmethod
    def top_n(self, language: str, n: int) -> List[ScoreRecord]:
        pass

    @abstractmethod
    def records(self, language: Optional[str] = None) -> List[ScoreRecord]:
        pass

    @abstractmethod
    def delete(self, score_id: int) -> ScoreRecord:
        pass

    def stats(self, language: Optional[str] = None) -> LeaderboardStats:
        return summarize(self.records(language), language)

    def close(self):
        pass


class MemoryLeaderboardStore(LeaderboardStore):
    """Process-lifetime storage, one list per language."""

    backend = "memory"

    def __init__(self, retention: int = 1000):
        super().__init__(retention)
        self._scores: Dict[str, List[ScoreRecord]] = {}
        self._last_id = 0
        self._lock = threading.Lock()

    def _insert(self, score: ScoreRecord) -> ScoreRecord:
        with self._lock:
            self._last_id += 1
            stored = score.model_copy(update={"id": self._last_id})
            scores = self._scores.setdefault(stored.language, [])
            scores.append(stored)
            if len(scores) > self.retention:
                scores.sort(key=rank_key)
                del scores[self.retention:]
            return stored

    def top_n(self, language: str, n: int) -> List[ScoreRecord]:
        with self._lock:
            scores = sorted(self._scores.get(language, []), key=rank_key)
        return scores[: max(n, 0)]

    def records(self, language: Optional[str] = None) -> List[ScoreRecord]:
        with self._lock:
            if language is not None:
                return list(self._scores.get(language, []))
            return [s for scores in self._scores.values() for s in scores]

    def delete(self, score_id: int) -> ScoreRecord:
        with self._lock:
            for scores in self._scores.values():
                for index, score in enumerate(scores):
                    if score.id == score_id:
                        return scores.pop(index)
        raise NotFoundError("Score not found")


class JsonFileLeaderboardStore(LeaderboardStore):
    """Scores kept in a flat JSON file: ``{"scores": [...], "last_id": N}``."""

    backend = "json"

    def __init__(self, path: str, retention: int = 1000):
        super().__init__(retention)
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {"scores": [], "last_id": 0}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            data["scores"] = [ScoreRecord.model_validate(s) for s in data["scores"]]
            return data
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error reading leaderboard file {self.path}: {e}")
            raise StoreError("Failed to read leaderboard") from e

    def _save(self, data: Dict[str, Any]):
        payload = {
            "scores": [s.model_dump(mode="json") for s in data["scores"]],
            "last_id": data["last_id"],
        }
        tmp_path = f"{self.path}.tmp"
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error writing leaderboard file {self.path}: {e}")
            raise StoreError("Failed to save score") from e

    def _insert(self, score: ScoreRecord) -> ScoreRecord:
        with self._lock:
            data = self._load()
            data["last_id"] += 1
            stored = score.model_copy(update={"id": data["last_id"]})
            data["scores"].append(stored)

            same_language = [s for s in data["scores"] if s.language == stored.language]
            if len(same_language) > self.retention:
                same_language.sort(key=rank_key)
                dropped = {s.id for s in same_language[self.retention:]}
                data["scores"] = [s for s in data["scores"] if s.id not in dropped]

            self._save(data)
            return stored

    def top_n(self, language: str, n: int) -> List[ScoreRecord]:
        scores = sorted(self.records(language), key=rank_key)
        return scores[: max(n, 0)]

    def records(self, language: Optional[str] = None) -> List[ScoreRecord]:
        with self._lock:
            scores = self._load()["scores"]
        if language is not None:
            scores = [s for s in scores if s.language == language]
        return scores

    def delete(self, score_id: int) -> ScoreRecord:
        with self._lock:
            data = self._load()
            for index, score in enumerate(data["scores"]):
                if score.id == score_id:
                    deleted = data["scores"].pop(index)
                    self._save(data)
                    return deleted
        raise NotFoundError("Score not found")


class SQLiteLeaderboardStore(LeaderboardStore):
    """
    Scores kept in the ``leaderboard`` table. Concurrent appends rely on
    SQLite's own transactions; every operation uses its own connection.
    """

    backend = "sqlite"

    COLUMNS = "id, name, wpm, accuracy, language, timestamp"
    RANK_ORDER = "wpm DESC, accuracy DESC, id ASC"

    def __init__(self, db_path: str, retention: int = 1000):
        super().__init__(retention)
        self.db_path = db_path
        try:
            init_db(db_path)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Database init error: {e}")
            raise StoreError("Database not available") from e

    @staticmethod
    def _to_record(row: sqlite3.Row) -> ScoreRecord:
        return ScoreRecord(
            id=row["id"],
            name=row["name"],
            wpm=row["wpm"],
            accuracy=row["accuracy"],
            language=row["language"],
            timestamp=row["timestamp"],
        )

    def _query(self, sql: str, params=()) -> List[sqlite3.Row]:
        try:
            conn = get_db_connection(self.db_path)
            try:
                return conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Database query error: {e}")
            raise StoreError("Database query failed") from e

    def _insert(self, score: ScoreRecord) -> ScoreRecord:
        try:
            conn = get_db_connection(self.db_path)
            try:
                with conn:
                    cursor = conn.execute(
                        "INSERT INTO leaderboard (name, wpm, accuracy, language, timestamp) "
                        "VALUES (?, ?, ?, ?, ?)",
                        (
                            score.name,
                            score.wpm,
                            score.accuracy,
                            score.language,
                            score.timestamp.isoformat(),
                        ),
                    )
                    stored = score.model_copy(update={"id": cursor.lastrowid})
                    conn.execute(
                        f"""
                        DELETE FROM leaderboard WHERE language = ? AND id NOT IN (
                            SELECT id FROM leaderboard WHERE language = ?
                            ORDER BY {self.RANK_ORDER} LIMIT ?
                        )
                        """,
                        (score.language, score.language, self.retention),
                    )
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Database insert error: {e}")
            raise StoreError("Failed to save score") from e
        return stored

    def top_n(self, language: str, n: int) -> List[ScoreRecord]:
        rows = self._query(
            f"SELECT {self.COLUMNS} FROM leaderboard WHERE language = ? "
            f"ORDER BY {self.RANK_ORDER} LIMIT ?",
            (language, max(n, 0)),
        )
        return [self._to_record(row) for row in rows]

    def records(self, language: Optional[str] = None) -> List[ScoreRecord]:
        if language is None:
            rows = self._query(f"SELECT {self.COLUMNS} FROM leaderboard ORDER BY id")
        else:
            rows = self._query(
                f"SELECT {self.COLUMNS} FROM leaderboard WHERE language = ? ORDER BY id",
                (language,),
            )
        return [self._to_record(row) for row in rows]

    def delete(self, score_id: int) -> ScoreRecord:
        rows = self._query(
            f"SELECT {self.COLUMNS} FROM leaderboard WHERE id = ?", (score_id,)
        )
        if not rows:
            raise NotFoundError("Score not found")
        try:
            conn = get_db_connection(self.db_path)
            try:
                with conn:
                    conn.execute("DELETE FROM leaderboard WHERE id = ?", (score_id,))
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Database delete error: {e}")
            raise StoreError("Failed to delete score") from e
        return self._to_record(rows[0])


def create_store(config: Settings) -> LeaderboardStore:
    """Builds the leaderboard backend named by ``LEADERBOARD_BACKEND``."""
    backend = config.LEADERBOARD_BACKEND.lower()
    retention = config.LEADERBOARD_RETENTION
    if backend == "memory":
        return MemoryLeaderboardStore(retention=retention)
    if backend == "json":
        return JsonFileLeaderboardStore(config.LEADERBOARD_FILE, retention=retention)
    if backend == "sqlite":
        return SQLiteLeaderboardStore(config.db_path, retention=retention)
    raise ValueError(f"Unknown leaderboard backend: {config.LEADERBOARD_BACKEND}")
