from datetime import datetime, timezone

import pytest

from typemeteor.config import Settings
from typemeteor.errors import NotFoundError, StoreError, ValidationError
from typemeteor.leaderboard import (
    JsonFileLeaderboardStore,
    MemoryLeaderboardStore,
    SQLiteLeaderboardStore,
    create_store,
    validate_score,
)
from typemeteor.models import ScoreSubmission


def score(name, wpm, accuracy, language="english"):
    return {"name": name, "wpm": wpm, "accuracy": accuracy, "language": language}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    @pytest.mark.parametrize(
        "payload, field",
        [
            (score("", 10, 90), "name"),
            (score("   ", 10, 90), "name"),
            (score(None, 10, 90), "name"),
            (score("Ana", -1, 90), "wpm"),
            (score("Ana", "fast", 90), "wpm"),
            (score("Ana", True, 90), "wpm"),
            (score("Ana", 10, 101), "accuracy"),
            (score("Ana", 10, -5), "accuracy"),
            (score("Ana", 10, None), "accuracy"),
            (score("Ana", 10, 90, language=""), "language"),
            (score("Ana", 10, 90, language=None), "language"),
        ],
    )
    def test_rejects(self, payload, field):
        with pytest.raises(ValidationError) as excinfo:
            validate_score(payload)
        assert excinfo.value.field == field

    def test_zero_wpm_is_valid(self):
        assert validate_score(score("Ana", 0, 0)).wpm == 0

    def test_normalizes(self):
        record = validate_score(score("  " + "x" * 60 + "  ", 41.5, 87.4))
        assert record.name == "x" * 50
        assert record.wpm == 42
        assert record.accuracy == 87
        assert record.timestamp.tzinfo is not None
        assert record.id is None

    def test_keeps_supplied_timestamp(self):
        when = datetime(2024, 5, 1, tzinfo=timezone.utc)
        payload = ScoreSubmission(name="Ana", wpm=50, accuracy=95, language="english", timestamp=when)
        assert validate_score(payload).timestamp == when


# ---------------------------------------------------------------------------
# Store contract, run against every backend
# ---------------------------------------------------------------------------

class TestStoreContract:
    def test_rejects_empty_name(self, store):
        with pytest.raises(ValidationError) as excinfo:
            store.append(score("", 10, 90))
        assert excinfo.value.field == "name"
        assert store.records() == []

    def test_orders_by_wpm_then_accuracy(self, store):
        store.append(score("Ana", 50, 95))
        store.append(score("Bo", 70, 80))
        top = store.top_n("english", 2)
        assert [(s.name, s.wpm, s.accuracy) for s in top] == [("Bo", 70, 80), ("Ana", 50, 95)]

    def test_accuracy_breaks_wpm_ties(self, store):
        store.append(score("Ana", 50, 80))
        store.append(score("Bo", 50, 95))
        assert [s.name for s in store.top_n("english", 5)] == ["Bo", "Ana"]

    def test_full_ties_keep_insertion_order(self, store):
        for name in ["first", "second", "third"]:
            store.append(score(name, 30, 90))
        assert [s.name for s in store.top_n("english", 5)] == ["first", "second", "third"]

    def test_unknown_language_is_empty(self, store):
        store.append(score("Ana", 50, 95))
        assert store.top_n("klingon", 5) == []

    def test_never_more_than_n(self, store):
        for i in range(4):
            store.append(score(f"p{i}", i, 90))
        assert len(store.top_n("english", 2)) == 2
        assert store.top_n("english", 0) == []

    def test_languages_are_separate(self, store):
        store.append(score("Ana", 50, 95, language="english"))
        store.append(score("Budi", 60, 95, language="indonesian"))
        assert [s.name for s in store.top_n("english", 5)] == ["Ana"]
        assert [s.name for s in store.top_n("indonesian", 5)] == ["Budi"]

    def test_appended_record_is_returned(self, store):
        stored = store.append(score("Ana", 50, 95))
        assert stored.id is not None
        assert store.top_n("english", 1) == [stored]

    def test_retention_prunes_lowest_ranked(self, store):
        # fixture stores keep 5 records per language
        for wpm in [10, 90, 20, 80, 30, 70, 40]:
            store.append(score(f"p{wpm}", wpm, 90))
        store.append(score("other", 5, 90, language="spanish"))
        assert [s.wpm for s in store.top_n("english", 10)] == [90, 80, 70, 40, 30]
        assert len(store.records("english")) == 5
        assert len(store.records("spanish")) == 1

    def test_delete(self, store):
        stored = store.append(score("Ana", 50, 95))
        store.append(score("Bo", 60, 95))
        deleted = store.delete(stored.id)
        assert deleted.name == "Ana"
        assert [s.name for s in store.records()] == ["Bo"]

    def test_delete_missing(self, store):
        with pytest.raises(NotFoundError):
            store.delete(999)

    def test_stats(self, store):
        store.append(score("Ana", 50, 95))
        store.append(score("Ana", 61, 90))
        store.append(score("Budi", 30, 80, language="indonesian"))
        stats = store.stats()
        assert stats.language == "all"
        assert stats.total_scores == 3
        assert stats.total_players == 2
        assert stats.top_wpm == 61
        assert stats.average_wpm == 47
        assert stats.average_accuracy == 88

    def test_stats_for_language(self, store):
        store.append(score("Ana", 50, 95))
        store.append(score("Budi", 30, 80, language="indonesian"))
        stats = store.stats("english")
        assert (stats.total_scores, stats.top_wpm) == (1, 50)

    def test_stats_empty(self, store):
        stats = store.stats("klingon")
        assert stats.total_scores == 0
        assert stats.average_accuracy == 0


# ---------------------------------------------------------------------------
# Durable backends
# ---------------------------------------------------------------------------

class TestDurability:
    def test_json_survives_reopen(self, tmp_path):
        path = str(tmp_path / "scores" / "leaderboard.json")
        JsonFileLeaderboardStore(path).append(score("Ana", 50, 95))
        reopened = JsonFileLeaderboardStore(path)
        assert [s.name for s in reopened.top_n("english", 5)] == ["Ana"]
        assert reopened.append(score("Bo", 10, 95)).id == 2

    def test_sqlite_survives_reopen(self, tmp_path):
        path = str(tmp_path / "typemeteor.db")
        SQLiteLeaderboardStore(path).append(score("Ana", 50, 95))
        reopened = SQLiteLeaderboardStore(path)
        [record] = reopened.top_n("english", 5)
        assert record.name == "Ana"
        assert record.timestamp.tzinfo is not None

    def test_corrupt_json_is_store_error(self, tmp_path):
        path = tmp_path / "leaderboard.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonFileLeaderboardStore(str(path))
        with pytest.raises(StoreError):
            store.top_n("english", 5)
        with pytest.raises(StoreError):
            store.append(score("Ana", 50, 95))

    def test_unwritable_json_is_store_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileLeaderboardStore(str(blocker / "leaderboard.json"))
        with pytest.raises(StoreError):
            store.append(score("Ana", 50, 95))

    def test_sqlite_unavailable_is_store_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(StoreError):
            SQLiteLeaderboardStore(str(blocker / "typemeteor.db"))


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

class TestCreateStore:
    @pytest.mark.parametrize(
        "backend, cls",
        [
            ("memory", MemoryLeaderboardStore),
            ("json", JsonFileLeaderboardStore),
            ("SQLite", SQLiteLeaderboardStore),
        ],
    )
    def test_backends(self, config, backend, cls):
        config.LEADERBOARD_BACKEND = backend
        assert isinstance(create_store(config), cls)

    def test_unknown_backend(self):
        config = Settings()
        config.LEADERBOARD_BACKEND = "redis"
        with pytest.raises(ValueError):
            create_store(config)
