import random

import pytest
from fastapi.testclient import TestClient

from typemeteor.app import create_app
from typemeteor.config import Settings
from typemeteor.leaderboard import (
    JsonFileLeaderboardStore,
    MemoryLeaderboardStore,
    SQLiteLeaderboardStore,
)
from typemeteor.words import WordStream


@pytest.fixture
def vocab_dir(tmp_path):
    directory = tmp_path / "vocabulary"
    directory.mkdir()
    (directory / "english.csv").write_text("word\ncat\ndog\nbird\nfish\n", encoding="utf-8")
    (directory / "indonesian.csv").write_text("word\nkucing\nanjing\n", encoding="utf-8")
    return directory


@pytest.fixture
def config(tmp_path, vocab_dir):
    config = Settings()
    config.LOG_DIR = str(tmp_path / "log")
    config.DB_DIR = str(tmp_path / "db")
    config.VOCAB_DIR = str(vocab_dir)
    config.LEADERBOARD_BACKEND = "memory"
    config.LEADERBOARD_FILE = str(tmp_path / "db" / "leaderboard.json")
    return config


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as client:
        yield client


@pytest.fixture(params=["memory", "json", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        store = MemoryLeaderboardStore(retention=5)
    elif request.param == "json":
        store = JsonFileLeaderboardStore(str(tmp_path / "leaderboard.json"), retention=5)
    else:
        store = SQLiteLeaderboardStore(str(tmp_path / "typemeteor.db"), retention=5)
    yield store
    store.close()


@pytest.fixture
def stream():
    return WordStream(["cat", "dog"], words=["cat", "dog"], rng=random.Random(7))
