import os


class Settings:
    PROJECT_NAME: str = "typemeteor"
    DEBUG: bool = os.environ.get("DEBUG", "").lower() in ("1", "true", "yes")
    LOG_DIR: str = os.environ.get("LOG_DIR", "log")
    LOG_FILE: str = "typemeteor.log"
    LOG_TO_DB: bool = os.environ.get("LOG_TO_DB", "").lower() in ("1", "true", "yes")
    DB_DIR: str = os.environ.get("DB_DIR", "db")
    DB_FILE: str = "typemeteor.db"
    VOCAB_DIR: str = os.environ.get("VOCAB_DIR", "vocabulary")
    # memory | json | sqlite
    LEADERBOARD_BACKEND: str = os.environ.get("LEADERBOARD_BACKEND", "memory")
    LEADERBOARD_FILE: str = os.environ.get("LEADERBOARD_FILE", "db/leaderboard.json")
    LEADERBOARD_RETENTION: int = 1000
    LEADERBOARD_LIMIT: int = 100
    WORDS_DEFAULT_COUNT: int = 200
    TEST_DURATION_SECONDS: int = 60
    TICK_INTERVAL_SECONDS: float = 1.0
    WORD_BATCH_SIZE: int = 200
    WORD_REFILL_MARGIN: int = 50
    WORD_REFILL_SIZE: int = 100
    VISIBLE_WORDS: int = 30
    SESSION_COOKIE_NAME: str = "typing_session_id"
    SESSION_TIMEOUT_MINUTES: int = 120
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")
    CORS_ORIGINS: list = ["*"]

    @property
    def db_path(self) -> str:
        return os.path.join(self.DB_DIR, self.DB_FILE)


settings = Settings()
