import os
import sqlite3

from .config import settings


def get_db_connection(db_path: str = None):
    """Establishes a connection to the SQLite database."""
    conn = sqlite3.connect(db_path or settings.db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def create_log_table(conn):
    """Creates the log table if it doesn't exist."""
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                level TEXT,
                logger TEXT,
                message TEXT
            );
        """
        )


def create_leaderboard_table(conn):
    """Creates the leaderboard table and its ranking index if they don't exist."""
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS leaderboard (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                wpm INTEGER NOT NULL,
                accuracy INTEGER NOT NULL,
                language TEXT NOT NULL,
                timestamp TEXT NOT NULL
            );
        """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_leaderboard_rank
            ON leaderboard (language, wpm DESC, accuracy DESC, id);
        """
        )


def init_db(db_path: str = None):
    """Initializes the database and creates necessary tables."""
    db_path = db_path or settings.db_path
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)
    conn = get_db_connection(db_path)
    try:
        create_log_table(conn)
        create_leaderboard_table(conn)
    finally:
        conn.close()
