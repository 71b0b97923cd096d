import logging

from .database import get_db_connection


class SQLiteHandler(logging.Handler):
    """
    A logging handler that writes records to the ``logs`` table of the
    service database, tagged with the name of the emitting logger.
    """

    def __init__(self, db_path: str = None, level=logging.INFO):
        super().__init__(level=level)
        self.db_path = db_path

    def emit(self, record):
        try:
            conn = get_db_connection(self.db_path)
            try:
                with conn:
                    conn.execute(
                        "INSERT INTO logs (level, logger, message) VALUES (?, ?, ?)",
                        (record.levelname, record.name, self.format(record)),
                    )
            finally:
                conn.close()
        except Exception:
            self.handleError(record)
