class TypemeteorError(Exception):
    """Base class for errors surfaced by the service."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TypemeteorError):
    """Malformed client input. ``field`` names the offending field."""

    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class NotFoundError(TypemeteorError):
    status_code = 404


class StoreError(TypemeteorError):
    """The leaderboard backing medium is unavailable or a query failed."""

    status_code = 500
