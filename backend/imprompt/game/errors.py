from __future__ import annotations


class GameError(Exception):
    """Base for intent failures scoped to a single room.

    ``code`` is the machine-readable token sent to clients, ``message`` the
    human text. ``silent`` errors are logged and acked but never emitted.
    """

    code = "game_error"

    def __init__(self, message: str = "", code: str | None = None, silent: bool = False) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code
        if code:
            self.code = code
        self.silent = silent


class ValidationError(GameError):
    code = "invalid_payload"


class NotFoundError(GameError):
    code = "room_not_found"


class ConflictError(GameError):
    code = "conflict"


class AuthorizationError(GameError):
    code = "not_allowed"


class GenerationFailure(GameError):
    code = "generation_failed"
