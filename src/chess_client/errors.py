"""
Error taxonomy for the client.

Everything derived from ChessClientError is reported by the command registry and the
REPL keeps going. Any other exception is a bug and is allowed to take the process down.
"""
from __future__ import annotations
from typing import Optional


class ChessClientError(Exception):
    """Base class for errors that are reported to the user without ending the session."""


class TransportError(ChessClientError):
    """The request never produced a usable response (connection refused, timeout, bad JSON)."""


class UsageError(ChessClientError):
    """Bad arguments or missing context, detected before any request is made."""


class APIError(ChessClientError):
    """The service answered with a status >= 400."""

    def __init__(self, status: int, error: str = "", code: str = "", details: str = "", raw_body: str = ""):
        self.status = status
        self.error = error
        self.code = code
        self.details = details
        self.raw_body = raw_body
        super().__init__(self._summary())

    def _summary(self) -> str:
        if self.error:
            msg = f"{self.error} (status {self.status}"
            if self.code:
                msg += f", code {self.code}"
            msg += ")"
            if self.details:
                msg += f": {self.details}"
            return msg
        if self.raw_body:
            return f"request failed with status {self.status}: {self.raw_body.strip()}"
        return f"request failed with status {self.status}"

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class ReconcileTimeout(ChessClientError):
    """Bounded polling gave up before the service left the pending state.

    The move that started the computation may already have been accepted,
    so this is reported separately from transport failures.
    """

    def __init__(self, game_id: str, attempts: int, interval_s: float, last_error: Optional[Exception] = None):
        self.game_id = game_id
        self.attempts = attempts
        self.interval_s = interval_s
        self.last_error = last_error
        super().__init__(
            f"timeout waiting for computer move in game {game_id} after {attempts} attempts "
            f"(~{attempts * interval_s:.1f}s); the move may still complete, use 'show' or 'poll' to check"
        )
