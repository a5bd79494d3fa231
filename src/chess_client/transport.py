"""
HTTP transport for the chess service API.

- APIClient wraps one requests.Session: JSON bodies in, JSON bodies out, bearer auth when a token is set.
- Every call is a single attempt. Retrying and polling live in reconcile.py, never here.
- Failures are classified into the client taxonomy: TransportError (no usable response) or
  APIError (status >= 400, structured body when the service sent one, raw body otherwise).
- Request/response tracing goes to the display; bodies are only dumped in verbose mode.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Callable, Dict, Optional, TypeVar

import requests

from . import display
from .api_types import (
    COMPUTER_MOVE,
    AuthResult,
    BoardView,
    CreateGameRequest,
    GameState,
    HealthStatus,
    UserProfile,
)
from .config import SETTINGS
from .errors import APIError, TransportError

log = logging.getLogger("transport")

T = TypeVar("T")


def normalize_base_url(url: str) -> str:
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "http://" + url
    return url.rstrip("/")


class APIClient:
    def __init__(self, base_url: str | None = None, api_prefix: str | None = None,
                 timeout_s: float | None = None, long_poll_timeout_s: float | None = None,
                 http: requests.Session | None = None):
        self.base_url = normalize_base_url(base_url or SETTINGS.api_url)
        self.api_prefix = (SETTINGS.api_prefix if api_prefix is None else api_prefix).rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else SETTINGS.http_timeout_s
        self.long_poll_timeout_s = long_poll_timeout_s if long_poll_timeout_s is not None else SETTINGS.long_poll_timeout_s
        self.http = http or requests.Session()
        self.token = ""
        self.verbose = False

    # ---------------- Configuration -----------------
    def set_base_url(self, url: str) -> None:
        self.base_url = normalize_base_url(url)

    def set_token(self, token: str) -> None:
        self.token = token or ""

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = bool(verbose)

    # ---------------- Core request -----------------
    def request(self, method: str, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None,
                timeout: float | None = None) -> Any:
        """Send one request and return the decoded JSON body (None for an empty body)."""
        method = method.upper()
        url = self.base_url + path
        headers = {"Accept": "application/json"}
        if body is not None:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        shown_path = path
        if params:
            shown_path += "?" + "&".join(f"{k}={v}" for k, v in params.items())
        display.trace_request(method, shown_path, body, self.verbose)
        log.debug("%s %s", method, url)

        try:
            rsp = self.http.request(
                method,
                url,
                data=json.dumps(body) if body is not None else None,
                params=params,
                headers=headers,
                timeout=timeout or self.timeout_s,
            )
        except requests.exceptions.Timeout as e:
            log.warning("%s %s timed out: %s", method, url, e)
            raise TransportError(f"request timed out: {method} {shown_path}") from e
        except requests.exceptions.ConnectionError as e:
            log.warning("%s %s connection failed: %s", method, url, e)
            raise TransportError(f"cannot reach {self.base_url}: connection failed") from e
        except requests.exceptions.RequestException as e:
            log.warning("%s %s failed: %s", method, url, e)
            raise TransportError(f"request failed: {e}") from e

        text = rsp.text or ""
        display.trace_response(rsp.status_code, rsp.reason, text, self.verbose)

        if rsp.status_code >= 400:
            raise self._api_error(rsp.status_code, text)

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            log.warning("Malformed JSON from %s %s: %r", method, url, text[:200])
            raise TransportError(f"malformed JSON in response to {method} {shown_path}") from e

    @staticmethod
    def _api_error(status: int, text: str) -> APIError:
        try:
            data = json.loads(text)
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("error"):
            details = data.get("details")
            return APIError(
                status,
                error=str(data.get("error")),
                code=str(data.get("code") or ""),
                details="" if details is None else str(details),
                raw_body=text,
            )
        # Unstructured error body: keep it verbatim for the user
        return APIError(status, raw_body=text)

    def _decode(self, factory: Callable[[Dict[str, Any]], T], data: Any, what: str) -> T:
        if not isinstance(data, dict):
            raise TransportError(f"unexpected {what} response: expected a JSON object")
        try:
            return factory(data)
        except (AttributeError, KeyError, TypeError, ValueError, OverflowError, OSError) as e:
            # well-formed JSON of the wrong shape, or timestamps out of range
            raise TransportError(f"unexpected {what} response: {e!r}") from e

    def _games(self, suffix: str = "") -> str:
        return f"{self.api_prefix}/games{suffix}"

    # ---------------- Endpoints -----------------
    def health(self) -> HealthStatus:
        return self._decode(HealthStatus.from_dict, self.request("GET", "/health"), "health")

    def create_game(self, req: CreateGameRequest) -> GameState:
        return self._decode(GameState.from_dict, self.request("POST", self._games(), req.to_dict()), "game")

    def get_game(self, game_id: str) -> GameState:
        return self._decode(GameState.from_dict, self.request("GET", self._games(f"/{game_id}")), "game")

    def wait_for_game(self, game_id: str, move_count: int) -> GameState:
        """Long-poll: the service holds the request until the game has more than move_count moves or its wait budget runs out."""
        data = self.request(
            "GET",
            self._games(f"/{game_id}"),
            params={"wait": "true", "moveCount": move_count},
            timeout=self.long_poll_timeout_s,
        )
        return self._decode(GameState.from_dict, data, "game")

    def delete_game(self, game_id: str) -> None:
        self.request("DELETE", self._games(f"/{game_id}"))

    def make_move(self, game_id: str, move: str) -> GameState:
        data = self.request("POST", self._games(f"/{game_id}/moves"), {"move": move})
        return self._decode(GameState.from_dict, data, "game")

    def trigger_computer_move(self, game_id: str) -> GameState:
        return self.make_move(game_id, COMPUTER_MOVE)

    def undo_moves(self, game_id: str, count: int) -> GameState:
        data = self.request("POST", self._games(f"/{game_id}/undo"), {"count": count})
        return self._decode(GameState.from_dict, data, "game")

    def get_board(self, game_id: str) -> BoardView:
        return self._decode(BoardView.from_dict, self.request("GET", self._games(f"/{game_id}/board")), "board")

    def register(self, username: str, password: str, email: str | None = None) -> AuthResult:
        body: Dict[str, Any] = {"username": username, "password": password}
        if email:
            body["email"] = email
        data = self.request("POST", f"{self.api_prefix}/auth/register", body)
        return self._decode(AuthResult.from_dict, data, "auth")

    def login(self, identifier: str, password: str) -> AuthResult:
        data = self.request("POST", f"{self.api_prefix}/auth/login", {"identifier": identifier, "password": password})
        return self._decode(AuthResult.from_dict, data, "auth")

    def me(self) -> UserProfile:
        return self._decode(UserProfile.from_dict, self.request("GET", f"{self.api_prefix}/auth/me"), "user")

    def raw_request(self, method: str, path: str, body_text: str = "") -> Any:
        """Debug helper: send any method/path. The body is sent as JSON if it parses, else as a JSON string."""
        body: Any = None
        if body_text:
            try:
                body = json.loads(body_text)
            except ValueError:
                body = body_text
        if not path.startswith("/"):
            path = "/" + path
        return self.request(method, path, body)
