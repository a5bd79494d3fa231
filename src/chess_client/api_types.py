"""
Wire types for the chess service API.

- Request payloads (PlayerConfig, CreateGameRequest) serialise to the service's camelCase JSON.
- Response values (GameState, BoardView, AuthResult, UserProfile, HealthStatus) are built with
  from_dict() and are immutable: a new fetch produces a new value, nothing is patched in place.
- Colors are normalised to "white"/"black" on the way in; the service sends "w"/"b".
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

WHITE = "white"
BLACK = "black"

HUMAN = "human"
COMPUTER = "computer"

# Service encoding of player kinds
PLAYER_TYPE_CODES = {HUMAN: 1, COMPUTER: 2}
_PLAYER_KINDS = {v: k for k, v in PLAYER_TYPE_CODES.items()}

# Reserved move token: asks the service to let the computer play the side to move
COMPUTER_MOVE = "cccc"

STATE_ONGOING = "ongoing"
STATE_PENDING = "pending"
STATE_CHECKMATE = "checkmate"
STATE_STALEMATE = "stalemate"
STATE_DRAW = "draw"
STATE_WHITE_WINS = "white wins"
STATE_BLACK_WINS = "black wins"

LEVEL_RANGE = (0, 20)
SEARCH_TIME_RANGE_MS = (100, 10000)


def normalize_color(value: Any) -> Optional[str]:
    """Map "w"/"white"/"b"/"black" (any case) to WHITE/BLACK; anything else to None."""
    if not isinstance(value, str):
        return None
    v = value.strip().lower()
    if v in ("w", WHITE):
        return WHITE
    if v in ("b", BLACK):
        return BLACK
    return None


def opposite(color: str) -> str:
    return BLACK if color == WHITE else WHITE


def _opt_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


# --------------------------- Requests ---------------------------
@dataclass(frozen=True)
class PlayerConfig:
    kind: str = HUMAN
    level: Optional[int] = None
    search_time_ms: Optional[int] = None

    def __post_init__(self):
        if self.kind not in PLAYER_TYPE_CODES:
            raise ValueError(f"player kind must be {HUMAN!r} or {COMPUTER!r}, got {self.kind!r}")
        if self.level is not None and not (LEVEL_RANGE[0] <= self.level <= LEVEL_RANGE[1]):
            raise ValueError(f"computer level must be between {LEVEL_RANGE[0]} and {LEVEL_RANGE[1]}")
        if self.search_time_ms is not None and not (SEARCH_TIME_RANGE_MS[0] <= self.search_time_ms <= SEARCH_TIME_RANGE_MS[1]):
            raise ValueError(f"search time must be between {SEARCH_TIME_RANGE_MS[0]} and {SEARCH_TIME_RANGE_MS[1]} ms")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": PLAYER_TYPE_CODES[self.kind]}
        if self.level is not None:
            out["level"] = self.level
        if self.search_time_ms is not None:
            out["searchTime"] = self.search_time_ms
        return out


@dataclass(frozen=True)
class CreateGameRequest:
    white: PlayerConfig = field(default_factory=PlayerConfig)
    black: PlayerConfig = field(default_factory=PlayerConfig)
    fen: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"white": self.white.to_dict(), "black": self.black.to_dict()}
        if self.fen:
            out["fen"] = self.fen
        return out


# --------------------------- Responses ---------------------------
@dataclass(frozen=True)
class PlayerInfo:
    id: Optional[str] = None
    kind: str = HUMAN
    level: Optional[int] = None
    search_time_ms: Optional[int] = None

    @property
    def is_computer(self) -> bool:
        return self.kind == COMPUTER

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "PlayerInfo":
        d = d or {}
        raw_type = d.get("type")
        kind = _PLAYER_KINDS.get(raw_type, raw_type if raw_type in PLAYER_TYPE_CODES else HUMAN)
        return cls(
            id=d.get("id") or None,
            kind=kind,
            level=_opt_int(d.get("level")),
            search_time_ms=_opt_int(d.get("searchTime")),
        )


@dataclass(frozen=True)
class Players:
    white: PlayerInfo = field(default_factory=PlayerInfo)
    black: PlayerInfo = field(default_factory=PlayerInfo)

    def for_color(self, color: str) -> PlayerInfo:
        return self.white if color == WHITE else self.black

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "Players":
        d = d or {}
        return cls(white=PlayerInfo.from_dict(d.get("white")), black=PlayerInfo.from_dict(d.get("black")))


@dataclass(frozen=True)
class LastMove:
    move: str
    color: Optional[str] = None
    score: Optional[int] = None
    depth: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> Optional["LastMove"]:
        if not d or not d.get("move"):
            return None
        return cls(
            move=str(d["move"]),
            color=normalize_color(d.get("playerColor")),
            score=_opt_int(d.get("score")),
            depth=_opt_int(d.get("depth")),
        )


@dataclass(frozen=True)
class GameState:
    """One full view of a game as reported by the service."""

    id: str
    fen: str = ""
    turn: str = WHITE
    state: str = STATE_ONGOING
    moves: Tuple[str, ...] = ()
    players: Players = field(default_factory=Players)
    last_move: Optional[LastMove] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def move_count(self) -> int:
        return len(self.moves)

    @property
    def is_pending(self) -> bool:
        return self.state == STATE_PENDING

    @property
    def side_to_move(self) -> PlayerInfo:
        return self.players.for_color(self.turn)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GameState":
        if not isinstance(d, dict):
            raise ValueError("game response must be a JSON object")
        game_id = d.get("gameId") or d.get("id")
        if not game_id:
            raise ValueError("game response has no gameId")
        return cls(
            id=str(game_id),
            fen=d.get("fen") or "",
            turn=normalize_color(d.get("turn")) or WHITE,
            state=str(d.get("state") or STATE_ONGOING),
            moves=tuple(d.get("moves") or ()),
            players=Players.from_dict(d.get("players")),
            last_move=LastMove.from_dict(d.get("lastMove")),
            raw=dict(d),
        )


@dataclass(frozen=True)
class BoardView:
    fen: str
    board: str

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BoardView":
        return cls(fen=d.get("fen") or "", board=d.get("board") or "")


@dataclass(frozen=True)
class AuthResult:
    token: str
    user_id: str
    username: str

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AuthResult":
        token = d.get("token")
        user_id = d.get("userId")
        if not token or not user_id:
            raise ValueError("auth response is missing token or userId")
        return cls(token=str(token), user_id=str(user_id), username=str(d.get("username") or ""))


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    username: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UserProfile":
        return cls(
            user_id=str(d.get("userId") or ""),
            username=str(d.get("username") or ""),
            email=d.get("email") or None,
            created_at=_parse_timestamp(d.get("createdAt")),
            last_login_at=_parse_timestamp(d.get("lastLoginAt")),
        )


@dataclass(frozen=True)
class HealthStatus:
    status: str
    time: Optional[datetime] = None
    storage: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HealthStatus":
        return cls(
            status=str(d.get("status") or "unknown"),
            time=_parse_timestamp(d.get("time")),
            storage=d.get("storage") or None,
        )
