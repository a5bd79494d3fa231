"""
Client-side session: the single source of truth for auth and game context.

Related fields only change together, through the compound mutators below:
- auth: auth_token, current_user, username  (login/logout)
- game: current_game, last_move_count, snapshot, player_color  (adopt_game/clear_game)
player_color is never set directly; it is re-derived from (current_user, snapshot)
every time either side changes.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from .api_types import BLACK, WHITE, GameState
from .transport import APIClient, normalize_base_url


def derive_player_color(current_user: Optional[str], snapshot: Optional[GameState]) -> Optional[str]:
    """Return WHITE/BLACK if current_user sits at that side of the snapshot, else None (unset)."""
    if not current_user or snapshot is None:
        return None
    if snapshot.players.white.id == current_user:
        return WHITE
    if snapshot.players.black.id == current_user:
        return BLACK
    return None


@dataclass
class Session:
    client: APIClient
    base_url: str = ""
    auth_token: str = ""
    current_user: Optional[str] = None
    username: Optional[str] = None
    current_game: Optional[str] = None
    last_move_count: int = 0
    snapshot: Optional[GameState] = None
    player_color: Optional[str] = None
    verbose: bool = field(default=False)

    def __post_init__(self):
        # the client is the authority on the URL it actually talks to
        if self.base_url:
            self.client.set_base_url(self.base_url)
        self.base_url = self.client.base_url

    # ---------------- Endpoint -----------------
    def set_base_url(self, url: str) -> str:
        url = normalize_base_url(url)
        self.client.set_base_url(url)
        self.base_url = url
        return url

    # ---------------- Auth -----------------
    def _set_auth(self, token: str, user_id: Optional[str], username: Optional[str]) -> None:
        self.auth_token = token or ""
        self.current_user = user_id or None
        self.username = username or None
        self.client.set_token(self.auth_token)
        self.player_color = derive_player_color(self.current_user, self.snapshot)

    def login(self, token: str, user_id: str, username: str) -> None:
        self._set_auth(token, user_id, username)

    def logout(self) -> None:
        self._set_auth("", None, None)

    def assume_user(self, user_id: str) -> None:
        """Act as user_id for color display without authenticating; the token is kept as is."""
        self._set_auth(self.auth_token, user_id, self.username)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth_token)

    # ---------------- Game context -----------------
    def adopt_game(self, state: GameState) -> None:
        """Make `state` the current game view; all game fields are replaced together."""
        self.current_game = state.id
        self.last_move_count = state.move_count
        self.snapshot = state
        self.player_color = derive_player_color(self.current_user, state)

    def clear_game(self) -> None:
        self.current_game = None
        self.last_move_count = 0
        self.snapshot = None
        self.player_color = None

    @property
    def has_game(self) -> bool:
        return bool(self.current_game)
