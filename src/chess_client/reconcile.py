"""
Reconciliation: bring the session's snapshot back in line with the service.

- await_computer_move(): bounded polling after the service answered "pending" (computer thinking).
  Fixed delay between attempts, fixed attempt ceiling, first non-pending state wins and is adopted.
  Exhaustion raises ReconcileTimeout and leaves the session exactly as it was.
- submit_move() / trigger_computer_move(): play a move (or the computer-move sentinel) and,
  if the service answers pending, run the bounded poll.
- long_poll(): one wait=true round trip; adopt the result only if the move list grew.

Everything here is blocking and sequential; `sleep` is injectable so tests run instantly.
"""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .api_types import GameState
from . import config
from .errors import APIError, ReconcileTimeout, TransportError, UsageError
from .session import Session

log = logging.getLogger("reconcile")

NO_GAME_MESSAGE = "no current game, use 'new' or 'join <gameId>'"


@dataclass(frozen=True)
class PollResult:
    updated: bool
    baseline: int
    state: GameState


def require_game(session: Session) -> str:
    if not session.current_game:
        raise UsageError(NO_GAME_MESSAGE)
    return session.current_game


def await_computer_move(session: Session, game_id: Optional[str] = None,
                        interval_s: Optional[float] = None, max_attempts: Optional[int] = None,
                        sleep: Optional[Callable[[float], None]] = None) -> GameState:
    """Re-fetch the game until it leaves the pending state; adopt and return that state."""
    game_id = game_id or require_game(session)
    interval_s = config.SETTINGS.poll_interval_s if interval_s is None else interval_s
    max_attempts = config.SETTINGS.poll_attempts if max_attempts is None else max_attempts
    sleep = sleep or time.sleep
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        sleep(interval_s)
        try:
            state = session.client.get_game(game_id)
        except APIError as e:
            if e.is_not_found:
                # game deleted underneath us; nothing left to wait for
                if session.current_game == game_id:
                    session.clear_game()
                raise
            log.debug("Poll %d/%d for %s failed: %s", attempt, max_attempts, game_id, e)
            last_error = e
            continue
        except TransportError as e:
            log.debug("Poll %d/%d for %s failed: %s", attempt, max_attempts, game_id, e)
            last_error = e
            continue
        if not state.is_pending:
            log.debug("Game %s settled after %d poll(s): state=%s", game_id, attempt, state.state)
            session.adopt_game(state)
            return state

    log.warning("Gave up on game %s after %d polls every %.3fs", game_id, max_attempts, interval_s)
    raise ReconcileTimeout(game_id, max_attempts, interval_s, last_error)


def _settle(session: Session, game_id: str, state: GameState, on_pending: Optional[Callable[[], None]],
            interval_s: Optional[float], max_attempts: Optional[int],
            sleep: Optional[Callable[[float], None]]) -> tuple[GameState, bool]:
    if not state.is_pending:
        session.adopt_game(state)
        return state, False
    # the pending answer itself is never adopted
    if on_pending:
        on_pending()
    state = await_computer_move(session, game_id, interval_s=interval_s, max_attempts=max_attempts, sleep=sleep)
    return state, True


def submit_move(session: Session, move: str, on_pending: Optional[Callable[[], None]] = None,
                interval_s: Optional[float] = None, max_attempts: Optional[int] = None,
                sleep: Optional[Callable[[float], None]] = None) -> tuple[GameState, bool]:
    """Play `move` in the current game.

    Returns (state, waited): `waited` is True when the service answered pending
    (a computer reply is being computed) and the bounded poll had to run.
    """
    game_id = require_game(session)
    state = session.client.make_move(game_id, move)
    return _settle(session, game_id, state, on_pending, interval_s, max_attempts, sleep)


def trigger_computer_move(session: Session, on_pending: Optional[Callable[[], None]] = None,
                          interval_s: Optional[float] = None, max_attempts: Optional[int] = None,
                          sleep: Optional[Callable[[float], None]] = None) -> tuple[GameState, bool]:
    """Ask the service to move for the side to move; same contract as submit_move()."""
    game_id = require_game(session)
    state = session.client.trigger_computer_move(game_id)
    return _settle(session, game_id, state, on_pending, interval_s, max_attempts, sleep)


def long_poll(session: Session) -> PollResult:
    """One long-poll round trip from the session's move-count baseline."""
    game_id = require_game(session)
    baseline = session.last_move_count
    state = session.client.wait_for_game(game_id, baseline)
    if state.move_count > baseline:
        session.adopt_game(state)
        return PollResult(updated=True, baseline=baseline, state=state)
    log.debug("Long-poll on %s returned without new moves (baseline %d)", game_id, baseline)
    return PollResult(updated=False, baseline=baseline, state=state)
