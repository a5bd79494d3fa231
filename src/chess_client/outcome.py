"""Classify a game snapshot after a move: finished (and who won) or whose turn it is."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from . import display
from .api_types import (
    BLACK,
    STATE_BLACK_WINS,
    STATE_CHECKMATE,
    STATE_DRAW,
    STATE_ONGOING,
    STATE_PENDING,
    STATE_STALEMATE,
    STATE_WHITE_WINS,
    WHITE,
    GameState,
    opposite,
)

CHECKMATE = "checkmate"
STALEMATE = "stalemate"
DRAW = "draw"
DECIDED = "decided"
ONGOING = "ongoing"
PENDING = "pending"
OTHER = "other"


@dataclass(frozen=True)
class Outcome:
    kind: str
    winner: Optional[str] = None
    computer_to_move: bool = False


def classify(state: GameState) -> Outcome:
    s = state.state
    if s == STATE_CHECKMATE:
        # turn has already passed to the mated side
        return Outcome(CHECKMATE, winner=opposite(state.turn))
    if s == STATE_STALEMATE:
        return Outcome(STALEMATE)
    if s == STATE_DRAW:
        return Outcome(DRAW)
    if s == STATE_WHITE_WINS:
        return Outcome(DECIDED, winner=WHITE)
    if s == STATE_BLACK_WINS:
        return Outcome(DECIDED, winner=BLACK)
    if s == STATE_ONGOING:
        return Outcome(ONGOING, computer_to_move=state.side_to_move.is_computer)
    if s == STATE_PENDING:
        return Outcome(PENDING)
    return Outcome(OTHER)


def announce(state: GameState) -> Outcome:
    """Print the end-of-game banner or the computer-to-move hint for `state`."""
    outcome = classify(state)
    if outcome.kind == CHECKMATE:
        display.success(f"\nCHECKMATE! {display.color_name(outcome.winner)} wins!")
    elif outcome.kind == STALEMATE:
        display.warn("\nSTALEMATE! Game drawn.")
    elif outcome.kind == DRAW:
        display.warn("\nDRAW! Game drawn.")
    elif outcome.kind == DECIDED:
        display.success(f"\n{display.color_name(outcome.winner)} wins!")
    elif outcome.computer_to_move:
        display.notice("\nComputer's turn. Use 'computer' or 'c' to trigger move.")
    return outcome
