"""
Game commands: new, join, move, computer, undo, show, state, delete, poll.

Every handler that fetches a game adopts it into the session in one step, so
current_game, last_move_count, snapshot and player_color never disagree.
"""
from __future__ import annotations
from typing import List

from .. import display, outcome, reconcile
from ..api_types import (
    COMPUTER,
    HUMAN,
    LEVEL_RANGE,
    SEARCH_TIME_RANGE_MS,
    CreateGameRequest,
    GameState,
    PlayerConfig,
)
from ..errors import UsageError
from ..registry import Command, CommandRegistry
from ..session import Session

DEFAULT_LEVEL = 10
DEFAULT_SEARCH_TIME_MS = 1000


def register(registry: CommandRegistry) -> None:
    for name, alias, desc, usage, handler in (
        ("new", "n", "Create a new game", "new", new_game),
        ("join", "j", "Join/set current game ID", "join <gameId>", join_game),
        ("move", "m", "Make a move", "move <uci-move>", make_move),
        ("computer", "c", "Trigger computer move", "computer", computer_move),
        ("undo", "u", "Undo moves", "undo [count]", undo),
        ("show", "h", "Show board and game state", "show", show),
        ("state", "s", "Show raw game JSON", "state", game_state),
        ("delete", "d", "Delete a game", "delete [gameId]", delete_game),
        ("poll", "p", "Long-poll for game updates", "poll", poll),
    ):
        registry.register(Command(name=name, alias=alias, description=desc, usage=usage, handler=handler, group="Game"))


# ------------------------------ Helpers ------------------------------
def _parse_int(raw: str, what: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise UsageError(f"invalid {what}: {raw}") from None


def _ask_player(side: str) -> PlayerConfig:
    kind = display.ask(f"{side} player type (h/c) [h]: ", "h").lower()
    if kind not in ("h", "c"):
        raise UsageError(f"player type must be 'h' or 'c', got {kind!r}")
    if kind == "h":
        return PlayerConfig(kind=HUMAN)

    level = _parse_int(display.ask(f"Computer level ({LEVEL_RANGE[0]}-{LEVEL_RANGE[1]}) [{DEFAULT_LEVEL}]: ", str(DEFAULT_LEVEL)), "level")
    search_time = _parse_int(
        display.ask(f"Search time ({SEARCH_TIME_RANGE_MS[0]}-{SEARCH_TIME_RANGE_MS[1]}ms) [{DEFAULT_SEARCH_TIME_MS}]: ", str(DEFAULT_SEARCH_TIME_MS)),
        "search time",
    )
    try:
        return PlayerConfig(kind=COMPUTER, level=level, search_time_ms=search_time)
    except ValueError as e:
        raise UsageError(str(e)) from None


def _report_last_move(state: GameState, label: str) -> None:
    lm = state.last_move
    if lm is None:
        return
    text = f"{label}: {lm.move}"
    if lm.depth:
        text += f" (depth {lm.depth}, score {lm.score or 0})"
    display.notice(text)


def _thinking() -> None:
    display.notice("Computer is thinking...")


# ------------------------------ Handlers ------------------------------
def new_game(session: Session, args: List[str]) -> None:
    display.info("\nCreating new game...")
    white = _ask_player("White")
    black = _ask_player("Black")
    fen = display.ask("Starting position (FEN) [default]: ")

    state = session.client.create_game(CreateGameRequest(white=white, black=black, fen=fen or None))
    session.adopt_game(state)

    display.success(f"Game created: {state.id}")
    display.info(f"Current game set to: {state.id}")
    if state.players.white.is_computer and not state.moves:
        display.notice("\nWhite is computer. Use 'computer' or 'c' to trigger first move.")


def join_game(session: Session, args: List[str]) -> None:
    if not args:
        raise UsageError("usage: join <gameId>")
    state = session.client.get_game(args[0])
    session.adopt_game(state)
    display.success(f"Joined game: {state.id}")
    display.plain(f"Turn: {display.color_name(state.turn)} | State: {state.state} | Moves: {state.move_count}")
    if session.player_color:
        display.info(f"You are playing {display.color_name(session.player_color)}")


def make_move(session: Session, args: List[str]) -> None:
    if not args:
        raise UsageError("usage: move <uci-move>")
    reconcile.require_game(session)
    state, waited = reconcile.submit_move(session, args[0], on_pending=_thinking)
    display.success("Move accepted")
    if waited:
        _report_last_move(state, "Computer played")
    outcome.announce(state)


def computer_move(session: Session, args: List[str]) -> None:
    reconcile.require_game(session)
    state, waited = reconcile.trigger_computer_move(session, on_pending=_thinking)
    if waited:
        _report_last_move(state, "Computer played")
    else:
        display.success("Move triggered")
    outcome.announce(state)


def undo(session: Session, args: List[str]) -> None:
    game_id = reconcile.require_game(session)
    count = 1
    if args:
        count = _parse_int(args[0], "count")
        if count < 1:
            raise UsageError(f"invalid count: {args[0]}")
    state = session.client.undo_moves(game_id, count)
    session.adopt_game(state)
    display.success(f"Undid {count} move(s)")


def show(session: Session, args: List[str]) -> None:
    game_id = reconcile.require_game(session)
    state = session.client.get_game(game_id)
    board = session.client.get_board(game_id)
    session.adopt_game(state)

    display.plain()
    display.render_board(board.board)
    display.plain(f"\nFEN: {state.fen}")
    display.console.print(
        f"Turn: {display.turn_markup(state.turn)} | State: {display.escape(state.state)} | Moves: {state.move_count}"
    )
    if state.moves:
        display.plain(f"\nHistory: {display.format_history(state.moves)}")
    lm = state.last_move
    if lm is not None:
        text = f"Last move: {lm.move} by {display.color_name(lm.color)}"
        if lm.depth:
            text += f" (depth {lm.depth}, score {lm.score or 0})"
        display.plain(text)


def game_state(session: Session, args: List[str]) -> None:
    game_id = reconcile.require_game(session)
    state = session.client.get_game(game_id)
    session.adopt_game(state)
    display.info("Game State:")
    display.print_json(state.raw)


def delete_game(session: Session, args: List[str]) -> None:
    game_id = args[0] if args else session.current_game
    if not game_id:
        raise UsageError("specify game ID or set current game")
    session.client.delete_game(game_id)
    if game_id == session.current_game:
        session.clear_game()
    display.success(f"Game deleted: {game_id}")


def poll(session: Session, args: List[str]) -> None:
    reconcile.require_game(session)
    display.info(f"Long-polling for updates (move count: {session.last_move_count})...")
    display.info("This may take up to 25 seconds")
    result = reconcile.long_poll(session)
    if not result.updated:
        display.warn("No updates (timeout)")
        return
    display.success("Game updated! New moves detected")
    if result.state.last_move is not None:
        display.plain(f"Last move: {result.state.last_move.move}")
    outcome.announce(result.state)
