"""
Minimal Flask stand-in for the chess service, kept in memory.

Endpoints (same contract as the real service):
- GET    /health                              -> {status, time, storage}
- POST   /api/v1/games                        -> create a game (human/computer players, optional FEN)
- GET    /api/v1/games/<id>[?wait=true&moveCount=N] -> game state; with wait, held until new moves or the wait budget
- DELETE /api/v1/games/<id>                   -> delete
- POST   /api/v1/games/<id>/moves             -> {move}; "cccc" starts a computer move in the background (state "pending")
- POST   /api/v1/games/<id>/undo              -> {count}
- GET    /api/v1/games/<id>/board             -> {fen, board}
- POST   /api/v1/auth/register | /api/v1/auth/login, GET /api/v1/auth/me

Computer moves are random legal moves picked with python-chess after a configurable delay.
Errors are JSON: {error, code, details?}. Nothing is persisted.
Usage: chess-client-devserver --port 8080 --think-ms 500 --wait-s 25
"""
from __future__ import annotations
import argparse
import hashlib
import logging
import random
import secrets
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

import chess
from flask import Flask, jsonify, request

from .api_types import COMPUTER_MOVE, LEVEL_RANGE, PLAYER_TYPE_CODES, SEARCH_TIME_RANGE_MS

log = logging.getLogger("devserver")

API = "/api/v1"
HUMAN_CODE = PLAYER_TYPE_CODES["human"]
COMPUTER_CODE = PLAYER_TYPE_CODES["computer"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((salt + password).encode("utf-8")).hexdigest()


def _error(status: int, error: str, code: str, details: Optional[str] = None):
    body = {"error": error, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status


class _Game:
    def __init__(self, game_id: str, board: chess.Board, players: dict):
        self.id = game_id
        self.board = board
        self.players = players
        self.pending = False
        self.last_move: Optional[dict] = None

    def state(self) -> str:
        if self.pending:
            return "pending"
        if self.board.is_checkmate():
            return "checkmate"
        if self.board.is_stalemate():
            return "stalemate"
        if self.board.is_insufficient_material() or self.board.can_claim_fifty_moves() or self.board.is_repetition(3):
            return "draw"
        return "ongoing"

    def turn(self) -> str:
        return "w" if self.board.turn == chess.WHITE else "b"

    def side_to_move(self) -> dict:
        return self.players["white" if self.board.turn == chess.WHITE else "black"]

    def to_dict(self) -> dict:
        out = {
            "gameId": self.id,
            "fen": self.board.fen(),
            "turn": self.turn(),
            "state": self.state(),
            "moves": [mv.uci() for mv in self.board.move_stack],
            "players": self.players,
        }
        if self.last_move:
            out["lastMove"] = self.last_move
        return out

    def ascii_board(self) -> str:
        files = "  a b c d e f g h"
        rows = str(self.board).split("\n")
        lines = [files]
        for i, row in enumerate(rows):
            rank = 8 - i
            lines.append(f"{rank} {row} {rank}")
        lines.append(files)
        return "\n".join(lines)


def _player_from_payload(payload, side: str) -> dict:
    payload = payload or {}
    kind = payload.get("type", HUMAN_CODE)
    if kind not in (HUMAN_CODE, COMPUTER_CODE):
        raise ValueError(f"{side} player type must be {HUMAN_CODE} (human) or {COMPUTER_CODE} (computer)")
    player = {"id": uuid.uuid4().hex, "type": kind}
    if kind == COMPUTER_CODE:
        level = payload.get("level", 10)
        search_time = payload.get("searchTime", 1000)
        if not isinstance(level, int) or not (LEVEL_RANGE[0] <= level <= LEVEL_RANGE[1]):
            raise ValueError(f"{side} level must be between {LEVEL_RANGE[0]} and {LEVEL_RANGE[1]}")
        if not isinstance(search_time, int) or not (SEARCH_TIME_RANGE_MS[0] <= search_time <= SEARCH_TIME_RANGE_MS[1]):
            raise ValueError(f"{side} searchTime must be between {SEARCH_TIME_RANGE_MS[0]} and {SEARCH_TIME_RANGE_MS[1]}")
        player["level"] = level
        player["searchTime"] = search_time
    return player


def create_app(think_s: float = 0.5, wait_s: float = 25.0, rng: Optional[random.Random] = None) -> Flask:
    """Build a fresh service with its own in-memory games and users."""
    app = Flask(__name__)
    rng = rng or random.Random()
    lock = threading.Lock()
    changed = threading.Condition(lock)
    games: Dict[str, _Game] = {}
    users: Dict[str, dict] = {}
    tokens: Dict[str, str] = {}

    def _current_user() -> Optional[dict]:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        user_id = tokens.get(header[len("Bearer "):])
        return users.get(user_id) if user_id else None

    def _body() -> Optional[dict]:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else None

    def _computer_move(game: _Game) -> None:
        time.sleep(think_s)
        with changed:
            if games.get(game.id) is not game:
                return  # deleted while thinking
            legal = list(game.board.legal_moves)
            if legal:
                color = game.turn()
                mv = rng.choice(legal)
                game.board.push(mv)
                game.last_move = {"move": mv.uci(), "playerColor": color, "depth": 1, "score": 0}
            game.pending = False
            changed.notify_all()
        log.info("Computer moved in %s", game.id)

    # ---------------- Health -----------------
    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "time": int(time.time()), "storage": "memory"})

    # ---------------- Games -----------------
    @app.post(f"{API}/games")
    def create_game():
        payload = _body()
        if payload is None:
            return _error(400, "invalid request body", "INVALID_REQUEST")
        try:
            white = _player_from_payload(payload.get("white"), "white")
            black = _player_from_payload(payload.get("black"), "black")
        except ValueError as e:
            return _error(400, "invalid player configuration", "INVALID_PLAYER", str(e))
        fen = payload.get("fen")
        try:
            board = chess.Board(fen) if fen else chess.Board()
        except ValueError as e:
            return _error(400, "invalid FEN", "INVALID_FEN", str(e))

        user = _current_user()
        if user:
            # the creator takes the first human seat
            for player in (white, black):
                if player["type"] == HUMAN_CODE:
                    player["id"] = user["userId"]
                    break
        game = _Game(uuid.uuid4().hex, board, {"white": white, "black": black})
        with lock:
            games[game.id] = game
            body = game.to_dict()
        log.info("Created game %s", game.id)
        return jsonify(body), 201

    @app.get(f"{API}/games/<game_id>")
    def get_game(game_id: str):
        wait = request.args.get("wait", "").lower() == "true"
        try:
            baseline = int(request.args.get("moveCount", "0"))
        except ValueError:
            return _error(400, "moveCount must be an integer", "INVALID_REQUEST")
        with changed:
            game = games.get(game_id)
            if game is None:
                return _error(404, "game not found", "GAME_NOT_FOUND", game_id)
            if wait:
                changed.wait_for(
                    lambda: games.get(game_id) is not game
                    or (not game.pending and len(game.board.move_stack) > baseline),
                    timeout=wait_s,
                )
                if games.get(game_id) is not game:
                    return _error(404, "game not found", "GAME_NOT_FOUND", game_id)
            return jsonify(game.to_dict())

    @app.delete(f"{API}/games/<game_id>")
    def delete_game(game_id: str):
        with changed:
            if games.pop(game_id, None) is None:
                return _error(404, "game not found", "GAME_NOT_FOUND", game_id)
            changed.notify_all()
        return "", 204

    @app.post(f"{API}/games/<game_id>/moves")
    def make_move(game_id: str):
        payload = _body()
        if payload is None or not isinstance(payload.get("move"), str):
            return _error(400, "invalid request body", "INVALID_REQUEST", "expected {\"move\": string}")
        token = payload["move"].strip().lower()
        with changed:
            game = games.get(game_id)
            if game is None:
                return _error(404, "game not found", "GAME_NOT_FOUND", game_id)
            if game.pending:
                return _error(409, "computer is still thinking", "GAME_PENDING")
            if game.state() != "ongoing":
                return _error(400, "game is over", "GAME_OVER", game.state())
            side = game.side_to_move()
            if token == COMPUTER_MOVE:
                if side["type"] != COMPUTER_CODE:
                    return _error(400, "side to move is not a computer player", "NOT_COMPUTER_TURN")
                game.pending = True
                threading.Thread(target=_computer_move, args=(game,), daemon=True).start()
                return jsonify(game.to_dict())
            if side["type"] == COMPUTER_CODE:
                return _error(400, "side to move is a computer player", "NOT_HUMAN_TURN", "use the computer move")
            try:
                mv = chess.Move.from_uci(token)
            except ValueError:
                return _error(400, "invalid move format", "INVALID_MOVE", token)
            if mv not in game.board.legal_moves:
                return _error(400, "illegal move", "ILLEGAL_MOVE", token)
            color = game.turn()
            game.board.push(mv)
            game.last_move = {"move": mv.uci(), "playerColor": color}
            changed.notify_all()
            return jsonify(game.to_dict())

    @app.post(f"{API}/games/<game_id>/undo")
    def undo(game_id: str):
        payload = _body() or {}
        count = payload.get("count", 1)
        if not isinstance(count, int) or count < 1:
            return _error(400, "count must be a positive integer", "INVALID_REQUEST")
        with changed:
            game = games.get(game_id)
            if game is None:
                return _error(404, "game not found", "GAME_NOT_FOUND", game_id)
            if game.pending:
                return _error(409, "computer is still thinking", "GAME_PENDING")
            if count > len(game.board.move_stack):
                return _error(400, "not enough moves to undo", "NO_MOVES", f"{len(game.board.move_stack)} move(s) played")
            for _ in range(count):
                game.board.pop()
            if game.board.move_stack:
                last = game.board.move_stack[-1]
                # color of the side that played `last` is the opposite of the side to move now
                game.last_move = {"move": last.uci(), "playerColor": "b" if game.board.turn == chess.WHITE else "w"}
            else:
                game.last_move = None
            changed.notify_all()
            return jsonify(game.to_dict())

    @app.get(f"{API}/games/<game_id>/board")
    def board(game_id: str):
        with lock:
            game = games.get(game_id)
            if game is None:
                return _error(404, "game not found", "GAME_NOT_FOUND", game_id)
            return jsonify({"fen": game.board.fen(), "board": game.ascii_board()})

    # ---------------- Auth -----------------
    @app.post(f"{API}/auth/register")
    def register():
        payload = _body()
        if payload is None:
            return _error(400, "invalid request body", "INVALID_REQUEST")
        username = str(payload.get("username") or "").strip()
        password = str(payload.get("password") or "")
        email = str(payload.get("email") or "").strip() or None
        if not username or len(password) < 4:
            return _error(400, "username and a password of at least 4 characters are required", "INVALID_REQUEST")
        with lock:
            if any(u["username"] == username or (email and u.get("email") == email) for u in users.values()):
                return _error(409, "user already exists", "USER_EXISTS", username)
            salt = secrets.token_hex(8)
            user = {
                "userId": uuid.uuid4().hex,
                "username": username,
                "email": email,
                "salt": salt,
                "passwordHash": _hash_password(password, salt),
                "createdAt": _now_iso(),
                "lastLoginAt": None,
            }
            users[user["userId"]] = user
            token = secrets.token_hex(16)
            tokens[token] = user["userId"]
        return jsonify({"token": token, "userId": user["userId"], "username": username}), 201

    @app.post(f"{API}/auth/login")
    def login():
        payload = _body()
        if payload is None:
            return _error(400, "invalid request body", "INVALID_REQUEST")
        identifier = str(payload.get("identifier") or "").strip()
        password = str(payload.get("password") or "")
        with lock:
            user = next((u for u in users.values() if identifier in (u["username"], u.get("email"))), None)
            if user is None or _hash_password(password, user["salt"]) != user["passwordHash"]:
                return _error(401, "invalid credentials", "INVALID_CREDENTIALS")
            user["lastLoginAt"] = _now_iso()
            token = secrets.token_hex(16)
            tokens[token] = user["userId"]
        return jsonify({"token": token, "userId": user["userId"], "username": user["username"]})

    @app.get(f"{API}/auth/me")
    def me():
        with lock:
            user = _current_user()
            if user is None:
                return _error(401, "authentication required", "UNAUTHORIZED")
            body = {k: user[k] for k in ("userId", "username", "createdAt")}
            if user.get("email"):
                body["email"] = user["email"]
            if user.get("lastLoginAt"):
                body["lastLoginAt"] = user["lastLoginAt"]
        return jsonify(body)

    @app.errorhandler(404)
    def not_found(e):
        return _error(404, "not found", "NOT_FOUND", request.path)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _error(405, "method not allowed", "METHOD_NOT_ALLOWED", f"{request.method} {request.path}")

    return app


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="In-memory stand-in for the chess service API.")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8080)
    ap.add_argument("--think-ms", type=int, default=500, help="Delay before a computer move is played")
    ap.add_argument("--wait-s", type=float, default=25.0, help="Long-poll wait budget")
    ap.add_argument("--log-level", default="INFO", help="Python logging level (e.g., INFO, DEBUG)")
    args = ap.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app(think_s=args.think_ms / 1000.0, wait_s=args.wait_s)
    log.info("Serving on http://%s:%d", args.host, args.port)
    app.run(host=args.host, port=args.port, threaded=True)


if __name__ == "__main__":
    main()
