"""
Terminal presentation helpers built on rich.

Everything user-facing goes through the module-level `console` so tests can swap it
for a recording Console. Service-provided text is escaped before it is printed so
square brackets in payloads are never read as markup.
"""
from __future__ import annotations

import json
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from .api_types import WHITE
from .errors import UsageError

console = Console(highlight=False)

PIECE_WHITE = "blue"
PIECE_BLACK = "red"
COORD = "cyan"


def _say(style: str, text: str) -> None:
    console.print(f"[{style}]{escape(text)}[/{style}]")


def info(text: str) -> None:
    _say("cyan", text)


def success(text: str) -> None:
    _say("green", text)


def warn(text: str) -> None:
    _say("yellow", text)


def error(text: str) -> None:
    _say("red", text)


def notice(text: str) -> None:
    _say("magenta", text)


def plain(text: str = "") -> None:
    console.print(escape(text))


def color_name(color: Optional[str]) -> str:
    return "White" if color == WHITE else "Black"


def turn_markup(color: Optional[str]) -> str:
    style = PIECE_WHITE if color == WHITE else PIECE_BLACK
    return f"[{style}]{color_name(color)}[/{style}]"


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def render_board(ascii_board: str) -> None:
    """Colour the service's ASCII board: upper-case pieces white side, lower-case black side."""
    lines = ascii_board.split("\n")
    for i, line in enumerate(lines):
        if not line.strip():
            continue
        # the service prints file letters above and below the ranks
        is_file_line = i in (0, 9)
        out = Text()
        for ch in line:
            if "a" <= ch <= "h" and is_file_line:
                out.append(ch, style=COORD)
            elif "A" <= ch <= "Z":
                out.append(ch, style=PIECE_WHITE)
            elif "a" <= ch <= "z":
                out.append(ch, style=PIECE_BLACK)
            elif ch == ".":
                out.append(ch, style="white")
            elif "1" <= ch <= "8":
                out.append(ch, style=COORD)
            else:
                out.append(ch)
        console.print(out)


def format_history(moves) -> str:
    """Number the move list the usual way: "1.e2e4 e7e5 2.g1f3"."""
    parts = []
    for i, mv in enumerate(moves):
        parts.append(f"{i // 2 + 1}.{mv}" if i % 2 == 0 else mv)
    return " ".join(parts)


# ----------------------- Request/response tracing -----------------------
SECRET_FIELDS = ("password",)


def _redact(body: Any) -> Any:
    if isinstance(body, dict) and any(k in body for k in SECRET_FIELDS):
        return {k: ("***" if k in SECRET_FIELDS else v) for k, v in body.items()}
    return body


def trace_request(method: str, path: str, body: Any, verbose: bool) -> None:
    console.print(f"\n[blue]\\[API] {escape(method)} {escape(path)}[/blue]")
    if body is None:
        return
    body = _redact(body)
    if verbose:
        info("Request Body:")
        print_json(body)
    else:
        _say("blue", json.dumps(body, separators=(",", ":")))


def trace_response(status: int, reason: str, body: str, verbose: bool) -> None:
    style = "red" if status >= 400 else "green"
    console.print(f"[{style}]\\[{status} {escape(reason or '')}][/{style}]")
    if not verbose or not body:
        return
    try:
        parsed = json.loads(body)
    except ValueError:
        info("Response:")
        plain(body)
        return
    info("Response Body:")
    print_json(parsed)


# ----------------------------- Input -----------------------------
def ask(prompt: str, default: str = "") -> str:
    """Read one line from the user; an empty answer yields `default`."""
    try:
        value = console.input(f"[yellow]{escape(prompt)}[/yellow]")
    except EOFError:
        raise UsageError("input closed") from None
    return value.strip() or default


def ask_password(prompt: str = "Password: ") -> str:
    try:
        return console.input(f"[yellow]{escape(prompt)}[/yellow]", password=True)
    except EOFError:
        raise UsageError("input closed") from None
