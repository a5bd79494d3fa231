"""
Interactive REPL for the chess debug client.

- One line at a time: exit aliases are handled here, a trailing " -v" turns on
  request/response tracing for that line only, everything else goes to the registry.
- The prompt shows user, game, your color and whose turn it is.
Usage: chess-client [--url http://localhost:8080] [--log-level DEBUG] [--settings settings.yml]
"""
from __future__ import annotations
import argparse
import logging
from typing import Callable, Optional

from . import config, display
from .commands import create_registry
from .registry import CommandRegistry
from .session import Session
from .transport import APIClient

log = logging.getLogger("repl")

EXIT_WORDS = ("exit", "quit", "x")
VERBOSE_SUFFIX = " -v"


def split_verbose(line: str) -> tuple[str, bool]:
    """Strip a trailing " -v" and report whether it was there."""
    if line.endswith(VERBOSE_SUFFIX):
        return line[: -len(VERBOSE_SUFFIX)].rstrip(), True
    return line, False


def build_prompt(session: Session) -> str:
    """Rich markup for the input prompt."""
    parts = ["chess"]
    context = []
    if session.username:
        context.append(f"[magenta]{display.escape(session.username)}[/magenta]")
    if session.current_game:
        context.append(f"[white]{display.escape(session.current_game[:8])}[/white]")
    if context:
        parts.append(" \\[" + "[yellow] - [/yellow]".join(context) + "]")

    snap = session.snapshot
    if snap is not None and session.player_color:
        parts.append(" " + display.turn_markup(session.player_color))
    if snap is not None:
        kind = "c" if snap.side_to_move.is_computer else "h"
        parts.append(f" - Turn:{display.turn_markup(snap.turn)}({kind})")
    return "".join(parts) + "[yellow] > [/yellow]"


def run(registry: CommandRegistry, read_line: Optional[Callable[[str], str]] = None) -> None:
    """Read-dispatch loop; returns on an exit word or end of input."""
    session = registry.session
    read_line = read_line or display.console.input
    while True:
        try:
            line = read_line(build_prompt(session)).strip()
        except EOFError:
            display.plain()
            return
        except KeyboardInterrupt:
            display.plain()
            return
        if not line:
            continue
        line, verbose = split_verbose(line)
        if line in EXIT_WORDS:
            registry.execute("exit")
            return

        session.verbose = verbose
        try:
            registry.execute(line)
        except KeyboardInterrupt:
            # abandon this command only (e.g. a long poll); the session is untouched
            display.warn("\nInterrupted")
        finally:
            session.verbose = False


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Interactive debugging client for the chess service API.")
    ap.add_argument("--url", default=None, help="API base URL (overrides settings/env)")
    ap.add_argument("--log-level", default=None, help="Python logging level (e.g., INFO, DEBUG)")
    ap.add_argument("--settings", default=None, help="Path to a settings.yml file")
    args = ap.parse_args(argv)

    settings = config.load_settings(args.settings) if args.settings else config.SETTINGS
    config.SETTINGS = settings
    log_level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.WARNING), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    client = APIClient(
        base_url=args.url or settings.api_url,
        api_prefix=settings.api_prefix,
        timeout_s=settings.http_timeout_s,
        long_poll_timeout_s=settings.long_poll_timeout_s,
    )
    session = Session(client=client)
    registry = create_registry(session)

    display.info("Chess Debug Client")
    display.info(f"API: {session.base_url}")
    display.plain("Type 'help' for commands\n")
    log.info("Starting client against %s", session.base_url)
    run(registry)


if __name__ == "__main__":
    main()
