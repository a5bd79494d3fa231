"""
Command registry: maps command names and one-character aliases to handlers.

A handler takes (session, args) where args are the raw whitespace-separated tokens after
the command word. Handlers validate their own arguments and raise UsageError; any
ChessClientError is printed here and the REPL carries on. Other exceptions are bugs
and propagate.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from . import display
from .errors import ChessClientError, UsageError
from .session import Session

log = logging.getLogger("registry")

Handler = Callable[[Session, List[str]], None]

GROUPS = ("Game", "Auth", "Utility")


@dataclass(frozen=True)
class Command:
    name: str
    description: str
    usage: str
    handler: Handler
    alias: Optional[str] = None
    group: str = "Utility"

    def execute(self, session: Session, args: List[str]) -> None:
        self.handler(session, args)


class CommandRegistry:
    def __init__(self, session: Session):
        self.session = session
        self._commands: Dict[str, Command] = {}

    def register(self, cmd: Command) -> None:
        """Register under name and alias; an existing entry for either key is replaced."""
        self._commands[cmd.name] = cmd
        if cmd.alias:
            self._commands[cmd.alias] = cmd

    def lookup(self, key: str) -> Optional[Command]:
        return self._commands.get(key)

    def commands(self) -> List[Command]:
        """Distinct commands, in the order their name was first registered."""
        seen: List[Command] = []
        for key, cmd in self._commands.items():
            if key == cmd.name and cmd not in seen:
                seen.append(cmd)
        return seen

    def execute(self, line: str) -> None:
        parts = line.split()
        if not parts:
            return
        key, args = parts[0], parts[1:]
        cmd = self._commands.get(key)
        if cmd is None:
            display.error(f"Unknown command: {key}")
            display.plain("Type 'help' for available commands")
            return

        # tracing follows the per-line -v flag
        self.session.client.set_verbose(self.session.verbose)
        log.debug("Dispatch %s -> %s args=%s", key, cmd.name, args)
        try:
            cmd.execute(self.session, args)
        except ChessClientError as e:
            log.debug("Command %s failed: %r", cmd.name, e)
            display.error(f"Error: {e}")

    # ---------------- Built-ins -----------------
    def register_builtins(self) -> None:
        self.register(Command(
            name="help",
            alias="?",
            description="Show available commands",
            usage="help [command]",
            handler=self._help,
        ))
        # exit is intercepted by the REPL; registered so help lists it
        self.register(Command(
            name="exit",
            alias="x",
            description="Exit the client",
            usage="exit",
            handler=_exit,
        ))

    def _help(self, session: Session, args: Sequence[str]) -> None:
        if args:
            cmd = self._commands.get(args[0])
            if cmd is None:
                raise UsageError(f"unknown command: {args[0]}")
            display.plain()
            display.console.print(f"[cyan]{cmd.name}[/cyan] - {display.escape(cmd.description)}")
            if cmd.alias:
                display.info(f"Short form: {cmd.alias}")
            display.plain(f"Usage: {cmd.usage}")
            return

        display.info("\nAvailable Commands:\n")
        cmds = self.commands()
        for group in GROUPS:
            members = [c for c in cmds if c.group == group]
            if not members:
                continue
            display.warn(f"{group} Commands:")
            for c in members:
                short = f"[cyan]\\[{display.escape(c.alias)}][/cyan] " if c.alias else ""
                display.console.print(f"  {short}{c.name:<10} {display.escape(c.description)}")
            display.plain()
        display.plain("Type 'help <command>' for detailed usage")
        display.plain("Add '-v' to any command for verbose output\n")


def _exit(session: Session, args: Sequence[str]) -> None:
    display.info("Goodbye!\n")
