"""Command groups and the registry factory used by the REPL."""
from __future__ import annotations

from ..registry import CommandRegistry
from ..session import Session
from . import auth, debug, game


def create_registry(session: Session) -> CommandRegistry:
    registry = CommandRegistry(session)
    game.register(registry)
    auth.register(registry)
    debug.register(registry)
    # help/exit go last so they win over anything a group registered under the same key
    registry.register_builtins()
    return registry
