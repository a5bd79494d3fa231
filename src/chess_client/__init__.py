"""
Chess debug client package.

Components:
- transport: single-attempt HTTP/JSON calls to the chess service (requests)
- session: auth and game context, changed only through compound mutators
- registry + commands: textual commands mapped to handlers
- reconcile: bounded polling after async computer moves, and long-poll for updates
- repl: interactive loop and the `chess-client` entry point
- devserver: in-memory Flask stand-in for the service, for offline use and tests
"""
from __future__ import annotations

__version__ = "0.1.0"
