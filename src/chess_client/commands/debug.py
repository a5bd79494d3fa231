"""Utility commands: health, url, raw."""
from __future__ import annotations
from typing import List

from .. import display
from ..errors import UsageError
from ..registry import Command, CommandRegistry
from ..session import Session


def register(registry: CommandRegistry) -> None:
    for name, alias, desc, usage, handler in (
        ("health", ".", "Check server health", "health", health),
        ("url", "/", "Set API base URL", "url [apiUrl]", set_url),
        ("raw", ":", "Send raw API request", "raw <method> <path> [json-body]", raw_request),
    ):
        registry.register(Command(name=name, alias=alias, description=desc, usage=usage, handler=handler, group="Utility"))


def health(session: Session, args: List[str]) -> None:
    res = session.client.health()
    display.info("Server Health:")
    display.plain(f"  Status:  {res.status}")
    if res.time:
        display.plain(f"  Time:    {res.time.astimezone().strftime('%Y-%m-%d %H:%M:%S')}")
    if res.storage:
        display.plain(f"  Storage: {res.storage}")


def set_url(session: Session, args: List[str]) -> None:
    if not args:
        display.plain(f"Current API URL: {session.base_url}")
        return
    url = session.set_base_url(args[0])
    display.info(f"API URL set to: {url}")


def raw_request(session: Session, args: List[str]) -> None:
    if len(args) < 2:
        raise UsageError("usage: raw <method> <path> [json-body]")
    method = args[0].upper()
    body = " ".join(args[2:])
    data = session.client.raw_request(method, args[1], body)
    # verbose tracing already dumped the body
    if data is not None and not session.verbose:
        display.print_json(data)
