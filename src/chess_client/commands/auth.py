"""Auth commands: register, login, logout, whoami, user."""
from __future__ import annotations
from typing import List

from .. import display
from ..errors import UsageError
from ..registry import Command, CommandRegistry
from ..session import Session

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def register(registry: CommandRegistry) -> None:
    for name, alias, desc, usage, handler in (
        ("register", "r", "Register a new user", "register", register_user),
        ("login", "l", "Login with credentials", "login", login),
        ("logout", "o", "Clear authentication", "logout", logout),
        ("whoami", "i", "Show current user", "whoami", whoami),
        ("user", "e", "Set user ID manually", "user <userId>", set_user),
    ):
        registry.register(Command(name=name, alias=alias, description=desc, usage=usage, handler=handler, group="Auth"))


def _require(value: str, what: str) -> str:
    if not value:
        raise UsageError(f"{what} is required")
    return value


def register_user(session: Session, args: List[str]) -> None:
    username = _require(display.ask("Username: "), "username")
    password = _require(display.ask_password(), "password")
    email = display.ask("Email (optional): ")

    res = session.client.register(username, password, email or None)
    session.login(res.token, res.user_id, res.username)

    display.success("Registered successfully")
    display.plain(f"User ID: {res.user_id}")
    display.plain(f"Username: {res.username}")


def login(session: Session, args: List[str]) -> None:
    identifier = _require(display.ask("Username or Email: "), "username or email")
    password = _require(display.ask_password(), "password")

    # nothing in the session changes unless the service accepts the credentials
    res = session.client.login(identifier, password)
    session.login(res.token, res.user_id, res.username)

    display.success("Logged in successfully")
    display.plain(f"User ID: {res.user_id}")
    display.plain(f"Username: {res.username}")


def logout(session: Session, args: List[str]) -> None:
    session.logout()
    display.success("Logged out")


def whoami(session: Session, args: List[str]) -> None:
    if not session.is_authenticated:
        display.warn("Not authenticated")
        return
    user = session.client.me()
    display.info("Current User:")
    display.plain(f"  User ID:  {user.user_id}")
    display.plain(f"  Username: {user.username}")
    if user.email:
        display.plain(f"  Email:    {user.email}")
    if user.created_at:
        display.plain(f"  Created:  {user.created_at.strftime(TIME_FORMAT)}")
    if user.last_login_at:
        display.plain(f"  Last Login: {user.last_login_at.strftime(TIME_FORMAT)}")


def set_user(session: Session, args: List[str]) -> None:
    if not args:
        raise UsageError("usage: user <userId>")
    session.assume_user(args[0])
    display.info(f"User ID set to: {args[0]}")
    display.plain("Note: This doesn't authenticate, just sets the ID for display")
