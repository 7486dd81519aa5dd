"""Decoding of UI command tokens."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from uuid import UUID

from .errors import PortguardError

SELECT_PREFIX = "s-"
REMOVE_PREFIX = "r-"


class CommandParseError(PortguardError):
    """Raised when a command token cannot be decoded."""


class CommandKind(str, Enum):
    ADD = "add"
    START = "start"
    STOP = "stop"
    QUIT = "quit"
    ABOUT = "about"
    SELECT = "select"
    REMOVE = "remove"


@dataclass(frozen=True, slots=True)
class Command:
    kind: CommandKind
    client_id: UUID | None = None
    path: Path | None = None


_SIMPLE_COMMANDS = {
    "start": CommandKind.START,
    "stop": CommandKind.STOP,
    "quit": CommandKind.QUIT,
    "about": CommandKind.ABOUT,
}

_CLIENT_PREFIXES = {
    SELECT_PREFIX: CommandKind.SELECT,
    REMOVE_PREFIX: CommandKind.REMOVE,
}


def select_token(client_id: UUID) -> str:
    return f"{SELECT_PREFIX}{client_id}"


def remove_token(client_id: UUID) -> str:
    return f"{REMOVE_PREFIX}{client_id}"


def decode_command(token: str) -> Command:
    """Decode a menu token such as ``start``, ``add /path`` or ``s-<uuid>``."""

    text = token.strip()
    if not text:
        raise CommandParseError("Empty command")

    word, _, rest = text.partition(" ")
    rest = rest.strip()

    if word == "add":
        if not rest:
            raise CommandParseError("add requires an executable path")
        return Command(CommandKind.ADD, path=Path(rest).expanduser())

    if word in _SIMPLE_COMMANDS:
        if rest:
            raise CommandParseError(f"{word} takes no arguments")
        return Command(_SIMPLE_COMMANDS[word])

    kind = _CLIENT_PREFIXES.get(text[:2])
    if kind is not None:
        try:
            client_id = UUID(text[2:])
        except ValueError as exc:
            raise CommandParseError(f"Invalid client identifier {text[2:]!r}") from exc
        return Command(kind, client_id=client_id)

    raise CommandParseError(f"Unknown command {text!r}")


__all__ = [
    "REMOVE_PREFIX",
    "SELECT_PREFIX",
    "Command",
    "CommandKind",
    "CommandParseError",
    "decode_command",
    "remove_token",
    "select_token",
]
