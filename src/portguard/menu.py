"""Menu data derived from the manager state."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

from .commands import remove_token, select_token
from .manager import ClientManager, Status, StatusKind


@dataclass(frozen=True, slots=True)
class ClientMenuEntry:
    id: UUID
    name: str
    path: Path
    selected: bool

    @property
    def select_token(self) -> str:
        return select_token(self.id)

    @property
    def remove_token(self) -> str:
        return remove_token(self.id)


@dataclass(frozen=True, slots=True)
class MenuSnapshot:
    clients: tuple[ClientMenuEntry, ...]
    status: Status
    start_enabled: bool
    stop_enabled: bool


def build_menu(manager: ClientManager) -> MenuSnapshot:
    """Return what the tray shows for the manager's current state."""

    status = manager.status()
    entries = tuple(
        ClientMenuEntry(
            id=record.id,
            name=record.name,
            path=record.path,
            selected=status.client_id == record.id,
        )
        for record in sorted(manager.list_clients(), key=lambda record: record.name.lower())
    )
    return MenuSnapshot(
        clients=entries,
        status=status,
        start_enabled=status.kind is StatusKind.STOPPED,
        stop_enabled=status.kind is StatusKind.RUNNING,
    )


__all__ = ["ClientMenuEntry", "MenuSnapshot", "build_menu"]
