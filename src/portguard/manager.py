"""Client registry and single-active-process state machine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from uuid import UUID, uuid4

from .errors import PortguardError
from .process import ProcessHandle, ProcessSupervisor
from .store import ClientRecord, ConfigStore, PersistedState

logger = logging.getLogger(__name__)


class ManagerError(PortguardError):
    """Base class for state-conflict errors raised by the manager."""


class ClientRunningError(ManagerError):
    """Raised when removing the client that is currently running."""


class NotStartableError(ManagerError):
    """Raised when starting while nothing is selected or a client already runs."""


class UnknownClientError(ManagerError):
    """Raised when selecting an identifier that is not registered."""


class InvalidClientPathError(ManagerError):
    """Raised when a client path cannot be stored in the UTF-8 state file."""


class StatusKind(str, Enum):
    UNSELECTED = "unselected"
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True, slots=True)
class Status:
    """Which client is active and whether its process is alive."""

    kind: StatusKind
    client_id: UUID | None = None

    @classmethod
    def unselected(cls) -> "Status":
        return cls(StatusKind.UNSELECTED)

    @classmethod
    def stopped(cls, client_id: UUID) -> "Status":
        return cls(StatusKind.STOPPED, client_id)

    @classmethod
    def running(cls, client_id: UUID) -> "Status":
        return cls(StatusKind.RUNNING, client_id)

    @property
    def is_running(self) -> bool:
        return self.kind is StatusKind.RUNNING

    def __str__(self) -> str:
        if self.client_id is None:
            return self.kind.value.capitalize()
        return f"{self.kind.value.capitalize()}({self.client_id})"


class ClientManager:
    """Owns the registry state and at most one client process.

    The manager is not thread-safe; callers serialize access to the whole
    instance. Mutations are not persisted until :meth:`save` is called.

    ``select_client`` rejects identifiers that are not registered, so a
    ``Stopped`` status always names a registered client. ``start_background``
    relies on that and treats a missing registry entry as a programming error.
    """

    def __init__(
        self,
        store: ConfigStore,
        supervisor: ProcessSupervisor | None = None,
        *,
        auto_resume: bool = True,
        state: PersistedState | None = None,
    ) -> None:
        self._store = store
        self._supervisor = supervisor or ProcessSupervisor()
        self._auto_resume = auto_resume
        self._state = state if state is not None else store.load()
        self._status = Status.unselected()
        self._handle: ProcessHandle | None = None

    @property
    def store(self) -> ConfigStore:
        return self._store

    @property
    def state(self) -> PersistedState:
        return self._state

    @property
    def last_selected(self) -> UUID | None:
        return self._state.last_selected

    @property
    def handle(self) -> ProcessHandle | None:
        return self._handle

    def status(self) -> Status:
        return self._status

    def init(self) -> None:
        """Restore the last selection and try to start it again.

        Startup never fails here: a client that cannot be launched is logged
        and left ``Stopped``.
        """

        if self._status.kind is not StatusKind.UNSELECTED:
            return

        client_id = self._state.last_selected
        if client_id is None:
            return
        if client_id not in self._state.clients:
            logger.warning(
                "Last selected client is not registered; ignoring",
                extra={"client_id": str(client_id)},
            )
            return

        self._status = Status.stopped(client_id)
        if not self._auto_resume:
            return

        try:
            self.start_background()
        except PortguardError as exc:
            logger.warning(
                "Failed to resume last selected client",
                extra={"client_id": str(client_id), "error": str(exc)},
            )

    def list_clients(self) -> list[ClientRecord]:
        return [ClientRecord(id=client_id, path=path) for client_id, path in self._state.clients.items()]

    def get_client(self, client_id: UUID) -> ClientRecord | None:
        path = self._state.clients.get(client_id)
        if path is None:
            return None
        return ClientRecord(id=client_id, path=path)

    def add_client(self, path: Path) -> UUID:
        path = Path(path)
        try:
            str(path).encode("utf-8")
        except UnicodeEncodeError as exc:
            raise InvalidClientPathError(
                f"Client path {str(path)!r} is not valid UTF-8 and cannot be saved"
            ) from exc

        client_id = uuid4()
        self._state.clients[client_id] = path
        logger.info("Registered client", extra={"client_id": str(client_id), "path": str(path)})
        return client_id

    def remove_client(self, client_id: UUID) -> None:
        status = self._status
        if status.client_id == client_id:
            if status.is_running:
                raise ClientRunningError("Client is running")
            self._status = Status.unselected()

        removed = self._state.clients.pop(client_id, None)
        if self._state.last_selected == client_id:
            self._state.last_selected = None
        if removed is None:
            logger.debug("Client not registered; nothing removed", extra={"client_id": str(client_id)})
        else:
            logger.info("Removed client", extra={"client_id": str(client_id), "path": str(removed)})

    def select_client(self, client_id: UUID) -> None:
        if client_id not in self._state.clients:
            raise UnknownClientError(f"Unknown client {client_id}")

        status = self._status
        if status.is_running:
            if status.client_id != client_id:
                logger.info(
                    "Switching client",
                    extra={"from": str(status.client_id), "to": str(client_id)},
                )
                self.stop_background()
                self._status = Status.stopped(client_id)
                # No rollback: if the new client fails, the old one stays stopped.
                self.start_background()
        else:
            self._status = Status.stopped(client_id)

        self._state.last_selected = client_id

    def start_background(self) -> None:
        status = self._status
        if status.kind is StatusKind.UNSELECTED:
            raise NotStartableError("No client selected")
        if status.kind is StatusKind.RUNNING:
            raise NotStartableError("Other is running")

        client_id = status.client_id
        path = self._state.clients[client_id]
        handle = self._supervisor.spawn(path)
        self._handle = handle
        self._status = Status.running(client_id)

    def stop_background(self) -> None:
        status = self._status
        if not status.is_running:
            return

        self._supervisor.terminate(self._handle)
        self._handle = None
        self._status = Status.stopped(status.client_id)

    def save(self) -> bool:
        return self._store.save(self._state)


__all__ = [
    "ClientManager",
    "ClientRunningError",
    "InvalidClientPathError",
    "ManagerError",
    "NotStartableError",
    "Status",
    "StatusKind",
    "UnknownClientError",
]
