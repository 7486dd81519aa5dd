"""Application shell that serializes access to the client manager."""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from . import __version__
from .commands import Command, CommandKind
from .config import PortguardSettings
from .errors import PortguardError
from .manager import ClientManager, Status
from .menu import MenuSnapshot, build_menu
from .process import ProcessSupervisor
from .store import ConfigStore

logger = logging.getLogger(__name__)

_ERROR_TITLES = {
    CommandKind.ADD: "Add Error",
    CommandKind.START: "Start Error",
    CommandKind.STOP: "Stop Error",
    CommandKind.SELECT: "Select Error",
    CommandKind.REMOVE: "Remove Error",
}


class Notifier(Protocol):
    """Surface for user-facing messages."""

    def notify(self, title: str, message: str) -> None:
        ...


class LoggingNotifier:
    """Notifier that only writes to the log."""

    def notify(self, title: str, message: str) -> None:
        logger.warning("%s: %s", title, message)


class Application:
    """Owns the manager and the lock every operation runs under."""

    def __init__(self, manager: ClientManager, notifier: Notifier | None = None) -> None:
        self._manager = manager
        self._notifier = notifier or LoggingNotifier()
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: PortguardSettings,
        *,
        supervisor: ProcessSupervisor | None = None,
        notifier: Notifier | None = None,
    ) -> "Application":
        store = ConfigStore.from_settings(settings)
        manager = ClientManager(
            store,
            supervisor or ProcessSupervisor(kill_timeout=settings.kill_timeout),
            auto_resume=settings.auto_resume,
        )
        return cls(manager, notifier)

    @property
    def manager(self) -> ClientManager:
        return self._manager

    def start(self) -> None:
        with self._lock:
            self._manager.init()

    def status(self) -> Status:
        with self._lock:
            return self._manager.status()

    def menu(self) -> MenuSnapshot:
        with self._lock:
            return build_menu(self._manager)

    def dispatch(self, command: Command) -> bool:
        """Run a command; returns ``False`` once the application has quit."""

        if command.kind is CommandKind.QUIT:
            self.quit()
            return False

        with self._lock:
            try:
                self._execute(command)
            except PortguardError as exc:
                logger.info(
                    "Command failed",
                    extra={"command": command.kind.value, "error": str(exc)},
                )
                self._notifier.notify(_ERROR_TITLES.get(command.kind, "Error"), str(exc))
        return True

    def _execute(self, command: Command) -> None:
        manager = self._manager
        kind = command.kind
        if kind is CommandKind.ADD:
            manager.add_client(command.path)
            manager.save()
        elif kind is CommandKind.REMOVE:
            manager.remove_client(command.client_id)
            manager.save()
        elif kind is CommandKind.SELECT:
            manager.select_client(command.client_id)
            manager.save()
        elif kind is CommandKind.START:
            manager.start_background()
        elif kind is CommandKind.STOP:
            manager.stop_background()
        elif kind is CommandKind.ABOUT:
            self._notifier.notify("About", f"Portguard {__version__}")

    def quit(self) -> None:
        """Stop any running client, then persist the registry."""

        with self._lock:
            try:
                self._manager.stop_background()
            except PortguardError as exc:
                logger.warning("Failed to stop client during shutdown", extra={"error": str(exc)})
            self._manager.save()


__all__ = ["Application", "LoggingNotifier", "Notifier"]
