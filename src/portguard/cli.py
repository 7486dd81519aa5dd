"""Console front end for Portguard."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, TextIO
from uuid import UUID

from . import __version__
from .app import Application
from .commands import CommandParseError, decode_command
from .config import PortguardSettings, get_settings
from .errors import PortguardError
from .manager import ClientManager
from .menu import MenuSnapshot
from .store import ConfigStore, ConfigStoreError

logger = logging.getLogger(__name__)

_MENU_WORDS = {"list", "help", "menu"}


def configure_logging(level: str) -> None:
    """Configure root logging for the Portguard process."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


class ConsoleNotifier:
    """Print notifications to a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def notify(self, title: str, message: str) -> None:
        print(f"[{title}] {message}", file=self._stream)


def format_menu(snapshot: MenuSnapshot) -> str:
    lines = ["Clients:"]
    if not snapshot.clients:
        lines.append("  (none) - use 'add <path>' to register one")
    for entry in snapshot.clients:
        marker = "*" if entry.selected else " "
        lines.append(f"  {marker} {entry.name}  {entry.path}")
        lines.append(f"      select: {entry.select_token}")
        lines.append(f"      remove: {entry.remove_token}")
    actions = ["add <path>"]
    if snapshot.start_enabled:
        actions.append("start")
    if snapshot.stop_enabled:
        actions.append("stop")
    actions.extend(["about", "quit"])
    lines.append(f"Status: {snapshot.status}")
    lines.append("Commands: " + ", ".join(actions))
    return "\n".join(lines)


def run_console(app: Application, stdin: Iterable[str], stdout: TextIO) -> None:
    """Read command tokens until ``quit`` or end of input."""

    notifier = ConsoleNotifier(stdout)
    print(format_menu(app.menu()), file=stdout)
    quit_dispatched = False
    try:
        for line in stdin:
            text = line.strip()
            if not text:
                continue
            if text in _MENU_WORDS:
                print(format_menu(app.menu()), file=stdout)
                continue
            try:
                command = decode_command(text)
            except CommandParseError as exc:
                notifier.notify("Invalid command", str(exc))
                continue
            if not app.dispatch(command):
                quit_dispatched = True
                break
            print(format_menu(app.menu()), file=stdout)
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
    finally:
        # Any exit other than an explicit quit still stops the running client.
        if not quit_dispatched:
            app.quit()


def _open_manager(settings: PortguardSettings) -> ClientManager:
    store = ConfigStore.from_settings(settings)
    return ClientManager(store, auto_resume=False)


def cmd_run(args: argparse.Namespace, settings: PortguardSettings) -> None:
    app = Application.from_settings(settings, notifier=ConsoleNotifier(sys.stdout))
    logger.info(
        "Launching Portguard",
        extra={"version": __version__, "state_path": str(app.manager.store.path)},
    )
    app.start()
    run_console(app, sys.stdin, sys.stdout)


def cmd_list(args: argparse.Namespace, settings: PortguardSettings) -> None:
    manager = _open_manager(settings)
    last_selected = manager.last_selected
    records = manager.list_clients()
    if args.json:
        payload = [
            {
                "id": str(record.id),
                "path": str(record.path),
                "selected": record.id == last_selected,
            }
            for record in records
        ]
        print(json.dumps(payload, indent=2))
        return
    for record in records:
        marker = "*" if record.id == last_selected else " "
        print(f"{marker} {record.id}  {record.path}")


def cmd_add(args: argparse.Namespace, settings: PortguardSettings) -> None:
    manager = _open_manager(settings)
    client_id = manager.add_client(Path(args.path).expanduser())
    manager.save()
    print(client_id)


def cmd_remove(args: argparse.Namespace, settings: PortguardSettings) -> None:
    manager = _open_manager(settings)
    manager.remove_client(args.client_id)
    manager.save()
    print(f"Removed {args.client_id}")


def cmd_select(args: argparse.Namespace, settings: PortguardSettings) -> None:
    manager = _open_manager(settings)
    manager.select_client(args.client_id)
    manager.save()
    print(f"Selected {args.client_id}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Supervise one active client executable")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="cmd")

    p_run = sub.add_parser("run", help="Resume the last client and read commands from stdin")
    p_run.set_defaults(func=cmd_run)

    p_list = sub.add_parser("list", help="List registered clients")
    p_list.add_argument("--json", action="store_true", help="Output JSON")
    p_list.set_defaults(func=cmd_list)

    p_add = sub.add_parser("add", help="Register a client executable")
    p_add.add_argument("path")
    p_add.set_defaults(func=cmd_add)

    p_remove = sub.add_parser("remove", help="Unregister a client")
    p_remove.add_argument("client_id", type=UUID)
    p_remove.set_defaults(func=cmd_remove)

    p_select = sub.add_parser("select", help="Make a client the active selection")
    p_select.add_argument("client_id", type=UUID)
    p_select.set_defaults(func=cmd_select)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``portguard`` command."""

    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    func = getattr(args, "func", cmd_run)
    try:
        func(args, settings)
    except ConfigStoreError as exc:
        logger.critical("Cannot load client registry", extra={"error": str(exc)})
        print(f"Portguard cannot start: {exc}", file=sys.stderr)
        raise SystemExit(1)
    except PortguardError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
