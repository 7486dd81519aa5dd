"""Spawn and kill a single background client process."""

from __future__ import annotations

import itertools
import logging
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from ..errors import PortguardError
from .utils import client_environment, popen_creation_flags

logger = logging.getLogger(__name__)


class SupervisorError(PortguardError):
    """Base class for OS-level process errors."""


class SpawnError(SupervisorError):
    """Raised when a client executable cannot be launched."""


class KillError(SupervisorError):
    """Raised when a running client cannot be terminated."""


@dataclass(slots=True, eq=False)
class ProcessHandle:
    """A live child process launched from a client executable."""

    path: Path
    pid: int
    started_at: datetime
    process: Any = field(default=None, repr=False)


class ProcessSupervisor:
    """Launch client executables without capturing their output."""

    def __init__(self, *, kill_timeout: float = 5.0) -> None:
        self._kill_timeout = kill_timeout

    @property
    def kill_timeout(self) -> float:
        return self._kill_timeout

    def spawn(self, path: Path) -> ProcessHandle:
        executable = Path(path)
        try:
            process = subprocess.Popen(
                [str(executable)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=client_environment(),
                **popen_creation_flags(),
            )
        except (OSError, ValueError) as exc:
            reason = getattr(exc, "strerror", None) or str(exc)
            raise SpawnError(f"Failed to start {executable}: {reason}") from exc

        logger.info("Started client process", extra={"path": str(executable), "pid": process.pid})
        return ProcessHandle(
            path=executable,
            pid=process.pid,
            started_at=datetime.now(timezone.utc),
            process=process,
        )

    def terminate(self, handle: ProcessHandle) -> None:
        """Kill the child and reap it.

        A child that has already exited is reaped without signalling it.
        """

        process: subprocess.Popen = handle.process
        if process.poll() is not None:
            logger.info(
                "Client process had already exited",
                extra={"path": str(handle.path), "pid": handle.pid, "returncode": process.returncode},
            )
            return

        try:
            process.kill()
            process.wait(timeout=self._kill_timeout)
        except subprocess.TimeoutExpired as exc:
            raise KillError(
                f"Client {handle.path} (pid {handle.pid}) did not exit within {self._kill_timeout}s"
            ) from exc
        except OSError as exc:
            raise KillError(f"Failed to stop {handle.path} (pid {handle.pid}): {exc}") from exc

        logger.info("Stopped client process", extra={"path": str(handle.path), "pid": handle.pid})


class FakeProcessSupervisor(ProcessSupervisor):
    """Test double that records launches instead of creating processes."""

    def __init__(self, spawn_failures: Iterable[Path] | None = None) -> None:  # type: ignore[override]
        super().__init__(kill_timeout=0.1)
        self._spawn_failures = {Path(path) for path in (spawn_failures or [])}
        self._kill_failures = 0
        self._pids = itertools.count(1000)
        self.spawned: list[ProcessHandle] = []
        self.terminated: list[ProcessHandle] = []

    def fail_spawn(self, path: Path) -> None:
        self._spawn_failures.add(Path(path))

    def fail_next_kill(self, count: int = 1) -> None:
        self._kill_failures += count

    def spawn(self, path: Path) -> ProcessHandle:  # type: ignore[override]
        executable = Path(path)
        if executable in self._spawn_failures:
            raise SpawnError(f"Failed to start {executable}: No such file or directory")
        handle = ProcessHandle(
            path=executable,
            pid=next(self._pids),
            started_at=datetime.now(timezone.utc),
        )
        self.spawned.append(handle)
        return handle

    def terminate(self, handle: ProcessHandle) -> None:  # type: ignore[override]
        if self._kill_failures:
            self._kill_failures -= 1
            raise KillError(f"Failed to stop {handle.path} (pid {handle.pid}): Operation not permitted")
        self.terminated.append(handle)

    @property
    def live(self) -> list[ProcessHandle]:
        return [
            handle
            for handle in self.spawned
            if not any(handle is stopped for stopped in self.terminated)
        ]


__all__ = [
    "FakeProcessSupervisor",
    "KillError",
    "ProcessHandle",
    "ProcessSupervisor",
    "SpawnError",
    "SupervisorError",
]
