"""Client process launching and termination."""

from .supervisor import (
    FakeProcessSupervisor,
    KillError,
    ProcessHandle,
    ProcessSupervisor,
    SpawnError,
    SupervisorError,
)

__all__ = [
    "FakeProcessSupervisor",
    "KillError",
    "ProcessHandle",
    "ProcessSupervisor",
    "SpawnError",
    "SupervisorError",
]
