"""Utility helpers for launching client processes."""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Any

# Portguard's own interpreter settings must not leak into client executables.
_INTERPRETER_VARS = frozenset(
    {
        "PYTHONHOME",
        "PYTHONPATH",
        "VIRTUAL_ENV",
        "PIP_RESPECT_VIRTUALENV",
    }
)


def client_environment() -> dict[str, str]:
    """Return the environment a client process is launched with."""

    return {key: value for key, value in os.environ.items() if key not in _INTERPRETER_VARS}


def popen_creation_flags() -> dict[str, Any]:
    """Return platform-specific keyword arguments that detach the child from our console."""

    if sys.platform == "win32":
        return {"creationflags": subprocess.DETACHED_PROCESS | subprocess.CREATE_NO_WINDOW}
    return {"start_new_session": True}
