"""JSON state file stored next to the running executable."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from ..config import PortguardSettings
from ..errors import PortguardError
from .models import PersistedState

logger = logging.getLogger(__name__)

STATE_SUFFIX = ".json"


class ConfigStoreError(PortguardError):
    """Raised when an existing state file cannot be read or parsed."""


def locate_state_file(executable: str | None = None) -> Path | None:
    """Return the state file path derived from the running executable.

    The file shares the executable's directory and base name with a ``.json``
    suffix. Returns ``None`` when the executable path cannot be resolved.
    """

    raw = sys.argv[0] if executable is None else executable
    if not raw:
        return None
    try:
        resolved = Path(raw).resolve(strict=True)
    except (OSError, RuntimeError):
        return None
    if resolved.is_dir():
        return None
    return resolved.with_suffix(STATE_SUFFIX)


class ConfigStore:
    """Loads and saves the client registry.

    Loading fails loudly on a corrupt file. Saving is best-effort: a missing
    location or a write failure is logged and otherwise ignored.
    """

    def __init__(self, path: Path | None) -> None:
        self._path = Path(path) if path is not None else None

    @classmethod
    def from_settings(cls, settings: PortguardSettings) -> "ConfigStore":
        if settings.state_path is not None:
            return cls(settings.state_path)
        return cls(locate_state_file())

    @property
    def path(self) -> Path | None:
        return self._path

    def load(self) -> PersistedState:
        if self._path is None:
            logger.warning("State file location unavailable; starting with an empty registry")
            return PersistedState()

        if not self._path.exists():
            logger.info("No state file found", extra={"path": str(self._path)})
            return PersistedState()

        try:
            raw = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigStoreError(f"Failed to read state file {self._path}: {exc}") from exc

        try:
            state = PersistedState.model_validate_json(raw)
        except ValidationError as exc:
            raise ConfigStoreError(f"Failed to parse state file {self._path}: {exc}") from exc

        logger.debug(
            "Loaded state file",
            extra={"path": str(self._path), "clients": len(state.clients)},
        )
        return state

    def save(self, state: PersistedState) -> bool:
        """Overwrite the state file. Returns whether anything was written."""

        if self._path is None:
            logger.debug("State file location unavailable; skipping save")
            return False

        try:
            payload = state.model_dump_json(indent=2)
            self._path.write_text(payload + "\n", encoding="utf-8")
        except (OSError, ValueError, PydanticSerializationError) as exc:
            logger.warning(
                "Failed to write state file",
                extra={"path": str(self._path), "error": str(exc)},
            )
            return False
        return True


__all__ = ["STATE_SUFFIX", "ConfigStore", "ConfigStoreError", "locate_state_file"]
