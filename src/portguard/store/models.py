"""Persisted registry models."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

from pydantic import BaseModel, Field


class PersistedState(BaseModel):
    """Durable form of the client registry."""

    clients: dict[UUID, Path] = Field(
        default_factory=dict,
        description="Registered client executables keyed by their identifier.",
    )
    last_selected: UUID | None = Field(
        default=None,
        description="Client selected when the state was last saved, if any.",
    )


@dataclass(frozen=True, slots=True)
class ClientRecord:
    """A registered client executable."""

    id: UUID
    path: Path

    @property
    def name(self) -> str:
        return self.path.stem or str(self.path)


__all__ = ["ClientRecord", "PersistedState"]
