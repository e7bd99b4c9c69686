from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class SeenRecord:
    id: str
    name: str
    owner_name: str
    notified_at: datetime


@dataclass(slots=True)
class StateSnapshot:
    last_check_at: datetime | None = None
    seen: dict[str, SeenRecord] = field(default_factory=dict)


class SnapshotStore(ABC):
    """Durable home for the serialized snapshot between runs."""

    @abstractmethod
    def read(self) -> str | None:
        """Return the stored blob, or None if nothing has been stored yet."""

    @abstractmethod
    def write(self, serialized: str) -> None:
        """Replace the stored blob."""
