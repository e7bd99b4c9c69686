from __future__ import annotations

import logging
import os
from pathlib import Path

from .base import SnapshotStore

logger = logging.getLogger(__name__)


class SnapshotFileStore(SnapshotStore):
    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def read(self) -> str | None:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read state file %s (%s); using empty state", self.path, exc)
            return None

    def write(self, serialized: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(f".{self.path.name}.tmp")
        temp_path.write_text(serialized, encoding="utf-8")
        os.replace(temp_path, self.path)
