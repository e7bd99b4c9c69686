from __future__ import annotations

from abc import ABC, abstractmethod

from onedrive_slackbot.models import DriveItem


class DriveError(RuntimeError):
    """Raised when a remote store listing call fails."""


class DriveClient(ABC):
    @abstractmethod
    def list_children(self, folder_id: str | None) -> list[DriveItem]:
        """List the direct children of a folder; ``None`` means the drive root."""

    @abstractmethod
    def find_children_by_name(self, folder_id: str | None, name: str) -> list[DriveItem]:
        """List direct children whose name equals ``name`` exactly."""
