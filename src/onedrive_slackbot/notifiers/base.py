from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from onedrive_slackbot.models import CandidateFile


class NotificationError(RuntimeError):
    """Raised when a notification could not be delivered."""


class Notifier(ABC):
    @abstractmethod
    def notify_batch(self, candidates: Sequence[CandidateFile]) -> None:
        """Send one message announcing a non-empty batch of new files."""

    @abstractmethod
    def notify_error(self, message: str) -> None:
        """Send a pipeline failure message."""

    @abstractmethod
    def send_test(self) -> None:
        """Send a message confirming the integration works."""
