from __future__ import annotations

from typing import Sequence

import requests

from onedrive_slackbot.models import CandidateFile
from onedrive_slackbot.utils.url_utils import parent_url

from .base import NotificationError, Notifier

TEST_MESSAGE = ":white_check_mark: OneDrive monitoring bot is set up and running!"
_ERROR_PREFIX = ":x: Error monitoring wage statements"


class SlackWebhookNotifier(Notifier):
    def __init__(
        self,
        webhook_url: str,
        *,
        folder_suffix: str = "Wage Statements",
        timeout_seconds: int = 15,
    ) -> None:
        self.webhook_url = webhook_url
        self.folder_suffix = folder_suffix
        self.timeout_seconds = timeout_seconds

    def notify_batch(self, candidates: Sequence[CandidateFile]) -> None:
        if not candidates:
            return
        self._send(build_batch_payload(candidates, self.folder_suffix))

    def notify_error(self, message: str) -> None:
        self._send({"text": f"{_ERROR_PREFIX}: {message}"})

    def send_test(self) -> None:
        self._send({"text": TEST_MESSAGE})

    def _send(self, payload: dict) -> None:
        try:
            response = requests.post(
                self.webhook_url,
                json=payload,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise NotificationError(f"Slack webhook request failed: {exc}") from exc

        if response.status_code >= 400:
            raise NotificationError(
                f"Slack webhook returned {response.status_code}: {response.text}"
            )


def group_by_owner(candidates: Sequence[CandidateFile]) -> dict[str, list[CandidateFile]]:
    groups: dict[str, list[CandidateFile]] = {}
    for candidate in candidates:
        groups.setdefault(candidate.owner_name, []).append(candidate)
    return groups


def build_batch_payload(candidates: Sequence[CandidateFile], folder_suffix: str) -> dict:
    return {"text": render_batch_text(candidates, folder_suffix)}


def render_batch_text(candidates: Sequence[CandidateFile], folder_suffix: str) -> str:
    lines: list[str] = []
    for owner_name, files in group_by_owner(candidates).items():
        folder_name = f"{owner_name} {folder_suffix}"
        folder_url = next((parent_url(f.link) for f in files if f.link), "")
        target = f"<{folder_url}|{folder_name}>" if folder_url else folder_name
        prefix = "File Uploaded" if len(files) == 1 else f"{len(files)} Files Uploaded"
        lines.append(f"{prefix} to {target}")
    return "\n".join(lines)
