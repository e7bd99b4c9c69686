from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from onedrive_slackbot.utils.datetime_utils import parse_datetime_utc


@dataclass(slots=True)
class DriveItem:
    """A single entry from a remote folder listing."""

    id: str
    name: str
    is_folder: bool
    modified_at: datetime | None = None
    web_url: str = ""
    parent_path: str = ""

    @classmethod
    def from_graph(cls, payload: dict[str, Any]) -> DriveItem:
        parent = payload.get("parentReference") or {}
        if not isinstance(parent, dict):
            parent = {}
        return cls(
            id=str(payload.get("id") or ""),
            name=str(payload.get("name") or ""),
            is_folder=payload.get("folder") is not None,
            modified_at=parse_datetime_utc(payload.get("lastModifiedDateTime")),
            web_url=str(payload.get("webUrl") or ""),
            parent_path=str(parent.get("path") or ""),
        )


@dataclass(slots=True)
class EntityFolder:
    id: str
    name: str


@dataclass(slots=True)
class CandidateFile:
    id: str
    name: str
    owner_name: str
    modified_at: datetime | None
    link: str
    parent_path: str = ""
