from __future__ import annotations

from datetime import datetime, timezone

import pytest

from onedrive_slackbot.drive import (
    CandidateExtractor,
    DriveClient,
    DriveError,
    FolderResolver,
    FolderScanner,
)
from onedrive_slackbot.models import DriveItem


class FakeDriveClient(DriveClient):
    """In-memory drive: maps folder id (None for the root) to its children."""

    def __init__(self) -> None:
        self.children: dict[str | None, list[DriveItem]] = {None: []}
        self.failing: set[str | None] = set()
        self.calls: list[str | None] = []

    def add_folder(self, parent_id: str | None, folder_id: str, name: str) -> str:
        self.children.setdefault(parent_id, []).append(
            DriveItem(id=folder_id, name=name, is_folder=True)
        )
        self.children.setdefault(folder_id, [])
        return folder_id

    def add_file(
        self,
        parent_id: str,
        file_id: str,
        name: str,
        *,
        modified_at: datetime | None = datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc),
        web_url: str | None = None,
    ) -> None:
        self.children.setdefault(parent_id, []).append(
            DriveItem(
                id=file_id,
                name=name,
                is_folder=False,
                modified_at=modified_at,
                web_url=web_url if web_url is not None else f"https://example.sharepoint.com/{parent_id}/{name}",
                parent_path=f"/drive/root:/{parent_id}",
            )
        )

    def list_children(self, folder_id: str | None) -> list[DriveItem]:
        self.calls.append(folder_id)
        if folder_id in self.failing:
            raise DriveError(f"listing {folder_id} failed")
        return list(self.children.get(folder_id, []))

    def find_children_by_name(self, folder_id: str | None, name: str) -> list[DriveItem]:
        return [item for item in self.list_children(folder_id) if item.name == name]


def build_scanner(client: DriveClient, *, max_workers: int = 1, strict_root: bool = False) -> FolderScanner:
    resolver = FolderResolver(
        client,
        root_folder_name="Client Folders",
        target_folder_suffix="Wage Statements",
        strict_root=strict_root,
    )
    extractor = CandidateExtractor(
        client,
        processed_folder_name="Processed Wage Statements",
        samples_folder_suffix="Wage Statements Samples",
    )
    return FolderScanner(resolver, extractor, max_workers=max_workers)


@pytest.fixture
def empty_drive() -> FakeDriveClient:
    return FakeDriveClient()


@pytest.fixture
def drive() -> FakeDriveClient:
    client = FakeDriveClient()
    client.add_folder(None, "root-1", "Client Folders")
    return client


@pytest.fixture
def add_client(drive: FakeDriveClient):
    """Create ``<name>`` and ``<name> Wage Statements``; returns the target folder id."""

    def _add(name: str) -> str:
        entity_id = drive.add_folder("root-1", f"entity-{name}", name)
        return drive.add_folder(entity_id, f"target-{name}", f"{name} Wage Statements")

    return _add


@pytest.fixture
def scanner_factory():
    return build_scanner
