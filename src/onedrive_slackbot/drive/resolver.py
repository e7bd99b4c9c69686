from __future__ import annotations

import logging

from onedrive_slackbot.models import EntityFolder

from .base import DriveClient, DriveError

logger = logging.getLogger(__name__)


class RootNotFoundError(RuntimeError):
    """Raised when the well-known root folder cannot be located."""


class AmbiguousRootError(RootNotFoundError):
    """Raised in strict mode when several folders share the root folder name."""


class FolderResolver:
    """Locates the root folder, its entity folders and each entity's target folder."""

    def __init__(
        self,
        client: DriveClient,
        *,
        root_folder_name: str,
        target_folder_suffix: str,
        strict_root: bool = False,
    ) -> None:
        self.client = client
        self.root_folder_name = root_folder_name
        self.target_folder_suffix = target_folder_suffix
        self.strict_root = strict_root

    def find_root_folder(self) -> str:
        try:
            matches = [
                item
                for item in self.client.find_children_by_name(None, self.root_folder_name)
                if item.is_folder and item.id
            ]
        except DriveError as exc:
            raise RootNotFoundError(
                f'Could not look up "{self.root_folder_name}" directory: {exc}'
            ) from exc

        if not matches:
            raise RootNotFoundError(f'Could not find "{self.root_folder_name}" directory')

        if len(matches) > 1:
            if self.strict_root:
                raise AmbiguousRootError(
                    f'Found {len(matches)} folders named "{self.root_folder_name}"'
                )
            logger.warning(
                'Found %d folders named "%s"; using the first (%s)',
                len(matches),
                self.root_folder_name,
                matches[0].id,
            )

        logger.info('Found "%s" with id %s', self.root_folder_name, matches[0].id)
        return matches[0].id

    def list_entity_folders(self, root_id: str) -> list[EntityFolder]:
        return [
            EntityFolder(id=item.id, name=item.name)
            for item in self.client.list_children(root_id)
            if item.is_folder
        ]

    def target_folder_name(self, entity_name: str) -> str:
        return f"{entity_name} {self.target_folder_suffix}"

    def resolve_target_folder(self, entity_folder_id: str, entity_name: str) -> str | None:
        expected = self.target_folder_name(entity_name)
        for item in self.client.list_children(entity_folder_id):
            if item.is_folder and item.name == expected:
                return item.id

        logger.debug('Entity "%s" has no "%s" folder', entity_name, expected)
        return None
