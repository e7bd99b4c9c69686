from __future__ import annotations

import logging

from onedrive_slackbot.models import CandidateFile, DriveItem

from .base import DriveClient

logger = logging.getLogger(__name__)


class CandidateExtractor:
    """Projects the direct file children of a target folder into candidates.

    Folders never become candidates. The processed-archive folder and the
    per-entity samples folder are named exclusions; any other folder is
    skipped silently. Nothing below the target folder is visited.
    """

    def __init__(
        self,
        client: DriveClient,
        *,
        processed_folder_name: str,
        samples_folder_suffix: str,
    ) -> None:
        self.client = client
        self.processed_folder_name = processed_folder_name
        self.samples_folder_suffix = samples_folder_suffix

    def excluded_folder_names(self, entity_name: str) -> set[str]:
        return {
            self.processed_folder_name,
            f"{entity_name} {self.samples_folder_suffix}",
        }

    def extract(self, target_folder_id: str, entity_name: str) -> list[CandidateFile]:
        excluded = self.excluded_folder_names(entity_name)
        candidates: list[CandidateFile] = []

        for item in self.client.list_children(target_folder_id):
            if item.is_folder:
                if item.name in excluded:
                    logger.debug('Skipping excluded folder "%s" for %s', item.name, entity_name)
                continue
            candidates.append(_to_candidate(item, entity_name))

        return candidates


def _to_candidate(item: DriveItem, entity_name: str) -> CandidateFile:
    return CandidateFile(
        id=item.id,
        name=item.name,
        owner_name=entity_name,
        modified_at=item.modified_at,
        link=item.web_url,
        parent_path=item.parent_path,
    )
