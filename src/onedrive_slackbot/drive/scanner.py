from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from onedrive_slackbot.models import CandidateFile, EntityFolder

from .base import DriveError
from .extractor import CandidateExtractor
from .resolver import FolderResolver

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EntityScanFailure:
    entity_name: str
    message: str


@dataclass(slots=True)
class ScanResult:
    candidates: list[CandidateFile] = field(default_factory=list)
    entity_count: int = 0
    entity_failures: list[EntityScanFailure] = field(default_factory=list)


@dataclass(slots=True)
class _EntitySlot:
    candidates: list[CandidateFile] = field(default_factory=list)
    failure: EntityScanFailure | None = None


class FolderScanner:
    def __init__(
        self,
        resolver: FolderResolver,
        extractor: CandidateExtractor,
        *,
        max_workers: int = 4,
    ) -> None:
        self.resolver = resolver
        self.extractor = extractor
        self.max_workers = max(1, max_workers)

    def list_entities(self) -> list[EntityFolder]:
        root_id = self.resolver.find_root_folder()
        return self.resolver.list_entity_folders(root_id)

    def scan(self) -> ScanResult:
        """Collect candidates from every entity's target folder.

        Root resolution failures propagate. A failure while listing the
        entities or scanning one entity is recorded and yields no candidates.
        """
        root_id = self.resolver.find_root_folder()
        try:
            entities = self.resolver.list_entity_folders(root_id)
        except DriveError as exc:
            message = f"listing entity folders failed: {exc}"
            logger.exception(message)
            return ScanResult(
                entity_failures=[
                    EntityScanFailure(entity_name=self.resolver.root_folder_name, message=message)
                ]
            )
        logger.info("Scanning %d entity folders", len(entities))

        if self.max_workers == 1 or len(entities) <= 1:
            slots = [self._scan_entity(entity) for entity in entities]
        else:
            workers = min(self.max_workers, len(entities))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scan") as pool:
                slots = list(pool.map(self._scan_entity, entities))

        result = ScanResult(entity_count=len(entities))
        for slot in slots:
            result.candidates.extend(slot.candidates)
            if slot.failure is not None:
                result.entity_failures.append(slot.failure)
        return result

    def _scan_entity(self, entity: EntityFolder) -> _EntitySlot:
        try:
            target_id = self.resolver.resolve_target_folder(entity.id, entity.name)
            if target_id is None:
                return _EntitySlot()
            candidates = self.extractor.extract(target_id, entity.name)
        except Exception as exc:  # noqa: BLE001
            message = f"scan of {entity.name} failed: {exc}"
            logger.exception(message)
            return _EntitySlot(failure=EntityScanFailure(entity_name=entity.name, message=message))

        logger.debug("Entity %s has %d files", entity.name, len(candidates))
        return _EntitySlot(candidates=candidates)
