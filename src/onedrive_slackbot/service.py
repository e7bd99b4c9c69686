from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from onedrive_slackbot.drive import FolderScanner, ScanResult
from onedrive_slackbot.models import CandidateFile
from onedrive_slackbot.notifiers import Notifier
from onedrive_slackbot.store import DedupStateEngine
from onedrive_slackbot.utils.datetime_utils import isoformat_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunResult:
    timestamp: datetime
    files_checked: int = 0
    new_files: list[CandidateFile] = field(default_factory=list)
    entity_failures: list[str] = field(default_factory=list)
    state_for_storage: str | None = None
    error: str | None = None
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error
        if not self.new_files:
            return "No new files found"
        if self.dry_run:
            return f"Would notify about {len(self.new_files)} new file(s)"
        return f"Notified about {len(self.new_files)} new file(s)"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.ok,
            "timestamp": isoformat_utc(self.timestamp),
            "filesChecked": self.files_checked,
            "newFilesFound": len(self.new_files),
            "newFiles": [
                {
                    "id": candidate.id,
                    "ownerName": candidate.owner_name,
                    "name": candidate.name,
                    "modifiedAt": isoformat_utc(candidate.modified_at),
                    "link": candidate.link,
                }
                for candidate in self.new_files
            ],
            "message": self.message,
            "stateForStorage": self.state_for_storage,
        }
        if self.entity_failures:
            payload["entityFailures"] = list(self.entity_failures)
        if self.error is not None:
            payload["error"] = self.error
        return payload


class FolderWatchService:
    """Runs one scan, notify and commit cycle over a serialized snapshot."""

    def __init__(
        self,
        *,
        scanner: FolderScanner,
        notifier: Notifier | None,
        dry_run: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.scanner = scanner
        self.notifier = notifier
        self.dry_run = dry_run
        self.clock = clock

    def run_once(self, stored_state: str | None) -> RunResult:
        now = self.clock()
        result = RunResult(timestamp=now, dry_run=self.dry_run)
        engine = DedupStateEngine.from_serialized(stored_state, clock=self.clock)

        scan = self._scan(result, engine)
        if scan is None:
            return result

        new_files = engine.filter_new(scan.candidates)
        logger.info("%d new files to notify about", len(new_files))

        if self.dry_run:
            result.new_files = new_files
            result.state_for_storage = engine.export()
            return result

        if new_files:
            if self.notifier is None:
                self._fail(result, engine, "notifier is required when dry_run is false")
                return result
            try:
                self.notifier.notify_batch(new_files)
            except Exception as exc:  # noqa: BLE001
                # not committed, so these files stay new for the next run
                self._fail(result, engine, f"failed to send notification: {exc}", exc)
                return result
            logger.info("Sent notification for %d file(s)", len(new_files))

        engine.commit(new_files, now=now)
        engine.evict_expired(now=now)

        result.new_files = new_files
        result.state_for_storage = engine.export()
        return result

    def backfill(self, stored_state: str | None) -> RunResult:
        """Mark every file currently present as seen without notifying."""
        now = self.clock()
        result = RunResult(timestamp=now)
        engine = DedupStateEngine.from_serialized(stored_state, clock=self.clock)

        scan = self._scan(result, engine, notify_on_failure=False)
        if scan is None:
            return result

        new_files = engine.filter_new(scan.candidates)
        engine.commit(new_files, now=now)
        engine.evict_expired(now=now)

        logger.info("Backfill marked %d file(s) as seen", len(new_files))
        result.new_files = new_files
        result.state_for_storage = engine.export()
        return result

    def _scan(
        self,
        result: RunResult,
        engine: DedupStateEngine,
        *,
        notify_on_failure: bool = True,
    ) -> ScanResult | None:
        logger.info("Starting folder check")
        try:
            scan = self.scanner.scan()
        except Exception as exc:  # noqa: BLE001
            self._fail(result, engine, str(exc), exc, notify=notify_on_failure)
            return None

        result.files_checked = len(scan.candidates)
        result.entity_failures = [failure.message for failure in scan.entity_failures]
        logger.info(
            "Found %d total files in %d entity folders (%d failed)",
            len(scan.candidates),
            scan.entity_count,
            len(scan.entity_failures),
        )
        return scan

    def _fail(
        self,
        result: RunResult,
        engine: DedupStateEngine,
        message: str,
        exc: BaseException | None = None,
        *,
        notify: bool = True,
    ) -> None:
        if exc is not None:
            logger.error("Run failed: %s", message, exc_info=exc)
        else:
            logger.error("Run failed: %s", message)

        result.error = message
        result.state_for_storage = engine.export()

        if notify and self.notifier is not None and not self.dry_run:
            try:
                self.notifier.notify_error(message)
            except Exception as notify_exc:  # noqa: BLE001
                logger.exception("Failed to send error notification: %s", notify_exc)
