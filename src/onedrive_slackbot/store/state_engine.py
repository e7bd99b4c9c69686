from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable

from onedrive_slackbot.models import CandidateFile
from onedrive_slackbot.utils.datetime_utils import isoformat_utc, parse_datetime_utc, to_utc, utc_now

from .base import SeenRecord, StateSnapshot

logger = logging.getLogger(__name__)

RETENTION_WINDOW = timedelta(days=30)


class DedupStateEngine:
    """Tracks which file ids were already notified.

    One engine is built per run from the serialized snapshot handed in by the
    caller, and its ``export()`` is handed back at the end of the run. An id
    is reported as new at most once per retention window.
    """

    def __init__(
        self,
        snapshot: StateSnapshot | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.snapshot = snapshot or StateSnapshot()
        self.clock = clock

    @classmethod
    def from_serialized(
        cls,
        serialized: str | None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> DedupStateEngine:
        engine = cls(clock=clock)
        engine.load(serialized)
        return engine

    @property
    def seen(self) -> dict[str, SeenRecord]:
        return self.snapshot.seen

    @property
    def last_check_at(self) -> datetime | None:
        return self.snapshot.last_check_at

    def filter_new(self, candidates: Iterable[CandidateFile]) -> list[CandidateFile]:
        new_files: list[CandidateFile] = []
        for candidate in candidates:
            if not candidate.id:
                logger.warning("Ignoring file without id: %r", candidate.name)
                continue
            if candidate.id not in self.snapshot.seen:
                new_files.append(candidate)
        return new_files

    def commit(self, newly_notified: Iterable[CandidateFile], now: datetime | None = None) -> None:
        """Record candidates as notified. Only call after a successful send."""
        now = to_utc(now or self.clock())
        for candidate in newly_notified:
            if not candidate.id:
                continue
            self.snapshot.seen[candidate.id] = SeenRecord(
                id=candidate.id,
                name=candidate.name,
                owner_name=candidate.owner_name,
                notified_at=now,
            )
        self.snapshot.last_check_at = now

    def evict_expired(
        self,
        retention: timedelta = RETENTION_WINDOW,
        now: datetime | None = None,
    ) -> int:
        cutoff = to_utc(now or self.clock()) - retention
        expired = [
            record_id
            for record_id, record in self.snapshot.seen.items()
            if record.notified_at < cutoff
        ]
        for record_id in expired:
            del self.snapshot.seen[record_id]

        if expired:
            logger.info("Evicted %d seen records older than %s", len(expired), retention)
        return len(expired)

    def load(self, serialized: str | None) -> None:
        """Replace the snapshot from its serialized form. Never raises."""
        self.snapshot = StateSnapshot()
        if not serialized or not serialized.strip():
            logger.info("No stored state provided, using empty state")
            return

        try:
            parsed = json.loads(serialized)
        except (ValueError, RecursionError) as exc:
            logger.warning("Stored state is not valid JSON (%s); using empty state", exc)
            return

        if not isinstance(parsed, dict):
            logger.warning("Stored state root is not an object; using empty state")
            return

        raw_seen = parsed.get("seen", parsed.get("processedFiles"))
        if raw_seen is None:
            raw_seen = {}
        if not isinstance(raw_seen, dict):
            logger.warning("Stored state has malformed seen map; using empty state")
            return

        seen: dict[str, SeenRecord] = {}
        dropped = 0
        for record_id, raw_record in raw_seen.items():
            record = _record_from_dict(str(record_id), raw_record)
            if record is None:
                dropped += 1
                continue
            seen[record.id] = record

        if dropped:
            logger.warning("Dropped %d malformed seen records from stored state", dropped)

        self.snapshot = StateSnapshot(
            last_check_at=parse_datetime_utc(parsed.get("lastCheckAt", parsed.get("lastCheck"))),
            seen=seen,
        )
        logger.info("Loaded state with %d seen files", len(seen))

    def export(self) -> str:
        payload = {
            "lastCheckAt": isoformat_utc(self.snapshot.last_check_at),
            "seen": {
                record_id: {
                    "name": record.name,
                    "ownerName": record.owner_name,
                    "notifiedAt": isoformat_utc(record.notified_at),
                }
                for record_id, record in self.snapshot.seen.items()
            },
        }
        return json.dumps(payload, sort_keys=True, ensure_ascii=False)


def _record_from_dict(record_id: str, raw: Any) -> SeenRecord | None:
    if not record_id or not isinstance(raw, dict):
        return None

    notified_at = parse_datetime_utc(raw.get("notifiedAt"))
    if notified_at is None:
        return None

    return SeenRecord(
        id=record_id,
        name=str(raw.get("name") or ""),
        owner_name=str(raw.get("ownerName") or raw.get("clientName") or ""),
        notified_at=notified_at,
    )
