from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from onedrive_slackbot.models import CandidateFile
from onedrive_slackbot.store import RETENTION_WINDOW, DedupStateEngine

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _candidate(file_id: str, name: str = "a.pdf", owner: str = "Acme") -> CandidateFile:
    return CandidateFile(
        id=file_id,
        name=name,
        owner_name=owner,
        modified_at=T0,
        link=f"https://example.sharepoint.com/{owner}/{name}",
    )


def _engine(now: datetime = T0) -> DedupStateEngine:
    return DedupStateEngine(clock=lambda: now)


def test_filter_new_is_pure_and_keeps_input_order() -> None:
    engine = _engine()
    engine.commit([_candidate("f2")])
    candidates = [_candidate("f3"), _candidate("f2"), _candidate("f1")]

    first = engine.filter_new(candidates)
    second = engine.filter_new(candidates)

    assert [c.id for c in first] == ["f3", "f1"]
    assert [c.id for c in second] == ["f3", "f1"]
    assert set(engine.seen) == {"f2"}


def test_commit_records_seen_and_updates_last_check() -> None:
    engine = _engine()
    engine.commit([_candidate("f1", name="jan.pdf", owner="Acme")])

    record = engine.seen["f1"]
    assert record.name == "jan.pdf"
    assert record.owner_name == "Acme"
    assert record.notified_at == T0
    assert engine.last_check_at == T0


def test_commit_with_no_files_only_advances_last_check() -> None:
    engine = _engine()
    engine.commit([])

    assert engine.seen == {}
    assert engine.last_check_at == T0


def test_committed_file_is_not_new_within_window() -> None:
    engine = _engine()
    engine.commit([_candidate("f1")])

    later = T0 + RETENTION_WINDOW - timedelta(seconds=1)
    assert engine.evict_expired(now=later) == 0
    assert engine.filter_new([_candidate("f1")]) == []


def test_record_on_window_boundary_is_kept() -> None:
    engine = _engine()
    engine.commit([_candidate("f1")])

    assert engine.evict_expired(now=T0 + RETENTION_WINDOW) == 0
    assert "f1" in engine.seen


def test_record_older_than_window_is_evicted_and_becomes_new_again() -> None:
    engine = _engine()
    engine.commit([_candidate("f1"), _candidate("f2")], now=T0 - timedelta(days=31))
    engine.commit([_candidate("f3")], now=T0 - timedelta(days=2))

    evicted = engine.evict_expired(now=T0)

    assert evicted == 2
    assert set(engine.seen) == {"f3"}
    assert [c.id for c in engine.filter_new([_candidate("f1"), _candidate("f3")])] == ["f1"]


def test_files_without_id_are_never_reported_or_committed() -> None:
    engine = _engine()
    nameless = _candidate("")

    assert engine.filter_new([nameless]) == []
    engine.commit([nameless])
    assert engine.seen == {}


def test_export_has_canonical_shape() -> None:
    engine = _engine()
    engine.commit([_candidate("f1", name="a.pdf", owner="Acme")])

    assert json.loads(engine.export()) == {
        "lastCheckAt": "2026-03-01T12:00:00Z",
        "seen": {
            "f1": {
                "name": "a.pdf",
                "ownerName": "Acme",
                "notifiedAt": "2026-03-01T12:00:00Z",
            }
        },
    }


def test_export_load_round_trip_is_stable() -> None:
    engine = _engine()
    engine.commit([_candidate("f1"), _candidate("f2", owner="Globex")])
    engine.commit([_candidate("f3")], now=T0 + timedelta(hours=1, microseconds=250))
    exported = engine.export()

    reloaded = DedupStateEngine.from_serialized(exported)

    assert reloaded.export() == exported
    assert set(reloaded.seen) == {"f1", "f2", "f3"}
    assert reloaded.seen["f2"].owner_name == "Globex"
    assert reloaded.last_check_at == T0 + timedelta(hours=1, microseconds=250)


@pytest.mark.parametrize(
    "blob",
    [
        None,
        "",
        "   ",
        "not json",
        "[1, 2, 3]",
        '"just a string"',
        '{"seen": ["f1"]}',
        '{"lastCheckAt": "2026-01-01T00:00:00Z", "seen": 42}',
        "[" * 200000,
    ],
)
def test_malformed_or_absent_state_degrades_to_empty(blob: str | None) -> None:
    engine = DedupStateEngine.from_serialized(blob)

    candidates = [_candidate("f1"), _candidate("f2")]
    assert engine.filter_new(candidates) == candidates
    assert engine.seen == {}


def test_load_drops_only_malformed_records() -> None:
    blob = json.dumps(
        {
            "lastCheckAt": "2026-02-01T00:00:00Z",
            "seen": {
                "good": {"name": "a.pdf", "ownerName": "Acme", "notifiedAt": "2026-02-01T00:00:00Z"},
                "no-time": {"name": "b.pdf", "ownerName": "Acme"},
                "bad-time": {"name": "c.pdf", "ownerName": "Acme", "notifiedAt": "yesterday-ish"},
                "not-a-dict": "oops",
            },
        }
    )

    engine = DedupStateEngine.from_serialized(blob)

    assert set(engine.seen) == {"good"}
    assert engine.last_check_at == datetime(2026, 2, 1, tzinfo=timezone.utc)


def test_load_accepts_legacy_key_names() -> None:
    blob = json.dumps(
        {
            "lastCheck": "2026-02-10T08:00:00.000Z",
            "processedFiles": {
                "f1": {
                    "name": "a.pdf",
                    "clientName": "Acme",
                    "notifiedAt": "2026-02-10T08:00:00.000Z",
                }
            },
        }
    )

    engine = DedupStateEngine.from_serialized(blob)

    assert engine.seen["f1"].owner_name == "Acme"
    assert engine.seen["f1"].notified_at == datetime(2026, 2, 10, 8, 0, tzinfo=timezone.utc)
    assert json.loads(engine.export())["lastCheckAt"] == "2026-02-10T08:00:00Z"


def test_load_replaces_previous_snapshot() -> None:
    engine = _engine()
    engine.commit([_candidate("f1")])

    engine.load("not json")

    assert engine.seen == {}
    assert engine.last_check_at is None


def test_naive_now_is_treated_as_utc() -> None:
    engine = _engine()
    engine.commit([_candidate("f1")], now=datetime(2026, 1, 1, 12, 0))
    engine.commit([_candidate("f2")], now=datetime(2026, 2, 25, 12, 0))

    assert engine.seen["f1"].notified_at.tzinfo is not None
    assert engine.evict_expired(now=datetime(2026, 3, 1, 12, 0)) == 1
    assert set(engine.seen) == {"f2"}
