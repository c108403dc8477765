"""Unit coverage for status classification and metadata bookkeeping."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tinylocalize.backend.app.services.status_engine import (
    Metadata,
    StatusEngine,
    TranslationStatus,
    classify,
)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def advance(self, delta: timedelta) -> None:
        self.current += delta

    def __call__(self) -> datetime:
        return self.current


START = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, TranslationStatus.MISSING),
        ("", TranslationStatus.MISSING),
        ("   \t", TranslationStatus.MISSING),
        ("TODO: fix", TranslationStatus.NEEDS_REVIEW),
        ("see [link]", TranslationStatus.NEEDS_REVIEW),
        ("] before [", TranslationStatus.NEEDS_REVIEW),
        ("only [ open", TranslationStatus.COMPLETE),
        ("Hello", TranslationStatus.COMPLETE),
    ],
)
def test_classify(value: str | None, expected: TranslationStatus) -> None:
    assert classify(value) is expected


def test_record_edit_stores_metadata() -> None:
    engine = StatusEngine(clock=FakeClock(START))

    metadata = engine.record_edit("en", "x.y", "Hello")

    assert metadata.character_count == 5
    assert metadata.status is TranslationStatus.COMPLETE
    assert metadata.last_modified == int(START.timestamp() * 1000)
    assert engine.get("en", "x.y") == metadata


def test_record_edit_overwrites_previous_entry() -> None:
    clock = FakeClock(START)
    engine = StatusEngine(clock=clock)
    engine.record_edit("en", "x.y", "Hello")
    clock.advance(timedelta(seconds=5))

    metadata = engine.record_edit("en", "x.y", "")

    assert metadata.status is TranslationStatus.MISSING
    assert metadata.character_count == 0
    assert engine.get("en", "x.y").last_modified == int(START.timestamp() * 1000) + 5000


def test_describe_derives_metadata_without_storing() -> None:
    clock = FakeClock(START)
    engine = StatusEngine(clock=clock)

    metadata = engine.describe("en", "welcome.title", "TODO: Translate")

    assert metadata.status is TranslationStatus.NEEDS_REVIEW
    assert metadata.character_count == len("TODO: Translate")
    assert engine.get("en", "welcome.title") is None


def test_describe_prefers_stored_entry() -> None:
    clock = FakeClock(START)
    engine = StatusEngine(clock=clock)
    stored = engine.record_edit("en", "k", "Done")
    clock.advance(timedelta(minutes=1))

    assert engine.describe("en", "k", "something else") == stored


def test_snapshot_round_trips_with_aliases() -> None:
    engine = StatusEngine(clock=FakeClock(START))
    engine.record_edit("en", "k", "Done")

    snapshot = engine.snapshot()
    assert snapshot["en"]["k"] == {
        "lastModified": int(START.timestamp() * 1000),
        "characterCount": 4,
        "status": "complete",
    }

    restored = StatusEngine()
    restored.load(snapshot)
    assert restored.get("en", "k") == Metadata.model_validate(snapshot["en"]["k"])


def test_load_skips_malformed_entries() -> None:
    engine = StatusEngine()

    engine.load({"en": {"ok": {"lastModified": 1, "characterCount": 2, "status": "missing"}, "bad": {"status": "weird"}}, "fr": "nope"})

    assert engine.get("en", "ok") is not None
    assert engine.get("en", "bad") is None
    assert engine.languages() == ("en",)


def test_drop_language() -> None:
    engine = StatusEngine()
    engine.record_edit("de", "k", "v")

    assert engine.drop_language("de") is True
    assert engine.drop_language("de") is False
