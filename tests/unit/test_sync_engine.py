"""Unit coverage for reconciliation, merge precedence and garbage collection."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Mapping

from tinylocalize.backend.app.services import (
    BaseSourceError,
    InMemoryStorage,
    SyncEngine,
    TranslationStore,
)
from tinylocalize.backend.app.services.storage import METADATA_SLOT, TRANSLATIONS_SLOT
from tinylocalize.backend.config.settings import build_settings


class FakeSource:
    """In-memory base source; ``None`` documents simulate failed fetches."""

    def __init__(self, documents: Mapping[str, Any]) -> None:
        self.documents = dict(documents)
        self.calls: list[str] = []

    async def fetch(self, code: str) -> Mapping[str, Any]:
        self.calls.append(code)
        await asyncio.sleep(0)
        document = self.documents.get(code)
        if document is None:
            raise BaseSourceError(f"no document for {code}")
        return document


class GatedSource:
    """Base source whose responses are released manually, per call."""

    def __init__(self) -> None:
        self.pending: list[tuple[str, asyncio.Future[Mapping[str, Any]]]] = []

    async def fetch(self, code: str) -> Mapping[str, Any]:
        future: asyncio.Future[Mapping[str, Any]] = asyncio.get_running_loop().create_future()
        self.pending.append((code, future))
        return await future

    async def wait_for(self, count: int) -> None:
        while len(self.pending) < count:
            await asyncio.sleep(0)


def make_store(
    *, enable_overrides: bool = True, storage: InMemoryStorage | None = None
) -> tuple[TranslationStore, list[int]]:
    settings = build_settings(
        {
            "default_language": "en",
            "languages": ["en", "fr", "de"],
            "enable_overrides": enable_overrides,
        }
    )
    store = TranslationStore(settings, storage or InMemoryStorage())
    notifications: list[int] = []
    store.bus.subscribe(lambda: notifications.append(1))
    return store, notifications


def test_reconcile_loads_base_documents() -> None:
    store, notifications = make_store()
    source = FakeSource({"en": {"welcome": {"title": "Hello"}}})
    engine = SyncEngine(store, source)

    report = asyncio.run(engine.reconcile(["en", "fr"]))

    assert store.resolve("welcome.title") == "Hello"
    assert report.fetched == ("en",)
    assert report.failed == ("fr",)
    assert report.loaded == ("en",)
    assert notifications == [1]


def test_reconcile_normalises_and_deduplicates_codes() -> None:
    store, _ = make_store()
    source = FakeSource({"en": {"a": "b"}})

    asyncio.run(SyncEngine(store, source).reconcile(["EN", "en", " ", "En "]))

    assert source.calls == ["en"]


def test_failed_fetch_keeps_previous_data() -> None:
    store, _ = make_store()
    source = FakeSource({"en": {"greeting": "Hi"}, "fr": {"greeting": "Salut"}})
    engine = SyncEngine(store, source)
    asyncio.run(engine.reconcile(["en", "fr"]))

    source.documents["fr"] = None
    report = asyncio.run(engine.reconcile(["en", "fr"]))

    assert report.failed == ("fr",)
    assert store.resolve_detailed("greeting", language="fr").text == "Salut"


def test_override_mode_merges_shallowly() -> None:
    storage = InMemoryStorage(
        {TRANSLATIONS_SLOT: json.dumps({"en": {"welcome": {"title": "Local"}, "extra": "E"}})}
    )
    store, _ = make_store(storage=storage)
    source = FakeSource(
        {"en": {"welcome": {"title": "Hello", "subtitle": "Sub"}, "footer": "F"}}
    )

    asyncio.run(SyncEngine(store, source).reconcile(["en"]))

    assert store.resolve("welcome.title") == "Local"
    assert store.resolve("welcome.subtitle") == 'TODO: Translate "welcome.subtitle"'
    assert store.resolve("footer") == "F"
    assert store.resolve("extra") == "E"


def test_disabled_mode_uses_base_only() -> None:
    storage = InMemoryStorage({TRANSLATIONS_SLOT: json.dumps({"en": {"greeting": "Local"}})})
    store, _ = make_store(enable_overrides=False, storage=storage)
    source = FakeSource({"en": {"greeting": "Shipped"}})

    asyncio.run(SyncEngine(store, source).reconcile(["en"]))

    assert store.resolve("greeting") == "Shipped"


def test_reconcile_is_idempotent() -> None:
    storage = InMemoryStorage({TRANSLATIONS_SLOT: json.dumps({"en": {"greeting": "Local"}})})
    store, _ = make_store(storage=storage)
    source = FakeSource({"en": {"greeting": "Hi", "welcome": {"title": "Hello"}}, "fr": {"greeting": "Salut"}})
    engine = SyncEngine(store, source)

    asyncio.run(engine.reconcile(["en", "fr", "de"]))
    first = store.snapshot()
    asyncio.run(engine.reconcile(["en", "fr", "de"]))

    assert store.snapshot() == first


def test_garbage_collection_removes_stale_languages() -> None:
    storage = InMemoryStorage(
        {
            TRANSLATIONS_SLOT: json.dumps({"de": {}}),
            METADATA_SLOT: json.dumps(
                {"de": {"k": {"lastModified": 1, "characterCount": 1, "status": "complete"}}}
            ),
        }
    )
    store, _ = make_store(storage=storage)
    source = FakeSource({"en": {"greeting": "Hi"}, "de": {"greeting": "Hallo"}})
    engine = SyncEngine(store, source)
    asyncio.run(engine.reconcile(["en", "de"]))
    assert "de" in store.language_codes()

    source.documents["de"] = {}
    report = asyncio.run(engine.reconcile(["en", "de"]))

    assert report.removed == ("de",)
    assert "de" not in store.language_codes()
    assert store.status.get("de", "k") is None
    assert "de" not in json.loads(storage.get_item(TRANSLATIONS_SLOT))
    assert "de" not in json.loads(storage.get_item(METADATA_SLOT))


def test_garbage_collection_drops_metadata_without_translations() -> None:
    storage = InMemoryStorage(
        {
            TRANSLATIONS_SLOT: "{not json",
            METADATA_SLOT: json.dumps(
                {"de": {"k": {"lastModified": 1, "characterCount": 1, "status": "complete"}}}
            ),
        }
    )
    store, _ = make_store(storage=storage)
    assert store.status.languages() == ("de",)

    report = asyncio.run(SyncEngine(store, FakeSource({"en": {"greeting": "Hi"}})).reconcile(["en"]))

    assert report.loaded == ("en",)
    assert report.removed == ("de",)
    assert "de" not in store.status.languages()
    assert "de" not in json.loads(storage.get_item(METADATA_SLOT))


def test_garbage_collection_in_disabled_mode() -> None:
    store, _ = make_store(enable_overrides=False)
    store.add_language("it")
    source = FakeSource({"en": {"greeting": "Hi"}})

    report = asyncio.run(SyncEngine(store, source).reconcile(["en"]))

    assert report.removed == ("it",)
    assert store.language_codes() == ["en"]


def test_override_only_language_with_content_survives() -> None:
    store, _ = make_store()
    store.edit("greeting", "Konnichiwa", language="ja")
    source = FakeSource({"en": {"greeting": "Hi"}})

    report = asyncio.run(SyncEngine(store, source).reconcile(["en"]))

    assert set(report.loaded) == {"en", "ja"}


def test_superseded_reconcile_results_are_discarded() -> None:
    store, notifications = make_store()
    source = GatedSource()
    engine = SyncEngine(store, source)

    async def scenario() -> tuple[Any, Any]:
        first = asyncio.create_task(engine.reconcile(["en"]))
        await source.wait_for(1)
        second = asyncio.create_task(engine.reconcile(["en"]))
        await source.wait_for(2)
        (_, newer), (_, older) = source.pending[1], source.pending[0]
        newer.set_result({"greeting": "new"})
        await asyncio.sleep(0)
        older.set_result({"greeting": "stale"})
        return await first, await second

    first_report, second_report = asyncio.run(scenario())

    assert first_report.superseded is True
    assert first_report.discarded == ("en",)
    assert second_report.superseded is False
    assert store.resolve("greeting") == "new"
    assert notifications == [1]


def test_last_write_wins_when_discarding_is_disabled() -> None:
    store, notifications = make_store()
    source = GatedSource()
    engine = SyncEngine(store, source, discard_stale=False)

    async def scenario() -> None:
        first = asyncio.create_task(engine.reconcile(["en"]))
        await source.wait_for(1)
        second = asyncio.create_task(engine.reconcile(["en"]))
        await source.wait_for(2)
        source.pending[1][1].set_result({"greeting": "new"})
        await asyncio.sleep(0)
        source.pending[0][1].set_result({"greeting": "stale"})
        await asyncio.gather(first, second)

    asyncio.run(scenario())

    assert store.resolve("greeting") == "stale"
    assert engine.generation == 2
    assert notifications == [1, 1]
