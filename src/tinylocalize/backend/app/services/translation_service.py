"""Public operations consumed by the HTTP layer and other presentation code."""

from __future__ import annotations

import asyncio
from datetime import datetime
from threading import RLock
from typing import Any, Callable, Mapping

from tinylocalize.backend.app.localization import Resolution
from tinylocalize.backend.config.schema import (
    LanguageDescriptor,
    StoreSettings,
    normalise_language_code,
)

from .base_sources import BaseSource, build_base_source
from .progress import ProgressSummary, search_keys, summarize_progress
from .status_engine import Metadata
from .storage import KeyValueStorage, build_storage
from .subscriptions import Callback, SubscriptionBus
from .sync_engine import ReconcileReport, SyncEngine
from .translation_store import TranslationStore


class TranslationService:
    """Bundle a store with its sync engine behind a single set of operations."""

    def __init__(
        self,
        settings: StoreSettings,
        *,
        storage: KeyValueStorage | None = None,
        base_source: BaseSource | None = None,
        bus: SubscriptionBus | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self.store = TranslationStore(
            settings,
            storage if storage is not None else build_storage(settings.storage),
            bus=bus,
            clock=clock,
        )
        self.sync = SyncEngine(
            self.store,
            base_source if base_source is not None else build_base_source(settings.base_source),
            discard_stale=settings.discard_stale_fetches,
        )
        self._lock = RLock()

    # -- reads -----------------------------------------------------------------

    def resolve(self, key: str, variables: Mapping[str, Any] | None = None) -> str:
        with self._lock:
            return self.store.resolve(key, variables)

    def resolve_detailed(
        self, key: str, variables: Mapping[str, Any] | None = None
    ) -> Resolution:
        with self._lock:
            return self.store.resolve_detailed(key, variables)

    def get_active_language(self) -> str:
        return self.store.active_language

    def list_languages(self) -> list[str]:
        codes = self.store.language_codes()
        if not codes and not self.store.overrides_enabled:
            return list(self.settings.known_languages)
        return codes

    def describe_languages(self) -> list[LanguageDescriptor]:
        return [self.settings.describe_language(code) for code in self.list_languages()]

    def describe(self, key: str, language: str | None = None) -> Metadata:
        with self._lock:
            return self.store.describe(key, language)

    def progress(self, language: str | None = None) -> ProgressSummary:
        with self._lock:
            return summarize_progress(self.store, language)

    def search_keys(self, term: str | None = None, *, group: str | None = None) -> list[str]:
        with self._lock:
            return search_keys(self.store, term, group=group)

    def export_overrides(self) -> dict[str, Any]:
        with self._lock:
            return self.store.export_overrides()

    # -- writes ----------------------------------------------------------------

    def known_languages(self) -> list[str]:
        codes = list(self.settings.known_languages)
        if self.store.active_language not in codes:
            codes.append(self.store.active_language)
        return codes

    async def reconcile(self, codes: list[str] | None = None) -> ReconcileReport:
        return await self.sync.reconcile(codes if codes is not None else self.known_languages())

    def reconcile_blocking(self, codes: list[str] | None = None) -> ReconcileReport:
        """Run :meth:`reconcile` to completion from synchronous code."""

        with self._lock:
            return asyncio.run(self.reconcile(codes))

    async def set_active_language(self, code: str) -> ReconcileReport | None:
        """Switch language, notify immediately, then notify again once synced."""

        normalized = normalise_language_code(code)
        if not normalized:
            return None
        self.store.assign_active_language(normalized)
        self.store.bus.notify()
        return await self.reconcile()

    def set_active_language_blocking(self, code: str) -> ReconcileReport | None:
        with self._lock:
            return asyncio.run(self.set_active_language(code))

    def edit(self, key: str, value: str, *, language: str | None = None) -> Metadata:
        with self._lock:
            return self.store.edit(key, value, language=language)

    def add_language(self, code: str) -> bool:
        with self._lock:
            return self.store.add_language(code)

    def remove_language(self, code: str) -> bool:
        with self._lock:
            return self.store.remove_language(code)

    def subscribe(self, callback: Callback) -> Callable[[], None]:
        return self.store.bus.subscribe(callback)

    def unsubscribe(self, callback: Callback) -> None:
        self.store.bus.unsubscribe(callback)


__all__ = ["TranslationService"]
