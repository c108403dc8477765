"""Reconcile the store's base layer against the shipped language documents."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from tinylocalize.backend.app.localization import branch_from_json
from tinylocalize.backend.config.schema import normalise_language_code

from .base_sources import BaseSource, BaseSourceError
from .translation_store import TranslationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileReport:
    """Outcome of a single reconcile pass."""

    generation: int
    fetched: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    discarded: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    loaded: tuple[str, ...] = ()
    superseded: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "generation": self.generation,
            "fetched": list(self.fetched),
            "failed": list(self.failed),
            "discarded": list(self.discarded),
            "removed": list(self.removed),
            "loaded": list(self.loaded),
            "superseded": self.superseded,
        }


@dataclass
class _FetchTally:
    fetched: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)


class SyncEngine:
    """Load base documents concurrently and garbage-collect stale languages.

    Every call to :meth:`reconcile` takes a new generation number. With
    ``discard_stale`` enabled, documents arriving after a newer reconcile has
    started are dropped and the superseded pass neither collects garbage nor
    notifies; otherwise the last response per language wins.
    """

    def __init__(
        self,
        store: TranslationStore,
        source: BaseSource,
        *,
        discard_stale: bool = True,
    ) -> None:
        self._store = store
        self._source = source
        self._discard_stale = discard_stale
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        return self._discard_stale and generation != self._generation

    async def _fetch_one(self, code: str, generation: int, tally: _FetchTally) -> None:
        try:
            payload = await self._source.fetch(code)
        except BaseSourceError as exc:
            logger.warning("Skipping base translations for %s: %s", code, exc)
            tally.failed.append(code)
            return

        if self._is_stale(generation):
            logger.debug(
                "Discarding %s document from superseded generation %s", code, generation
            )
            tally.discarded.append(code)
            return

        self._store.apply_base(code, branch_from_json(payload))
        tally.fetched.append(code)

    def _collect_garbage(self) -> tuple[list[str], list[str]]:
        loaded: list[str] = []
        removed: list[str] = []
        for code in self._store.language_codes():
            tree = self._store.effective_tree(code)
            if tree:
                loaded.append(code)
            else:
                removed.append(code)

        # Metadata can outlive both layers, e.g. when the translations slot was unreadable.
        removed.extend(
            code
            for code in self._store.status.languages()
            if code not in loaded and code not in removed
        )

        for code in removed:
            self._store.discard_language(code)
        if removed:
            logger.info("Removed languages without translations: %s", ", ".join(removed))
            self._store.persist()
        return loaded, removed

    async def reconcile(self, codes: Iterable[str]) -> ReconcileReport:
        """Fetch every code concurrently, then garbage-collect and notify once."""

        self._generation += 1
        generation = self._generation

        ordered: list[str] = []
        for code in codes:
            normalized = normalise_language_code(code)
            if normalized and normalized not in ordered:
                ordered.append(normalized)

        tally = _FetchTally()
        await asyncio.gather(*(self._fetch_one(code, generation, tally) for code in ordered))

        if self._is_stale(generation):
            logger.debug("Reconcile generation %s superseded by %s", generation, self._generation)
            return ReconcileReport(
                generation=generation,
                fetched=tuple(tally.fetched),
                failed=tuple(tally.failed),
                discarded=tuple(tally.discarded),
                superseded=True,
            )

        loaded, removed = self._collect_garbage()
        logger.info(
            "Reconciled generation %s: %s fetched, %s failed, %s removed",
            generation,
            len(tally.fetched),
            len(tally.failed),
            len(removed),
        )
        self._store.bus.notify()

        return ReconcileReport(
            generation=generation,
            fetched=tuple(tally.fetched),
            failed=tuple(tally.failed),
            discarded=tuple(tally.discarded),
            removed=tuple(removed),
            loaded=tuple(loaded),
        )


__all__ = ["ReconcileReport", "SyncEngine"]
