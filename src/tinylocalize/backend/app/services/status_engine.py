"""Completion status classification and per-key metadata bookkeeping."""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class TranslationStatus(str, enum.Enum):
    COMPLETE = "complete"
    MISSING = "missing"
    NEEDS_REVIEW = "needs_review"


class Metadata(BaseModel):
    """Edit bookkeeping for a single (language, key) pair."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    last_modified: int = Field(alias="lastModified", ge=0)
    character_count: int = Field(alias="characterCount", ge=0)
    status: TranslationStatus

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def classify(value: str | None) -> TranslationStatus:
    """Classify ``value`` as missing, needing review or complete."""

    if value is None or not value.strip():
        return TranslationStatus.MISSING
    if "TODO:" in value or ("[" in value and "]" in value):
        return TranslationStatus.NEEDS_REVIEW
    return TranslationStatus.COMPLETE


def _epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class StatusEngine:
    """Owns the metadata table keyed by language and dotted key."""

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._entries: dict[str, dict[str, Metadata]] = {}

    def _build(self, value: str | None) -> Metadata:
        text = value or ""
        return Metadata(
            last_modified=_epoch_millis(self._clock()),
            character_count=len(text),
            status=classify(value),
        )

    def record_edit(self, language: str, key: str, value: str) -> Metadata:
        """Store fresh metadata for an edited value, replacing any earlier entry."""

        metadata = self._build(value)
        self._entries.setdefault(language, {})[key] = metadata
        return metadata

    def get(self, language: str, key: str) -> Metadata | None:
        return self._entries.get(language, {}).get(key)

    def describe(self, language: str, key: str, current_value: str | None) -> Metadata:
        """Return stored metadata, or derive it on demand without storing it."""

        stored = self.get(language, key)
        if stored is not None:
            return stored
        return self._build(current_value)

    def drop_language(self, language: str) -> bool:
        return self._entries.pop(language, None) is not None

    def languages(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def snapshot(self) -> dict[str, dict[str, dict[str, Any]]]:
        return {
            language: {key: metadata.as_dict() for key, metadata in entries.items()}
            for language, entries in self._entries.items()
        }

    def load(self, payload: Any) -> None:
        """Replace the table from a persisted payload, skipping malformed entries."""

        self._entries = {}
        if not isinstance(payload, Mapping):
            return
        for language, entries in payload.items():
            if not isinstance(entries, Mapping):
                continue
            table: dict[str, Metadata] = {}
            for key, raw in entries.items():
                try:
                    table[str(key)] = Metadata.model_validate(raw)
                except ValidationError:
                    logger.warning("Discarding malformed metadata for %s/%s", language, key)
            self._entries[str(language)] = table


__all__ = ["Metadata", "StatusEngine", "TranslationStatus", "classify"]
