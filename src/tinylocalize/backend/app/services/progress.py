"""Completion summaries and key discovery over the session key registry."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from .status_engine import TranslationStatus
from .translation_store import TranslationStore

UNGROUPED = "ungrouped"


def group_for(key: str) -> str:
    """Return the first segment of a dotted key, or ``ungrouped``."""

    head, separator, _ = key.partition(".")
    return head if separator else UNGROUPED


@dataclass(frozen=True)
class GroupProgress:
    name: str
    total: int
    translated: int

    def as_dict(self) -> dict[str, Any]:
        return {"name": self.name, "total": self.total, "translated": self.translated}


@dataclass(frozen=True)
class ProgressSummary:
    language: str
    total: int
    translated: int
    statuses: dict[str, int] = field(default_factory=dict)
    groups: tuple[GroupProgress, ...] = ()

    @property
    def percent(self) -> float:
        if not self.total:
            return 0.0
        return round(self.translated / self.total * 100, 1)

    def as_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "total": self.total,
            "translated": self.translated,
            "percent": self.percent,
            "statuses": dict(self.statuses),
            "groups": [group.as_dict() for group in self.groups],
        }


def _is_translated(value: str | None) -> bool:
    return bool(value and value.strip())


def summarize_progress(store: TranslationStore, language: str | None = None) -> ProgressSummary:
    """Summarise how many registered keys have usable text in ``language``."""

    code = language or store.active_language
    keys = list(store.registry)

    statuses: Counter[str] = Counter({status.value: 0 for status in TranslationStatus})
    group_totals: Counter[str] = Counter()
    group_translated: Counter[str] = Counter()
    translated = 0

    for key in keys:
        value = store.leaf_value(key, code)
        statuses[store.describe(key, code).status.value] += 1
        group = group_for(key)
        group_totals[group] += 1
        if _is_translated(value):
            translated += 1
            group_translated[group] += 1

    groups = tuple(
        GroupProgress(name=name, total=group_totals[name], translated=group_translated[name])
        for name in sorted(group_totals)
    )
    return ProgressSummary(
        language=code,
        total=len(keys),
        translated=translated,
        statuses=dict(statuses),
        groups=groups,
    )


def search_keys(
    store: TranslationStore,
    term: str | None = None,
    *,
    group: str | None = None,
    language: str | None = None,
) -> list[str]:
    """Return registered keys matching ``term`` in the key or its current text."""

    needle = (term or "").strip().lower()
    matches: list[str] = []
    for key in store.registry:
        if group and group_for(key) != group:
            continue
        if needle:
            value = store.leaf_value(key, language) or ""
            if needle not in key.lower() and needle not in value.lower():
                continue
        matches.append(key)
    return matches


def group_keys(keys: Iterable[str]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for key in keys:
        grouped.setdefault(group_for(key), []).append(key)
    return dict(sorted(grouped.items()))


__all__ = [
    "GroupProgress",
    "ProgressSummary",
    "UNGROUPED",
    "group_for",
    "group_keys",
    "search_keys",
    "summarize_progress",
]
