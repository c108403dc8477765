"""Key-path resolution with sentinel fallbacks and ``{{name}}`` interpolation."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

from .tree import Branch, InvalidKeyPath, Leaf, lookup, parse_key_path, scalar_text

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")
MISSING_TEMPLATE = 'TODO: Translate "{key}"'
OBJECT_TEMPLATE = "[Object: {key}]"


class Outcome(str, enum.Enum):
    """How a key resolved against the active language tree."""

    HIT = "hit"
    MISS = "miss"
    TYPE_MISMATCH = "type_mismatch"


@dataclass(frozen=True)
class Resolution:
    """Resolved text together with the outcome that produced it."""

    key: str
    language: str
    text: str
    outcome: Outcome


class KeyRegistry:
    """Insertion-ordered record of every key requested during a session."""

    def __init__(self) -> None:
        self._keys: dict[str, None] = {}

    def add(self, key: str) -> None:
        self._keys.setdefault(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._keys))

    def __len__(self) -> int:
        return len(self._keys)


def missing_text(key: str) -> str:
    return MISSING_TEMPLATE.format(key=key)


def interpolate(text: str, variables: Mapping[str, Any] | None) -> str:
    """Replace ``{{name}}`` occurrences whose name is present in ``variables``.

    Unknown names, and names bound to ``None``, stay in the text untouched.
    """

    if not variables:
        return text

    def _substitute(match: re.Match[str]) -> str:
        value = variables.get(match.group(1))
        if value is None:
            return match.group(0)
        return scalar_text(value)

    return PLACEHOLDER_PATTERN.sub(_substitute, text)


def resolve_detailed(
    trees: Mapping[str, Branch],
    language: str,
    key: str,
    variables: Mapping[str, Any] | None = None,
    *,
    registry: KeyRegistry | None = None,
) -> Resolution:
    """Resolve ``key`` for ``language`` and report the outcome."""

    if registry is not None:
        registry.add(key)

    try:
        path = parse_key_path(key)
    except InvalidKeyPath:
        return Resolution(key, language, missing_text(key), Outcome.MISS)

    node = lookup(trees.get(language), path)
    if node is None:
        return Resolution(key, language, missing_text(key), Outcome.MISS)

    if isinstance(node, Branch):
        logger.warning(
            "Translation key %r resolves to a nested group, not a string; "
            "use a more specific key such as %r",
            key,
            f"{key}.title",
        )
        return Resolution(
            key, language, OBJECT_TEMPLATE.format(key=key), Outcome.TYPE_MISMATCH
        )

    assert isinstance(node, Leaf)
    return Resolution(key, language, interpolate(node.value, variables), Outcome.HIT)


def resolve(
    trees: Mapping[str, Branch],
    language: str,
    key: str,
    variables: Mapping[str, Any] | None = None,
    *,
    registry: KeyRegistry | None = None,
) -> str:
    """Return the display text for ``key``; never returns structured values."""

    return resolve_detailed(trees, language, key, variables, registry=registry).text


__all__ = [
    "KeyRegistry",
    "MISSING_TEMPLATE",
    "OBJECT_TEMPLATE",
    "Outcome",
    "PLACEHOLDER_PATTERN",
    "Resolution",
    "interpolate",
    "missing_text",
    "resolve",
    "resolve_detailed",
]
