"""Owned state for per-language translation trees and their bookkeeping.

The store keeps two layers per language. The base layer mirrors the shipped
documents loaded by :mod:`sync_engine`; the override layer holds local edits
and is only consulted when overrides are enabled. Resolution always sees the
shallow top-level merge of both layers, with override entries winning.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping

from tinylocalize.backend.app.localization import (
    Branch,
    KeyRegistry,
    Resolution,
    branch_from_json,
    lookup,
    parse_key_path,
    resolve_detailed,
    shallow_merge,
    tree_to_json,
    with_leaf,
)
from tinylocalize.backend.app.localization.tree import EMPTY_BRANCH, Leaf
from tinylocalize.backend.config.schema import StoreSettings, normalise_language_code

from .status_engine import Metadata, StatusEngine
from .storage import (
    LANGUAGE_SLOT,
    METADATA_SLOT,
    TRANSLATIONS_SLOT,
    KeyValueStorage,
    read_json_slot,
    write_json_slot,
)
from .subscriptions import SubscriptionBus

logger = logging.getLogger(__name__)


class LastLanguageError(RuntimeError):
    """Raised when removing a language would leave the store without any."""


class TranslationStore:
    """Mutable translation state shared by the resolver, sync engine and routes."""

    def __init__(
        self,
        settings: StoreSettings,
        storage: KeyValueStorage,
        *,
        bus: SubscriptionBus | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._storage = storage
        self._bus = bus or SubscriptionBus()
        self._status = StatusEngine(clock=clock)
        self._registry = KeyRegistry()
        self._base: dict[str, Branch] = {}
        self._overrides: dict[str, Branch] = {}
        self._active = self._load_active_language()

        if self.overrides_enabled:
            self._load_override_layer()

    # -- construction helpers -------------------------------------------------

    def _load_active_language(self) -> str:
        persisted = normalise_language_code(self._storage.get_item(LANGUAGE_SLOT))
        return persisted or self._settings.default_language

    def _load_override_layer(self) -> None:
        translations = read_json_slot(self._storage, TRANSLATIONS_SLOT)
        self._overrides = {
            normalise_language_code(code): branch_from_json(tree)
            for code, tree in translations.items()
            if normalise_language_code(code)
        }
        self._status.load(read_json_slot(self._storage, METADATA_SLOT))

    # -- read side -----------------------------------------------------------

    @property
    def settings(self) -> StoreSettings:
        return self._settings

    @property
    def overrides_enabled(self) -> bool:
        return self._settings.enable_overrides

    @property
    def bus(self) -> SubscriptionBus:
        return self._bus

    @property
    def registry(self) -> KeyRegistry:
        return self._registry

    @property
    def status(self) -> StatusEngine:
        return self._status

    @property
    def active_language(self) -> str:
        return self._active

    def language_codes(self) -> list[str]:
        """Return every language in the store, base-layer order first."""

        codes = list(self._base)
        if self.overrides_enabled:
            codes.extend(code for code in self._overrides if code not in self._base)
        return codes

    def effective_tree(self, code: str) -> Branch | None:
        """Return the tree resolution sees for ``code`` under the current mode."""

        code = normalise_language_code(code)
        base = self._base.get(code)
        if not self.overrides_enabled:
            return base
        override = self._overrides.get(code)
        if base is None and override is None:
            return None
        return shallow_merge(base, override)

    def resolve_detailed(
        self,
        key: str,
        variables: Mapping[str, Any] | None = None,
        *,
        language: str | None = None,
    ) -> Resolution:
        code = normalise_language_code(language) or self._active
        tree = self.effective_tree(code)
        trees = {code: tree} if tree is not None else {}
        return resolve_detailed(trees, code, key, variables, registry=self._registry)

    def resolve(self, key: str, variables: Mapping[str, Any] | None = None) -> str:
        return self.resolve_detailed(key, variables).text

    def leaf_value(self, key: str, language: str | None = None) -> str | None:
        """Return the raw leaf at ``key`` without registering or interpolating."""

        code = normalise_language_code(language) or self._active
        try:
            path = parse_key_path(key)
        except ValueError:
            return None
        node = lookup(self.effective_tree(code), path)
        return node.value if isinstance(node, Leaf) else None

    def describe(self, key: str, language: str | None = None) -> Metadata:
        code = normalise_language_code(language) or self._active
        return self._status.describe(code, key, self.leaf_value(key, code))

    def snapshot(self) -> dict[str, Any]:
        """Plain JSON view of both layers and the metadata table."""

        return {
            "base": {code: tree_to_json(tree) for code, tree in self._base.items()},
            "overrides": {code: tree_to_json(tree) for code, tree in self._overrides.items()},
            "metadata": self._status.snapshot(),
        }

    def export_overrides(self) -> dict[str, Any]:
        return {code: tree_to_json(tree) for code, tree in self._overrides.items()}

    # -- write side ----------------------------------------------------------

    def persist(self) -> None:
        """Write the override layer and metadata; a no-op with overrides disabled."""

        if not self.overrides_enabled:
            return
        write_json_slot(self._storage, TRANSLATIONS_SLOT, self.export_overrides())
        write_json_slot(self._storage, METADATA_SLOT, self._status.snapshot())

    def assign_active_language(self, code: str) -> str:
        """Switch the active language and persist it without notifying."""

        normalized = normalise_language_code(code)
        if not normalized:
            raise ValueError("Language code must be non-empty")
        self._active = normalized
        self._storage.set_item(LANGUAGE_SLOT, normalized)
        return normalized

    def apply_base(self, code: str, tree: Branch) -> None:
        self._base[normalise_language_code(code)] = tree

    def discard_language(self, code: str) -> None:
        """Drop ``code`` from both layers and the metadata table."""

        code = normalise_language_code(code)
        self._base.pop(code, None)
        self._overrides.pop(code, None)
        self._status.drop_language(code)

    def edit(self, key: str, value: str, *, language: str | None = None) -> Metadata:
        """Store ``value`` at ``key`` for ``language`` (default: active language)."""

        path = parse_key_path(key)
        code = normalise_language_code(language) or self._active

        if self.overrides_enabled:
            override = self._overrides.get(code, EMPTY_BRANCH)
            head = path[0]
            if override.get(head) is None:
                # Seed the top-level entry so the shallow merge keeps base siblings.
                seeded = (self._base.get(code) or EMPTY_BRANCH).get(head)
                if seeded is not None:
                    override = Branch({**override.children, head: seeded})
            self._overrides[code] = with_leaf(override, path, value)
        else:
            self._base[code] = with_leaf(self._base.get(code, EMPTY_BRANCH), path, value)

        metadata = self._status.record_edit(code, key, value)
        self.persist()
        self._bus.notify()
        return metadata

    def add_language(self, code: str) -> bool:
        """Create an empty tree for ``code``; blank codes are ignored."""

        normalized = normalise_language_code(code)
        if not normalized:
            return False

        self._base.setdefault(normalized, EMPTY_BRANCH)
        if self.overrides_enabled:
            self._overrides.setdefault(normalized, EMPTY_BRANCH)

        self.persist()
        self._bus.notify()
        return True

    def remove_language(self, code: str) -> bool:
        """Remove ``code``; refuses when it is the last remaining language."""

        normalized = normalise_language_code(code)
        codes = self.language_codes()
        if normalized not in codes:
            return False
        if len(codes) <= 1:
            raise LastLanguageError("At least one language must remain")

        self.discard_language(normalized)
        if self._active == normalized:
            self.assign_active_language(self.language_codes()[0])

        self.persist()
        self._bus.notify()
        return True


__all__ = ["LastLanguageError", "TranslationStore"]
