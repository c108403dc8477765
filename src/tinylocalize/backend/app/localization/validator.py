"""Validate shipped locale documents and report inconsistencies."""

from __future__ import annotations

import argparse
import json
from collections import defaultdict
from pathlib import Path
from typing import Iterable, Sequence

from tinylocalize.backend.app.services.status_engine import TranslationStatus, classify

from .resolver import PLACEHOLDER_PATTERN
from .tree import flatten, tree_from_json

DEFAULT_LOCALES_DIR = Path(__file__).resolve().parents[3] / "locales"


class CatalogueError(Exception):
    """Raised when the locale directory cannot be validated at all."""


def load_catalogues(directory: Path) -> dict[str, dict[str, str]]:
    """Return ``{code: {dotted.key: value}}`` for every ``*.json`` document."""

    if not directory.is_dir():
        raise CatalogueError(f"Missing locales directory: {directory}")

    catalogues: dict[str, dict[str, str]] = {}
    for path in sorted(directory.glob("*.json")):
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise CatalogueError(f"Invalid JSON in {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise CatalogueError(f"Unexpected payload format in {path}")
        catalogues[path.stem.lower()] = flatten(tree_from_json(payload))

    if not catalogues:
        raise CatalogueError(f"No locale documents found in {directory}")
    return catalogues


def placeholder_inconsistencies(catalogues: dict[str, dict[str, str]]) -> list[str]:
    by_key: dict[str, dict[str, frozenset[str]]] = defaultdict(dict)
    for code, messages in catalogues.items():
        for key, message in messages.items():
            by_key[key][code] = frozenset(PLACEHOLDER_PATTERN.findall(message))

    issues: list[str] = []
    for key in sorted(by_key):
        locale_map = by_key[key]
        if len(set(locale_map.values())) <= 1:
            continue
        details = ", ".join(
            f"{code}={{{', '.join(sorted(names))}}}" for code, names in sorted(locale_map.items())
        )
        issues.append(f"{key} placeholders differ: {details}")
    return issues


def missing_keys(catalogues: dict[str, dict[str, str]], base_code: str) -> list[str]:
    base = catalogues.get(base_code)
    if base is None:
        return [f"Default language '{base_code}' has no document"]

    issues: list[str] = []
    expected = set(base)
    for code, messages in sorted(catalogues.items()):
        missing = expected - set(messages)
        if missing:
            issues.append(
                f"Language '{code}' missing {len(missing)} keys: {', '.join(sorted(missing))}"
            )
    return issues


def incomplete_values(catalogues: dict[str, dict[str, str]]) -> list[str]:
    issues: list[str] = []
    for code, messages in sorted(catalogues.items()):
        for key, value in sorted(messages.items()):
            status = classify(value)
            if status is not TranslationStatus.COMPLETE:
                issues.append(f"{code}:{key} is {status.value}")
    return issues


def _print_section(label: str, issues: Iterable[str]) -> None:
    for issue in issues:
        print(f"[{label}] {issue}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--locales-dir",
        type=Path,
        default=DEFAULT_LOCALES_DIR,
        help="Directory containing <code>.json documents",
    )
    parser.add_argument("--base", default="en", help="Language other documents are compared to")
    parser.add_argument(
        "--fail-on-review",
        action="store_true",
        help="Exit with an error if any value is missing or needs review",
    )
    args = parser.parse_args(argv)

    try:
        catalogues = load_catalogues(args.locales_dir)
    except CatalogueError as exc:
        print(f"[error] {exc}")
        return 1

    placeholders = placeholder_inconsistencies(catalogues)
    missing = missing_keys(catalogues, args.base.lower())
    incomplete = incomplete_values(catalogues)

    _print_section("placeholder", placeholders)
    _print_section("missing", missing)
    _print_section("review", incomplete)

    if placeholders or missing or (incomplete and args.fail_on_review):
        return 1
    return 0


__all__ = [
    "CatalogueError",
    "incomplete_values",
    "load_catalogues",
    "main",
    "missing_keys",
    "placeholder_inconsistencies",
]
