"""Tagged tree representation for per-language translation payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union


class InvalidKeyPath(ValueError):
    """Raised when a dotted key cannot be split into valid path segments."""


@dataclass(frozen=True)
class Leaf:
    """Terminal node holding a translated string."""

    value: str


@dataclass(frozen=True)
class Branch:
    """Internal node mapping path segments to child nodes.

    Branches are treated as immutable: helpers in this module return new
    instances instead of mutating ``children`` in place.
    """

    children: Mapping[str, "Node"] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.children)

    def get(self, segment: str) -> "Node | None":
        return self.children.get(segment)


Node = Union[Leaf, Branch]

EMPTY_BRANCH = Branch()


def parse_key_path(key: str) -> tuple[str, ...]:
    """Split ``key`` on dots, rejecting empty keys and empty segments."""

    if not isinstance(key, str) or not key:
        raise InvalidKeyPath("Translation keys must be non-empty strings")

    segments = tuple(key.split("."))
    if any(not segment for segment in segments):
        raise InvalidKeyPath(f"Translation key contains an empty segment: {key!r}")
    return segments


def scalar_text(value: Any) -> str:
    """Render a JSON scalar the way it reads in a document (`true`, `2`)."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def tree_from_json(payload: Any) -> Node:
    """Convert decoded JSON into a tagged tree.

    Objects become branches, arrays become branches keyed by index and
    ``null`` members are dropped. Any other scalar is kept as its string form.
    """

    if isinstance(payload, Mapping):
        return Branch(
            {
                str(key): tree_from_json(value)
                for key, value in payload.items()
                if value is not None
            }
        )
    if isinstance(payload, (list, tuple)):
        return Branch(
            {
                str(index): tree_from_json(value)
                for index, value in enumerate(payload)
                if value is not None
            }
        )
    return Leaf(scalar_text(payload))


def branch_from_json(payload: Any) -> Branch:
    """Return ``payload`` as a branch, treating non-object payloads as empty."""

    if not isinstance(payload, Mapping):
        return EMPTY_BRANCH
    return Branch(
        {
            str(key): tree_from_json(value)
            for key, value in payload.items()
            if value is not None
        }
    )


def tree_to_json(node: Node) -> Any:
    """Convert a tagged tree back into plain JSON-compatible structures."""

    if isinstance(node, Leaf):
        return node.value
    return {key: tree_to_json(child) for key, child in node.children.items()}


def lookup(node: Node | None, path: tuple[str, ...]) -> Node | None:
    """Walk ``path`` from ``node``; return ``None`` when the walk falls off."""

    current = node
    for segment in path:
        if not isinstance(current, Branch):
            return None
        current = current.get(segment)
        if current is None:
            return None
    return current


def with_leaf(branch: Branch, path: tuple[str, ...], value: str) -> Branch:
    """Return a copy of ``branch`` with ``value`` stored at ``path``.

    Missing intermediate branches are created; an intermediate leaf is
    replaced by a branch so a path never holds both node types.
    """

    head, *rest = path
    children = dict(branch.children)
    if not rest:
        children[head] = Leaf(value)
    else:
        child = children.get(head)
        if not isinstance(child, Branch):
            child = EMPTY_BRANCH
        children[head] = with_leaf(child, tuple(rest), value)
    return Branch(children)


def shallow_merge(base: Branch | None, override: Branch | None) -> Branch:
    """Merge top-level entries; override entries replace colliding base ones."""

    merged: dict[str, Node] = {}
    if base is not None:
        merged.update(base.children)
    if override is not None:
        merged.update(override.children)
    return Branch(merged)


def flatten(node: Node | None, prefix: str = "") -> dict[str, str]:
    """Return a ``{dotted.key: value}`` view of every leaf below ``node``."""

    items: dict[str, str] = {}
    if node is None:
        return items
    if isinstance(node, Leaf):
        if prefix:
            items[prefix] = node.value
        return items
    for key, child in node.children.items():
        path = f"{prefix}.{key}" if prefix else key
        items.update(flatten(child, path))
    return items


__all__ = [
    "Branch",
    "EMPTY_BRANCH",
    "InvalidKeyPath",
    "Leaf",
    "Node",
    "branch_from_json",
    "flatten",
    "lookup",
    "parse_key_path",
    "scalar_text",
    "shallow_merge",
    "tree_from_json",
    "tree_to_json",
    "with_leaf",
]
