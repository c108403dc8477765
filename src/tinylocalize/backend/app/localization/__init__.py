"""Translation trees and key resolution shared by the store and its services."""

from .resolver import (
    KeyRegistry,
    Outcome,
    Resolution,
    interpolate,
    resolve,
    resolve_detailed,
)
from .tree import (
    Branch,
    InvalidKeyPath,
    Leaf,
    Node,
    branch_from_json,
    flatten,
    lookup,
    parse_key_path,
    shallow_merge,
    tree_from_json,
    tree_to_json,
    with_leaf,
)

__all__ = [
    "Branch",
    "InvalidKeyPath",
    "KeyRegistry",
    "Leaf",
    "Node",
    "Outcome",
    "Resolution",
    "branch_from_json",
    "flatten",
    "interpolate",
    "lookup",
    "parse_key_path",
    "resolve",
    "resolve_detailed",
    "shallow_merge",
    "tree_from_json",
    "tree_to_json",
    "with_leaf",
]
