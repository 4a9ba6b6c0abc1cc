"""Helpers for walking the dynamically-shaped tree produced by the XML parser.

Every node in the tree is either a string leaf, a mapping of child names to
nodes, or a list of nodes when an element repeats. The parser collapses a
repeated element with a single occurrence into a bare node, so any element the
bureau schema declares as repeatable must go through :func:`as_list` before it
is iterated.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Sequence, Union

TreeNode = Union[str, Mapping[str, Any], Sequence[Any], None]


def as_list(node: TreeNode) -> List[Any]:
    """Return ``node`` as a list regardless of singleton vs. repeated shape.

    ``None`` yields an empty list, a list is copied as-is, and any other node
    (mapping or leaf) is wrapped in a one-element list.
    """

    if node is None:
        return []
    if isinstance(node, list):
        return list(node)
    return [node]


def get_node(node: TreeNode, *path: str) -> TreeNode:
    """Follow ``path`` through nested mappings, returning ``None`` when any hop is missing."""

    current: TreeNode = node
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def get_mapping(node: TreeNode, *path: str) -> Mapping[str, Any] | None:
    """Like :func:`get_node` but only returns mapping nodes."""

    found = get_node(node, *path)
    return found if isinstance(found, Mapping) else None


def get_mappings(node: TreeNode, *path: str) -> List[Mapping[str, Any]]:
    """Return the mapping entries at ``path`` as a list, dropping leaf siblings."""

    return [entry for entry in as_list(get_node(node, *path)) if isinstance(entry, Mapping)]


__all__ = ["TreeNode", "as_list", "get_mapping", "get_mappings", "get_node"]
