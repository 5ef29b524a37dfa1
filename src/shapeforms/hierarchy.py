"""Build a navigable type forest from subclass edges.

The input edges may be redundant (inferred transitive closure), cyclic, or
give a class several direct parents. Expansion tracks the ancestors on the
current path rather than a global visited set: a class with two parents
appears under both, while a genuine cycle stops at the first repeat.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Optional

from shapeforms.schema.common import ResourceRef, label_sort_key, local_name
from shapeforms.schema.shape import EntityTypeNode

logger = logging.getLogger(__name__)

Edge = tuple[str, str]  # (child, parent)


def direct_edges(edges: Iterable[Edge]) -> set[Edge]:
    """Keep only edges with no shorter path through an intermediate class.

    (child, parent) is dropped when some mid, distinct from both, has
    child → mid and mid → parent. Self-loops are dropped as well.
    """
    edge_set = {(c, p) for c, p in edges if c != p}
    parents: dict[str, set[str]] = defaultdict(set)
    for child, parent in edge_set:
        parents[child].add(parent)

    direct = set()
    for child, parent in edge_set:
        shortcut = any(
            mid != parent and parent in parents.get(mid, ())
            for mid in parents[child]
        )
        if not shortcut:
            direct.add((child, parent))
    return direct


def _label(uri: str, labels: Mapping[str, str]) -> str:
    return labels.get(uri) or local_name(uri)


def _grouping_ancestors(shape_types: set[str], parents: Mapping[str, set[str]]) -> set[str]:
    """Ancestors reachable from shape types that carry no shape themselves."""
    seen = set(shape_types)
    frontier = list(shape_types)
    while frontier:
        uri = frontier.pop()
        for parent in parents.get(uri, ()):
            if parent not in seen:
                seen.add(parent)
                frontier.append(parent)
    return seen - shape_types


def build_hierarchy(
    shape_types: Iterable[str],
    edges: Iterable[Edge],
    labels: Optional[Mapping[str, str]] = None,
) -> list[EntityTypeNode]:
    """Convert subclass edges into a forest of EntityTypeNode.

    Args:
        shape_types: IRIs of types that carry a shape (selectable).
        edges: (child, parent) subclass pairs, direct or not.
        labels: Optional display labels; missing ones fall back to local names.

    Returns:
        Root nodes sorted by label, children sorted the same way at every
        level. Types reachable only through a cycle are promoted to roots.
    """
    labels = labels or {}
    shapes = set(shape_types)

    parents: dict[str, set[str]] = defaultdict(set)
    for child, parent in direct_edges(edges):
        parents[child].add(parent)

    universe = shapes | _grouping_ancestors(shapes, parents)

    children: dict[str, set[str]] = defaultdict(set)
    for child in universe:
        for parent in parents.get(child, ()):
            if parent in universe:
                children[parent].add(child)

    def sort_key(uri: str):
        return label_sort_key(_label(uri, labels), uri)

    reached: set[str] = set()

    def build_node(uri: str, path_ancestors: frozenset[str]) -> EntityTypeNode:
        reached.add(uri)
        on_path = path_ancestors | {uri}
        kids = [
            build_node(child, on_path)
            for child in sorted(children.get(uri, ()), key=sort_key)
            if child not in on_path
        ]
        return EntityTypeNode(
            uri=uri,
            label=_label(uri, labels),
            is_shape=uri in shapes,
            children=tuple(kids),
        )

    roots = [
        build_node(uri, frozenset())
        for uri in sorted(universe, key=sort_key)
        if not any(p in universe for p in parents.get(uri, ()))
    ]

    for uri in sorted(universe, key=sort_key):
        if uri not in reached:
            logger.debug(f"Promoting {uri} to root: only reachable through a cycle")
            roots.append(build_node(uri, frozenset()))

    roots.sort(key=lambda n: label_sort_key(n.label, n.uri))
    return roots


def ancestor_chain(
    class_uri: str,
    edges: Iterable[Edge],
    labels: Optional[Mapping[str, str]] = None,
) -> list[ResourceRef]:
    """Breadcrumb from the root down to the direct parent of ``class_uri``.

    Where a class has several direct parents the first by label is followed.
    """
    labels = labels or {}
    parents: dict[str, list[str]] = defaultdict(list)
    for child, parent in direct_edges(edges):
        parents[child].append(parent)

    chain: list[ResourceRef] = []
    visited = {class_uri}
    current = class_uri
    while parents.get(current):
        parent = min(parents[current], key=lambda p: label_sort_key(_label(p, labels), p))
        if parent in visited:
            break
        visited.add(parent)
        chain.insert(0, ResourceRef(uri=parent, label=_label(parent, labels)))
        current = parent
    return chain
