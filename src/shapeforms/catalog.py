"""Shape Catalog: property metadata and current values fetched from the store.

Everything returned here is a read-only snapshot for the current interaction;
nothing is cached between calls.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import rdflib
from rdflib import RDF, URIRef

from shapeforms import queries
from shapeforms.codec import from_term
from shapeforms.hierarchy import ancestor_chain, build_hierarchy
from shapeforms.schema.common import DEFAULT_ORDER, ResourceRef, label_sort_key, local_name
from shapeforms.schema.shape import EntityTypeNode, ShapeProperty, sort_properties
from shapeforms.schema.values import EntityValue, EntityValues
from shapeforms.store.base import Row, SparqlStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


def _text(row: Row, var: str) -> Optional[str]:
    term = row.get(var)
    return str(term) if term is not None else None


def _integer(row: Row, var: str) -> Optional[int]:
    term = row.get(var)
    if term is None:
        return None
    try:
        return int(float(str(term)))
    except ValueError:
        logger.warning(f"Ignoring non-numeric {var} value {term!r}")
        return None


def _display_label(uri: str, label: Optional[str]) -> str:
    if not label or label == uri:
        return local_name(uri)
    return label


def _walk_rdf_list(rows: list[Row]) -> list[rdflib.term.Node]:
    """Rebuild an RDF list in order from its (list, cell, first, rest) rows."""
    if not rows:
        return []
    firsts = {row["cell"]: row["first"] for row in rows}
    rests = {row["cell"]: row["rest"] for row in rows}
    head = rows[0]["list"]

    items = []
    seen = set()
    cell = head
    while cell in firsts and cell not in seen and cell != RDF.nil:
        seen.add(cell)
        items.append(firsts[cell])
        cell = rests[cell]
    return items


class ShapeCatalog:
    """Reads shapes, labels, instances and entity values from a SparqlStore."""

    def __init__(self, store: SparqlStore, page_size: int = DEFAULT_PAGE_SIZE):
        self.store = store
        self.page_size = page_size

    # ── Types ────────────────────────────────────────────────────

    async def list_types(self) -> list[ResourceRef]:
        """All shape-bearing classes, sorted by label."""
        rows = await self.store.select(queries.entity_types_query())
        labels: dict[str, str] = {}
        for row in rows:
            uri = str(row["class"])
            if uri not in labels or labels[uri] == local_name(uri):
                labels[uri] = _display_label(uri, _text(row, "label"))
        refs = [ResourceRef(uri=u, label=l) for u, l in labels.items()]
        return sorted(refs, key=lambda r: label_sort_key(r.label, r.uri))

    async def _subclass_facts(self) -> tuple[list[tuple[str, str]], dict[str, str]]:
        rows = await self.store.select(queries.subclass_edges_query())
        edges = []
        labels: dict[str, str] = {}
        for row in rows:
            child, parent = str(row["child"]), str(row["parent"])
            edges.append((child, parent))
            parent_label = _text(row, "parentLabel")
            if parent_label and parent not in labels:
                labels[parent] = parent_label
        return edges, labels

    async def type_forest(self) -> list[EntityTypeNode]:
        """The shape-bearing types arranged by their direct subclass relations."""
        types, (edges, labels) = await asyncio.gather(self.list_types(), self._subclass_facts())
        labels.update({t.uri: t.label for t in types})
        return build_hierarchy([t.uri for t in types], edges, labels)

    async def class_ancestors(self, class_uri: str) -> list[ResourceRef]:
        """Breadcrumb of ancestors, root first."""
        edges, labels = await self._subclass_facts()
        return ancestor_chain(class_uri, edges, labels)

    # ── Properties ───────────────────────────────────────────────

    async def list_properties(self, target: str, shape: bool = False) -> tuple[ShapeProperty, ...]:
        """Ordered property rules for a class (or, with ``shape=True``, a node shape).

        A target without any matching shape yields an empty tuple.
        """
        rows = await self.store.select(queries.shape_properties_query(target, shape))

        first_rows: dict[str, Row] = {}
        for row in rows:
            path = row.get("path")
            if not isinstance(path, URIRef):
                logger.debug(f"Skipping non-IRI property path {path!r} on {target}")
                continue
            first_rows.setdefault(str(path), row)

        enum_paths = [p for p, row in first_rows.items() if row.get("inList") is not None]
        enum_lists = await asyncio.gather(
            *(self.enum_values(target, p, shape) for p in enum_paths)
        )
        enums = dict(zip(enum_paths, enum_lists))

        properties = []
        for path, row in first_rows.items():
            order = _integer(row, "order")
            properties.append(ShapeProperty(
                path=path,
                name=_text(row, "name") or "",
                description=_text(row, "description"),
                datatype=_text(row, "datatype"),
                referenced_class=_text(row, "class"),
                referenced_shape=_text(row, "node"),
                editor_hint=_text(row, "editor"),
                viewer_hint=_text(row, "viewer"),
                min_count=_integer(row, "minCount"),
                max_count=_integer(row, "maxCount"),
                order=order if order is not None else DEFAULT_ORDER,
                enum_values=tuple(enums[path]) if enums.get(path) else None,
                role=_text(row, "role"),
            ))

        if not properties:
            logger.debug(f"No shape properties for {target}")
        return sort_properties(properties)

    async def enum_values(self, target: str, path: str, shape: bool = False) -> list[EntityValue]:
        """Values of the sh:in list declared for ``path``, in list order."""
        rows = await self.store.select(queries.enum_list_query(target, path, shape))
        values = [from_term(term) for term in _walk_rdf_list(rows)]
        return [v for v in values if v is not None]

    async def shape_paths(self, target: str, shape: bool = False) -> list[str]:
        rows = await self.store.select(queries.shape_paths_query(target, shape))
        return sorted({str(row["path"]) for row in rows})

    # ── Instances and values ─────────────────────────────────────

    async def _instances(self, class_uri: str, limit: Optional[int]) -> list[ResourceRef]:
        rows = await self.store.select(queries.instances_query(class_uri, limit))
        refs: dict[str, ResourceRef] = {}
        for row in rows:
            uri = str(row["uri"])
            if uri not in refs:
                refs[uri] = ResourceRef(uri=uri, label=_display_label(uri, _text(row, "label")))
        return sorted(refs.values(), key=lambda r: label_sort_key(r.label, r.uri))

    async def list_instances(self, class_uri: str, limit: Optional[int] = None) -> list[ResourceRef]:
        """Candidate instances for a reference picker, bounded to one page."""
        return await self._instances(class_uri, limit or self.page_size)

    async def list_entities(self, class_uri: str) -> list[ResourceRef]:
        """Every instance of ``class_uri``."""
        return await self._instances(class_uri, None)

    async def get_values(self, entity_uri: str, target: str, shape: bool = False) -> EntityValues:
        """Current values of ``entity_uri`` at the paths its shape declares."""
        rows = await self.store.select(queries.entity_values_query(entity_uri, target, shape))
        values: EntityValues = {}
        for row in rows:
            value = from_term(row["value"])
            if value is None:
                continue
            bucket = values.setdefault(str(row["path"]), [])
            if value not in bucket:
                bucket.append(value)
        return values
