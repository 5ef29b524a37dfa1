"""Parse SHACL Turtle documents into ShapeProperty lists using rdflib.

Offline counterpart of the Shape Catalog: the same shape vocabulary is read
straight from a graph instead of through SPARQL, which lets shapes be
previewed before they are loaded into a store.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from rdflib import RDF, RDFS, Graph, URIRef
from rdflib.collection import Collection
from rdflib.namespace import SH

from shapeforms.codec import from_term
from shapeforms.schema.common import DASH, DEFAULT_ORDER, SHUI, ResourceRef, label_sort_key, local_name
from shapeforms.schema.shape import ShapeProperty, sort_properties

logger = logging.getLogger(__name__)


def _text(g: Graph, node, predicate) -> Optional[str]:
    value = g.value(node, predicate)
    return str(value) if value is not None else None


def _integer(g: Graph, node, predicate) -> Optional[int]:
    value = g.value(node, predicate)
    if value is None:
        return None
    try:
        return int(float(str(value)))
    except ValueError:
        logger.warning(f"Ignoring non-numeric {local_name(str(predicate))} value {value!r} on {node}")
        return None


def _parse_rdf_list(g: Graph, head) -> list:
    """Parse an RDF collection (list) starting at head."""
    if head is None or head == RDF.nil:
        return []
    return list(Collection(g, head))


def _parse_property_shape(g: Graph, prop_node) -> Optional[ShapeProperty]:
    """Parse a single property shape node; complex (non-IRI) paths are skipped."""
    path = g.value(prop_node, SH.path)
    if not isinstance(path, URIRef):
        return None

    # sh:in
    in_head = g.value(prop_node, SH["in"])
    enum_values = None
    if in_head is not None:
        items = [from_term(item) for item in _parse_rdf_list(g, in_head)]
        enum_values = tuple(v for v in items if v is not None) or None

    order = _integer(g, prop_node, SH.order)

    return ShapeProperty(
        path=str(path),
        name=_text(g, prop_node, SH.name) or "",
        description=_text(g, prop_node, SH.description),
        datatype=_text(g, prop_node, SH.datatype),
        referenced_class=_text(g, prop_node, SH["class"]),
        referenced_shape=_text(g, prop_node, SH.node),
        editor_hint=_text(g, prop_node, SHUI.editor) or _text(g, prop_node, DASH.editor),
        viewer_hint=_text(g, prop_node, SHUI.viewer) or _text(g, prop_node, DASH.viewer),
        min_count=_integer(g, prop_node, SH.minCount),
        max_count=_integer(g, prop_node, SH.maxCount),
        order=order if order is not None else DEFAULT_ORDER,
        enum_values=enum_values,
        role=_text(g, prop_node, SHUI.propertyRole),
    )


def _described_targets(g: Graph, shape_node) -> list[str]:
    """Classes a node shape describes: its sh:targetClass, else itself."""
    targets = [str(t) for t in g.objects(shape_node, SH.targetClass)]
    if targets:
        return targets
    if isinstance(shape_node, URIRef) and g.value(shape_node, SH.property) is not None:
        return [str(shape_node)]
    return []


def parse_shapes_graph(g: Graph) -> dict[str, tuple[ShapeProperty, ...]]:
    """Map every described class to its ordered property rules.

    Properties of several shapes targeting the same class are merged; the
    first rule seen for a path wins.
    """
    collected: dict[str, dict[str, ShapeProperty]] = {}
    for shape_node in g.subjects(RDF.type, SH.NodeShape):
        targets = _described_targets(g, shape_node)
        if not targets:
            continue
        properties = [
            ps for ps in (_parse_property_shape(g, p) for p in g.objects(shape_node, SH.property))
            if ps is not None
        ]
        for target in targets:
            bucket = collected.setdefault(target, {})
            for ps in properties:
                bucket.setdefault(ps.path, ps)

    return {target: sort_properties(props.values()) for target, props in collected.items()}


def parse_shapes(source: str, format: str = "turtle") -> dict[str, tuple[ShapeProperty, ...]]:
    """Parse SHACL shapes from a file path or a Turtle string.

    Args:
        source: File path or Turtle string.
        format: RDF format (default: turtle).

    Returns:
        Class IRI → ordered ShapeProperty tuple.
    """
    g = Graph()
    if os.path.exists(source):
        g.parse(source=source, format=format)
    else:
        g.parse(data=source, format=format)
    return parse_shapes_graph(g)


def described_types(g: Graph) -> list[ResourceRef]:
    """Classes with shapes in ``g``, labelled and sorted like the catalog."""
    refs = []
    for target in parse_shapes_graph(g):
        label = g.value(URIRef(target), RDFS.label)
        refs.append(ResourceRef(uri=target, label=str(label) if label else local_name(target)))
    return sorted(refs, key=lambda r: label_sort_key(r.label, r.uri))
