"""Tests for the shape catalog against an in-memory store."""
import asyncio

from rdflib import Literal, URIRef
from rdflib.namespace import RDF, RDFS

from shapeforms.catalog import ShapeCatalog
from shapeforms.schema.common import DEFAULT_ORDER, ResourceRef
from shapeforms.schema.values import EntityValue

from conftest import D, EX

XSD = "http://www.w3.org/2001/XMLSchema#"


def run(coro):
    return asyncio.run(coro)


# ── Types ───────────────────────────────────────────────────────

def test_list_types(catalog):
    types = run(catalog.list_types())
    assert [t.label for t in types] == [
        "Address", "LoopA", "LoopB", "Person", "Project", "Squad", "Team",
    ]
    assert ResourceRef(EX + "Address", "Address") in types


def test_grouping_classes_are_not_types(catalog):
    uris = {t.uri for t in run(catalog.list_types())}
    assert EX + "Element" not in uris
    assert EX + "Ghost" not in uris


# ── Properties ──────────────────────────────────────────────────

def test_properties_ordered(catalog):
    props = run(catalog.list_properties(EX + "Person"))
    assert [p.name for p in props] == [
        "Name", "Status", "Active", "Born", "Biography", "Motto", "Homepage",
        "Member of", "Knows", "Address", "Rank", "Pet", "Notes",
    ]
    assert props[-1].order == DEFAULT_ORDER


def test_property_metadata(catalog):
    props = {p.path: p for p in run(catalog.list_properties(EX + "Person"))}
    name = props[EX + "name"]
    assert name.description == "Full name"
    assert name.datatype == XSD + "string"
    assert (name.min_count, name.max_count, name.order) == (1, 1, 1)
    assert name.is_required and not name.is_multi
    assert name.role == "http://www.w3.org/ns/shacl-ui#IdentifierRole"

    member = props[EX + "memberOf"]
    assert member.referenced_class == EX + "Team"
    assert not member.is_multi

    assert props[EX + "knows"].is_multi
    assert props[EX + "address"].referenced_shape == EX + "Address"
    assert props[EX + "notes"].editor_hint == "http://www.w3.org/ns/shacl-ui#TextAreaEditor"


def test_enum_values_keep_list_order(catalog):
    props = {p.path: p for p in run(catalog.list_properties(EX + "Person"))}
    assert props[EX + "status"].enum_values == (
        EntityValue("Active"), EntityValue("Retired"), EntityValue("On leave"),
    )
    assert props[EX + "rank"].enum_values == (
        EntityValue(EX + "Junior", is_reference=True),
        EntityValue(EX + "Senior", is_reference=True),
    )


def test_properties_without_shape_are_empty(catalog):
    assert run(catalog.list_properties(EX + "Ghost")) == ()
    assert run(catalog.list_properties("http://example.org/onto#Nothing")) == ()


def test_self_describing_shape(catalog):
    as_class = run(catalog.list_properties(EX + "Address"))
    as_shape = run(catalog.list_properties(EX + "Address", shape=True))
    assert [p.name for p in as_class] == ["Street", "City"]
    assert as_class == as_shape


def test_target_shape_is_not_a_node_shape_target(catalog):
    assert run(catalog.list_properties(EX + "PersonShape")) == ()


def test_shape_paths(catalog):
    paths = run(catalog.shape_paths(EX + "Team"))
    assert paths == [EX + "members", EX + "name", EX + "project"]


# ── Instances and values ────────────────────────────────────────

def test_list_entities_sorted_by_label(catalog):
    people = run(catalog.list_entities(EX + "Person"))
    assert [p.label for p in people] == ["Alice", "Bob", "Carol", "Dave"]


def test_list_instances_bounded(store, catalog):
    assert len(run(catalog.list_instances(EX + "Person", limit=2))) == 2
    assert [p.label for p in run(catalog.list_instances(EX + "Person", limit=2))] == ["Alice", "Bob"]

    small = ShapeCatalog(store, page_size=3)
    assert len(run(small.list_instances(EX + "Person"))) == 3


def test_list_instances_page_ignores_case(store, catalog):
    aaron = URIRef(D + "aaron")
    store.graph.add((aaron, RDF.type, URIRef(EX + "Person")))
    store.graph.add((aaron, RDFS.label, Literal("aaron")))
    page = run(catalog.list_instances(EX + "Person", limit=2))
    assert [p.label for p in page] == ["aaron", "Alice"]


def test_list_instances_page_counts_entities(store, catalog):
    store.graph.add((URIRef(D + "alice"), RDFS.label, Literal("Ally")))
    page = run(catalog.list_instances(EX + "Person", limit=2))
    assert [p.uri for p in page] == [D + "alice", D + "bob"]
    assert page[0].label == "Alice"


def test_get_values(catalog):
    values = run(catalog.get_values(D + "alice", EX + "Person"))
    assert values[EX + "name"] == [EntityValue("Alice")]
    assert values[EX + "active"] == [EntityValue("true", datatype=XSD + "boolean")]
    assert values[EX + "motto"] == [EntityValue("Carpe diem", language="la")]
    assert values[EX + "homepage"] == [
        EntityValue("https://www.alice.example/", datatype=XSD + "anyURI"),
    ]
    assert set(values[EX + "knows"]) == {
        EntityValue(D + "bob", is_reference=True),
        EntityValue(D + "carol", is_reference=True),
    }


def test_get_values_only_at_shape_paths(catalog):
    values = run(catalog.get_values(D + "alice", EX + "Person"))
    assert EX + "unrelated" not in values
    assert "http://www.w3.org/1999/02/22-rdf-syntax-ns#type" not in values


def test_get_values_through_node_shape(catalog):
    values = run(catalog.get_values(D + "addr1", EX + "Address", shape=True))
    assert values == {
        EX + "street": [EntityValue("1 Main St")],
        EX + "city": [EntityValue("Springfield")],
    }


def test_get_values_unknown_entity(catalog):
    assert run(catalog.get_values(D + "nobody", EX + "Person")) == {}
