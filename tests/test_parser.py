"""Tests for reading shapes straight from a SHACL Turtle file."""
import asyncio

from rdflib import Graph

from shapeforms.parser import described_types, parse_shapes
from shapeforms.schema.common import DEFAULT_ORDER
from shapeforms.schema.values import EntityValue

from conftest import EX, SHAPES


def test_parse_fixture_targets():
    shapes = parse_shapes(SHAPES)
    assert set(shapes) == {
        EX + "Person", EX + "Team", EX + "Squad", EX + "Project",
        EX + "LoopA", EX + "LoopB", EX + "Address",
    }


def test_parse_property_order():
    props = parse_shapes(SHAPES)[EX + "Team"]
    assert [p.name for p in props] == ["Name", "Members", "Project"]


def test_parse_enum_list():
    props = {p.path: p for p in parse_shapes(SHAPES)[EX + "Person"]}
    assert props[EX + "status"].enum_values == (
        EntityValue("Active"), EntityValue("Retired"), EntityValue("On leave"),
    )


def test_parse_agrees_with_catalog(catalog):
    shapes = parse_shapes(SHAPES)
    for target in (EX + "Person", EX + "Team", EX + "Address"):
        assert asyncio.run(catalog.list_properties(target)) == shapes[target]


def test_parse_from_string():
    ttl = """
@prefix sh: <http://www.w3.org/ns/shacl#> .
@prefix ex: <http://example.org/onto#> .
ex:NoteShape a sh:NodeShape ;
    sh:targetClass ex:Note ;
    sh:property [ sh:path ex:text ] ,
                [ sh:path ( ex:a ex:b ) ] .
"""
    props = parse_shapes(ttl)[EX + "Note"]
    assert [p.path for p in props] == [EX + "text"]
    assert props[0].name == "text"


def test_parse_ignores_non_numeric_counts():
    ttl = """
@prefix sh: <http://www.w3.org/ns/shacl#> .
@prefix ex: <http://example.org/onto#> .
ex:NoteShape a sh:NodeShape ;
    sh:targetClass ex:Note ;
    sh:property [ sh:path ex:text ; sh:order "first" ; sh:maxCount "many" ; sh:minCount 1 ] .
"""
    prop = parse_shapes(ttl)[EX + "Note"][0]
    assert prop.order == DEFAULT_ORDER
    assert prop.max_count is None
    assert prop.min_count == 1


def test_described_types_sorted():
    g = Graph()
    g.parse(SHAPES, format="turtle")
    assert [t.label for t in described_types(g)] == [
        "Address", "LoopA", "LoopB", "Person", "Project", "Squad", "Team",
    ]
