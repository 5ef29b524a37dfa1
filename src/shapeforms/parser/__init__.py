"""Offline parsing of SHACL Turtle documents."""
from shapeforms.parser.shacl_parser import described_types, parse_shapes, parse_shapes_graph
