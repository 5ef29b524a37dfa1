"""shapeforms: browse and edit shape-described entities from the command line.

Usage:
    shapeforms [--data FILE ...] types
    shapeforms [--data FILE ...] tree
    shapeforms [--data FILE ...] properties CLASS
    shapeforms [--data FILE ...] show ENTITY CLASS [--depth N]
    shapeforms [--data FILE ...] create CLASS PATH=VALUE ...
    shapeforms [--data FILE ...] delete ENTITY
    shapeforms inspect SHAPES.ttl

Without --data the SPARQL endpoint from the environment (.env) is used.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from rdflib import Graph

from shapeforms.catalog import ShapeCatalog
from shapeforms.config import Settings
from shapeforms.entities import EntityRepository
from shapeforms.errors import ShapeformsError
from shapeforms.parser.shacl_parser import described_types, parse_shapes_graph
from shapeforms.render.nested import NestedRenderer
from shapeforms.render.projection import project_entity, project_forest
from shapeforms.render.widgets import parse_input, resolve_editor, resolve_viewer
from shapeforms.store import EndpointStore, GraphStore, SparqlStore

logger = logging.getLogger(__name__)


def _store(args, settings: Settings) -> tuple[SparqlStore, Optional[Graph]]:
    """The store to run against, plus the graph of the first --data file.

    Every --data file is merged into one store for reading. Writes are
    saved only to the first file, so its own graph is kept apart. The merged
    graph is filled from it, so both share the same blank nodes.
    """
    if not args.data:
        store = EndpointStore(
            settings.query_endpoint,
            settings.effective_update_endpoint,
            timeout=settings.request_timeout,
        )
        return store, None

    own = Graph()
    own.parse(source=args.data[0], format="turtle")
    merged = Graph()
    merged += own
    for path in args.data[1:]:
        logger.info(f"Loading {path}")
        merged.parse(source=path, format="turtle")
    return GraphStore(merged), own


def _save(merged: Graph, before: set, own: Graph, path: str) -> None:
    """Replay the changes made to ``merged`` onto ``own`` and write it to ``path``."""
    after = set(merged)
    removed = before - after
    added = after - before
    for triple in removed:
        own.remove(triple)
    for triple in added:
        own.add(triple)
    own.serialize(destination=path, format="turtle")
    logger.info(f"Saved {path} (+{len(added)} -{len(removed)} triples)")


def _property_line(prop) -> str:
    flags = []
    if prop.is_required:
        flags.append("required")
    if prop.is_multi:
        flags.append("multi")
    suffix = f" ({', '.join(flags)})" if flags else ""
    return (f"{prop.order:>4}  {prop.name:<24} {resolve_editor(prop).value:<28} "
            f"{resolve_viewer(prop).value}{suffix}")


async def _parse_assignments(catalog: ShapeCatalog, class_uri: str, assignments: list[str]) -> dict:
    """Turn PATH=VALUE arguments into values using each property's editor."""
    properties = {p.path: p for p in await catalog.list_properties(class_uri)}
    by_name = {p.name: p for p in properties.values()}
    values: dict[str, list] = {}
    for item in assignments:
        key, sep, raw = item.partition("=")
        if not sep:
            raise ShapeformsError(f"Expected PATH=VALUE, got {item!r}")
        prop = properties.get(key) or by_name.get(key)
        if prop is None:
            raise ShapeformsError(f"{key!r} is not a property of {class_uri}")
        values.setdefault(prop.path, []).append(parse_input(prop, raw))
    return values


async def run_command(args, settings: Settings) -> list[str]:
    """Execute one subcommand and return its output lines."""
    if args.command == "inspect":
        g = Graph()
        g.parse(source=args.shapes, format="turtle")
        shapes = parse_shapes_graph(g)
        lines = []
        for ref in described_types(g):
            lines.append(f"{ref.label} <{ref.uri}>")
            lines.extend(f"  {_property_line(p)}" for p in shapes[ref.uri])
        return lines

    store, own = _store(args, settings)
    before: set = set()
    if own is not None and args.command in ("create", "delete"):
        before = set(store.graph)
    catalog = ShapeCatalog(store, page_size=settings.instance_page_size)
    repository = EntityRepository(
        store, catalog,
        namespace=settings.entity_namespace,
        atomic_updates=settings.atomic_updates,
    )

    if args.command == "types":
        return [f"{t.label}  <{t.uri}>" for t in await catalog.list_types()]

    if args.command == "tree":
        return project_forest(await catalog.type_forest())

    if args.command == "properties":
        return [_property_line(p) for p in await catalog.list_properties(args.class_uri)]

    if args.command == "show":
        depth = args.depth if args.depth is not None else settings.max_nested_depth
        renderer = NestedRenderer(
            catalog, max_depth=depth, concurrency=settings.row_fetch_concurrency,
        )
        node = await renderer.render(args.entity, args.class_uri)
        return project_entity(node)

    if args.command == "create":
        values = await _parse_assignments(catalog, args.class_uri, args.assignments)
        entity_uri = await repository.create(args.class_uri, values)
        if own is not None:
            _save(store.graph, before, own, args.data[0])
        return [entity_uri]

    if args.command == "delete":
        await repository.delete(args.entity)
        if own is not None:
            _save(store.graph, before, own, args.data[0])
        return [f"Deleted {args.entity}"]

    raise ValueError(f"Unknown command: {args.command!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shapeforms",
        description="Shape-driven entity browser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--data", "-d",
        action="append",
        help="Turtle file to load instead of a SPARQL endpoint (repeatable; "
             "writes go to the first file)",
    )
    parser.add_argument(
        "--env",
        help="Path to a .env file with endpoint settings",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log queries",
    )

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("types", help="List shape-bearing types")
    sub.add_parser("tree", help="Show the type hierarchy")

    p = sub.add_parser("properties", help="List a type's properties and widgets")
    p.add_argument("class_uri")

    p = sub.add_parser("show", help="Render an entity with nested references")
    p.add_argument("entity")
    p.add_argument("class_uri")
    p.add_argument("--depth", type=int, help="Maximum nesting depth")

    p = sub.add_parser("create", help="Create an entity")
    p.add_argument("class_uri")
    p.add_argument("assignments", nargs="*", metavar="PATH=VALUE")

    p = sub.add_parser("delete", help="Delete an entity")
    p.add_argument("entity")

    p = sub.add_parser("inspect", help="Preview widgets for a SHACL file")
    p.add_argument("shapes")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env(args.env)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        lines = asyncio.run(run_command(args, settings))
    except ShapeformsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
