"""Recursive resolution of entities and the entities they reference.

Rendering produces a plain data tree (EntityNode → FieldNode → ValueNode or
TableNode) that a stateless projection can display. Depth is an explicit
argument: the top-level entity sits at depth 0 and every reference followed
adds one. A reference that cannot be expanded (depth bound reached, no
shape, no values, or a failed lookup) degrades to its label instead of
failing the parent.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from shapeforms.catalog import ShapeCatalog
from shapeforms.errors import StoreError
from shapeforms.render.widgets import (
    EditorKind,
    ViewerKind,
    display_value,
    resolve_editor,
    resolve_viewer,
)
from shapeforms.schema.common import local_name
from shapeforms.schema.shape import ShapeProperty
from shapeforms.schema.values import EntityValue, EntityValues

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3
DEFAULT_CONCURRENCY = 8

Widget = Union[EditorKind, ViewerKind]


class Mode(Enum):
    VIEW = "view"
    EDIT = "edit"


class Fallback(Enum):
    """Why a reference is shown as a plain label."""
    DEPTH_LIMIT = "depth-limit"
    NO_SHAPE = "no-shape"
    NO_VALUES = "no-values"
    UNAVAILABLE = "unavailable"
    LITERAL = "literal"  # a plain value stored where a reference was expected


@dataclass(frozen=True)
class ValueNode:
    value: EntityValue
    text: str
    entity: Optional[EntityNode] = None
    fallback: Optional[Fallback] = None


@dataclass(frozen=True)
class TableRow:
    uri: str
    label: str
    cells: tuple[FieldNode, ...] = ()
    fallback: Optional[Fallback] = None


@dataclass(frozen=True)
class TableNode:
    columns: tuple[ShapeProperty, ...]
    rows: tuple[TableRow, ...]


@dataclass(frozen=True)
class FieldNode:
    prop: ShapeProperty
    widget: Widget
    values: tuple[ValueNode, ...] = ()
    table: Optional[TableNode] = None


@dataclass(frozen=True)
class EntityNode:
    uri: str
    type_uri: str
    label: str
    depth: int
    fields: tuple[FieldNode, ...] = field(default_factory=tuple)


def _target(prop: ShapeProperty) -> tuple[Optional[str], bool]:
    """What to describe a referenced entity with: its class, else its node shape."""
    if prop.referenced_class:
        return prop.referenced_class, False
    if prop.referenced_shape:
        return prop.referenced_shape, True
    return None, False


def _label_node(value: EntityValue, fallback: Optional[Fallback] = None) -> ValueNode:
    return ValueNode(value=value, text=local_name(value.value), fallback=fallback)


class _RenderPass:
    """State for one render call: memoized shapes and the row fetch limiter."""

    def __init__(self, concurrency: int):
        self.shapes: dict[tuple[str, bool], asyncio.Task] = {}
        self.limiter = asyncio.Semaphore(concurrency)


class NestedRenderer:
    """Resolve an entity and its references into a render tree.

    Args:
        catalog: Source of shapes and values.
        max_depth: References at this depth or deeper render as labels.
        mode: VIEW resolves viewers, EDIT resolves editors.
        concurrency: Upper bound on concurrent row fetches for tables.
    """

    def __init__(
        self,
        catalog: ShapeCatalog,
        max_depth: int = DEFAULT_MAX_DEPTH,
        mode: Mode = Mode.VIEW,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        self.catalog = catalog
        self.max_depth = max_depth
        self.mode = mode
        self.concurrency = max(1, concurrency)

    async def render(self, entity_uri: str, type_uri: str, shape: bool = False) -> EntityNode:
        """Render a top-level entity. Store failures here propagate."""
        run = _RenderPass(self.concurrency)
        properties = await self._properties(run, type_uri, shape)
        values = await self.catalog.get_values(entity_uri, type_uri, shape) if properties else {}
        return await self._entity(run, entity_uri, type_uri, properties, values, depth=0)

    async def render_values(self, type_uri: str, values: EntityValues, entity_uri: str = "") -> EntityNode:
        """Render values that are not (yet) stored, e.g. a pending form."""
        run = _RenderPass(self.concurrency)
        properties = await self._properties(run, type_uri, False)
        return await self._entity(run, entity_uri, type_uri, properties, values, depth=0)

    async def resolve_reference(
        self, value: EntityValue, prop: ShapeProperty, depth: int,
    ) -> ValueNode:
        """Expand one referenced entity at ``depth``, or fall back to its label."""
        return await self._reference(_RenderPass(self.concurrency), value, prop, depth)

    # ── Internals ────────────────────────────────────────────────

    async def _properties(self, run: _RenderPass, target: str, shape: bool) -> tuple[ShapeProperty, ...]:
        key = (target, shape)
        if key not in run.shapes:
            run.shapes[key] = asyncio.ensure_future(self.catalog.list_properties(target, shape))
        return await run.shapes[key]

    def _widget(self, prop: ShapeProperty) -> Widget:
        if self.mode is Mode.EDIT:
            return resolve_editor(prop)
        return resolve_viewer(prop)

    def _expands(self, widget: Widget) -> bool:
        if self.mode is Mode.EDIT:
            return widget is EditorKind.DETAILS
        return widget in (ViewerKind.DETAILS, ViewerKind.VALUE_TABLE)

    def _text(self, widget: Widget, value: EntityValue) -> str:
        if isinstance(widget, ViewerKind):
            return display_value(widget, value)
        return local_name(value.value) if value.is_reference else value.value

    async def _entity(
        self,
        run: _RenderPass,
        uri: str,
        type_uri: str,
        properties: tuple[ShapeProperty, ...],
        values: EntityValues,
        depth: int,
    ) -> EntityNode:
        fields = await asyncio.gather(
            *(self._field(run, prop, values.get(prop.path, []), depth) for prop in properties)
        )
        return EntityNode(
            uri=uri,
            type_uri=type_uri,
            label=local_name(uri) if uri else "",
            depth=depth,
            fields=tuple(fields),
        )

    async def _field(
        self, run: _RenderPass, prop: ShapeProperty, values: list[EntityValue], depth: int,
    ) -> FieldNode:
        widget = self._widget(prop)
        references = [v for v in values if v.is_reference]

        if not (prop.is_reference and self._expands(widget) and references):
            nodes = tuple(ValueNode(value=v, text=self._text(widget, v)) for v in values)
            return FieldNode(prop=prop, widget=widget, values=nodes)

        if widget is ViewerKind.VALUE_TABLE:
            table = await self._table(run, prop, values, depth + 1)
            return FieldNode(prop=prop, widget=widget, table=table)

        resolved = iter(await asyncio.gather(
            *(self._reference(run, v, prop, depth + 1) for v in references)
        ))
        # Literals stored at a reference path are shown as they are, in place
        nodes = tuple(
            next(resolved) if v.is_reference else ValueNode(value=v, text=self._text(widget, v))
            for v in values
        )
        return FieldNode(prop=prop, widget=widget, values=nodes)

    async def _reference(
        self, run: _RenderPass, value: EntityValue, prop: ShapeProperty, depth: int,
    ) -> ValueNode:
        if depth >= self.max_depth:
            return _label_node(value, Fallback.DEPTH_LIMIT)

        target, shape = _target(prop)
        if target is None:
            return _label_node(value, Fallback.NO_SHAPE)

        try:
            properties = await self._properties(run, target, shape)
            if not properties:
                return _label_node(value, Fallback.NO_SHAPE)
            values = await self.catalog.get_values(value.value, target, shape)
        except StoreError as e:
            logger.warning(f"Showing {value.value} as a label: {e}")
            return _label_node(value, Fallback.UNAVAILABLE)

        if not values:
            return _label_node(value, Fallback.NO_VALUES)

        entity = await self._entity(run, value.value, target, properties, values, depth)
        return ValueNode(value=value, text=local_name(value.value), entity=entity)

    async def _table(
        self, run: _RenderPass, prop: ShapeProperty, values: list[EntityValue], depth: int,
    ) -> TableNode:
        def label_row(value: EntityValue, reason: Fallback) -> TableRow:
            if not value.is_reference:
                return TableRow(uri="", label=value.value, fallback=Fallback.LITERAL)
            return TableRow(uri=value.value, label=local_name(value.value), fallback=reason)

        def fallback_rows(reason: Fallback) -> tuple[TableRow, ...]:
            return tuple(label_row(v, reason) for v in values)

        if depth >= self.max_depth:
            return TableNode(columns=(), rows=fallback_rows(Fallback.DEPTH_LIMIT))

        target, shape = _target(prop)
        try:
            columns = await self._properties(run, target, shape) if target else ()
        except StoreError as e:
            logger.warning(f"Showing {prop.name} rows as labels: {e}")
            return TableNode(columns=(), rows=fallback_rows(Fallback.UNAVAILABLE))
        if not columns:
            return TableNode(columns=(), rows=fallback_rows(Fallback.NO_SHAPE))

        async def fetch_row(value: EntityValue) -> TableRow:
            if not value.is_reference:
                return label_row(value, Fallback.LITERAL)
            async with run.limiter:
                try:
                    values = await self.catalog.get_values(value.value, target, shape)
                except StoreError as e:
                    logger.warning(f"Showing row {value.value} as a label: {e}")
                    return TableRow(uri=value.value, label=local_name(value.value),
                                    fallback=Fallback.UNAVAILABLE)
            if not values:
                return TableRow(uri=value.value, label=local_name(value.value),
                                fallback=Fallback.NO_VALUES)
            cells = await asyncio.gather(
                *(self._field(run, col, values.get(col.path, []), depth) for col in columns)
            )
            return TableRow(uri=value.value, label=local_name(value.value), cells=tuple(cells))

        rows = await asyncio.gather(*(fetch_row(v) for v in values))
        return TableNode(columns=columns, rows=tuple(rows))
