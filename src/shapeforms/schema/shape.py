"""Shape property and type hierarchy models."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from shapeforms.schema.common import DEFAULT_ORDER, local_name
from shapeforms.schema.values import EntityValue


@dataclass(frozen=True)
class ShapeProperty:
    path: str
    name: str = ""
    description: Optional[str] = None
    datatype: Optional[str] = None
    referenced_class: Optional[str] = None  # sh:class
    referenced_shape: Optional[str] = None  # sh:node
    editor_hint: Optional[str] = None
    viewer_hint: Optional[str] = None
    min_count: Optional[int] = None
    max_count: Optional[int] = None
    order: int = DEFAULT_ORDER
    enum_values: Optional[tuple[EntityValue, ...]] = None  # sh:in, list order
    role: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", local_name(self.path))

    @property
    def is_reference(self) -> bool:
        return bool(self.referenced_class or self.referenced_shape)

    @property
    def is_multi(self) -> bool:
        """Absent sh:maxCount or a bound above one means multi-valued."""
        return self.max_count is None or self.max_count > 1

    @property
    def is_required(self) -> bool:
        return self.min_count is not None and self.min_count > 0

    @property
    def sort_key(self) -> tuple[int, str]:
        return (self.order, self.path)


def sort_properties(properties) -> tuple[ShapeProperty, ...]:
    """Order properties by sh:order, ties broken by path."""
    return tuple(sorted(properties, key=lambda p: p.sort_key))


@dataclass(frozen=True)
class EntityTypeNode:
    uri: str
    label: str
    is_shape: bool  # False = grouping-only node, navigable but not selectable
    children: tuple[EntityTypeNode, ...] = field(default_factory=tuple)

    def walk(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()
