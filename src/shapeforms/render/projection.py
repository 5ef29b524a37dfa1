"""Project render trees and type forests onto indented text lines."""
from __future__ import annotations

from shapeforms.render.nested import EntityNode, FieldNode, TableNode
from shapeforms.schema.shape import EntityTypeNode

INDENT = "  "


def _value_lines(field: FieldNode, level: int) -> list[str]:
    pad = INDENT * level
    lines = []
    for node in field.values:
        if node.entity is not None:
            lines.append(f"{pad}{node.text}:")
            lines.extend(project_entity(node.entity, level + 1, heading=False))
        else:
            lines.append(f"{pad}{node.text}")
    return lines


def _table_lines(table: TableNode, level: int) -> list[str]:
    pad = INDENT * level
    lines = []
    if table.columns:
        lines.append(pad + " | ".join(["entity", *(c.name for c in table.columns)]))
    for row in table.rows:
        if row.fallback is not None or not row.cells:
            lines.append(f"{pad}{row.label}")
            continue
        cells = []
        for cell in row.cells:
            texts = [v.text for v in cell.values]
            if cell.table is not None:
                texts = [r.label for r in cell.table.rows]
            cells.append(", ".join(texts))
        lines.append(pad + " | ".join([row.label, *cells]))
    return lines


def project_entity(node: EntityNode, level: int = 0, heading: bool = True) -> list[str]:
    """Text lines for an entity: one line per field, nested entities indented."""
    pad = INDENT * level
    lines = [f"{pad}{node.label}"] if heading and node.label else []
    body = level + 1 if heading and node.label else level
    for field in node.fields:
        if not field.values and field.table is None:
            continue
        lines.append(f"{INDENT * body}{field.prop.name}:")
        if field.table is not None:
            lines.extend(_table_lines(field.table, body + 1))
        else:
            lines.extend(_value_lines(field, body + 1))
    return lines


def project_forest(nodes: list[EntityTypeNode], level: int = 0) -> list[str]:
    """Text lines for a type forest; grouping-only nodes are bracketed."""
    lines = []
    for node in nodes:
        label = node.label if node.is_shape else f"[{node.label}]"
        lines.append(f"{INDENT * level}{label}")
        lines.extend(project_forest(list(node.children), level + 1))
    return lines
