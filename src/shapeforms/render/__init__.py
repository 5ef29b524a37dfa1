"""Widget resolution, nested entity rendering and text projection."""
from shapeforms.render.widgets import (
    EditorKind,
    ViewerKind,
    display_value,
    parse_input,
    resolve_editor,
    resolve_viewer,
)
from shapeforms.render.nested import (
    EntityNode,
    Fallback,
    FieldNode,
    Mode,
    NestedRenderer,
    TableNode,
    TableRow,
    ValueNode,
)
from shapeforms.render.projection import project_entity, project_forest
