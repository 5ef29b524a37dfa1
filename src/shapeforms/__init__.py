"""shapeforms: shape-driven rendering and editing of RDF entities.

Shapes (SHACL node and property shapes) fetched at runtime decide which
properties an entity has, which widget edits or displays each of them, and
how referenced entities are expanded.
"""
__version__ = "0.1.0"

from shapeforms.schema.common import ResourceRef
from shapeforms.schema.shape import EntityTypeNode, ShapeProperty
from shapeforms.schema.values import EntityValue, EntityValues

from shapeforms.errors import InvalidValueError, PartialUpdateError, ShapeformsError, StoreError

from shapeforms.store import EndpointStore, GraphStore, SparqlStore
from shapeforms.catalog import ShapeCatalog
from shapeforms.hierarchy import ancestor_chain, build_hierarchy, direct_edges
from shapeforms.codec import mint_entity_iri
from shapeforms.entities import EntityRepository
from shapeforms.render.widgets import EditorKind, ViewerKind, resolve_editor, resolve_viewer
from shapeforms.render.nested import Fallback, Mode, NestedRenderer
from shapeforms.session import EntityManager, LatestOnly
from shapeforms.config import Settings

__all__ = [
    # Models
    "ResourceRef", "EntityTypeNode", "ShapeProperty", "EntityValue", "EntityValues",
    # Errors
    "ShapeformsError", "StoreError", "PartialUpdateError", "InvalidValueError",
    # Stores
    "SparqlStore", "GraphStore", "EndpointStore",
    # Catalog and hierarchy
    "ShapeCatalog", "build_hierarchy", "direct_edges", "ancestor_chain",
    # Values and entities
    "mint_entity_iri", "EntityRepository",
    # Rendering
    "EditorKind", "ViewerKind", "resolve_editor", "resolve_viewer",
    "Fallback", "Mode", "NestedRenderer",
    # Session
    "EntityManager", "LatestOnly",
    "Settings",
]
