"""Data models for shapes, entity values and the type hierarchy."""
from shapeforms.schema.common import DASH, DEFAULT_ORDER, SHUI, ResourceRef, local_name
from shapeforms.schema.shape import EntityTypeNode, ShapeProperty, sort_properties
from shapeforms.schema.values import EntityValue, EntityValues
