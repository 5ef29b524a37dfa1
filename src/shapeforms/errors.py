"""Exception types raised by shapeforms."""
from __future__ import annotations

from typing import Optional


class ShapeformsError(Exception):
    """Base class for all shapeforms errors."""


class StoreError(ShapeformsError):
    """The triple store was unreachable or rejected a query.

    Never retried automatically; callers decide whether to retry.
    """

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message)
        self.query = query


class PartialUpdateError(StoreError):
    """An update removed the old values but failed to insert the new ones.

    The entity is left without values at its shape paths until
    ``EntityRepository.retry`` re-sends the insert.
    """

    def __init__(self, message: str, entity_uri: str, values, query: Optional[str] = None):
        super().__init__(message, query=query)
        self.entity_uri = entity_uri
        self.values = values


class InvalidValueError(ShapeformsError, ValueError):
    """A value cannot be encoded for the property it was entered for."""
