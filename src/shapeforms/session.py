"""View-level state: the selected type, its properties, its entities.

Each piece of state lives in a LatestOnly slot. Loads are tagged with a
generation number when they start; a response whose generation is no longer
current was superseded by a newer input and is dropped, whether it succeeded
or failed.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, Optional, TypeVar

from shapeforms.catalog import ShapeCatalog
from shapeforms.entities import EntityRepository, InputValues
from shapeforms.errors import PartialUpdateError, ShapeformsError
from shapeforms.schema.common import local_name
from shapeforms.schema.shape import EntityTypeNode

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LatestOnly(Generic[T]):
    """A slot that only accepts the response to its most recent load."""

    def __init__(self, name: str, value: Optional[T] = None):
        self.name = name
        self.value = value
        self.key: Any = None
        self._generation = 0

    async def load(self, key: Any, fetch: Callable[[], Awaitable[T]]) -> bool:
        """Run ``fetch`` for ``key`` and store its result if still current.

        Returns:
            True if the result was applied, False if a newer load superseded it.

        Raises:
            Whatever ``fetch`` raised, unless the load was superseded.
        """
        self._generation += 1
        generation = self._generation
        self.key = key
        try:
            result = await fetch()
        except Exception:
            if generation != self._generation:
                logger.debug(f"Dropping failed stale {self.name} load for {key!r}")
                return False
            raise
        if generation != self._generation:
            logger.debug(f"Dropping stale {self.name} response for {key!r}")
            return False
        self.value = result
        return True

    def clear(self) -> None:
        self._generation += 1
        self.key = None
        self.value = None


class EntityManager:
    """Browse types, list their instances and submit edits.

    Failures of catalog loads, value loads and submits end up in ``message``
    as a short text; nothing is retried automatically.
    """

    def __init__(self, catalog: ShapeCatalog, repository: EntityRepository):
        self.catalog = catalog
        self.repository = repository
        self.forest: LatestOnly[list[EntityTypeNode]] = LatestOnly("forest", [])
        self.properties = LatestOnly("properties", ())
        self.entities = LatestOnly("entities", [])
        self.values = LatestOnly("values", {})
        self.selected: Optional[str] = None
        self.message: Optional[str] = None
        self.pending_recovery: Optional[PartialUpdateError] = None

    def _fail(self, action: str, error: Exception) -> None:
        logger.error(f"{action} failed: {error}")
        self.message = f"{action} failed: {error}"

    async def load_types(self) -> bool:
        try:
            return await self.forest.load("forest", self.catalog.type_forest)
        except ShapeformsError as e:
            self._fail("Loading entity types", e)
            return False

    async def select(self, node: EntityTypeNode) -> bool:
        """Select a tree node; grouping-only nodes are not selectable."""
        if not node.is_shape:
            logger.debug(f"{node.uri} is a grouping node, not selectable")
            return False
        return await self.select_type(node.uri)

    async def select_type(self, type_uri: str) -> bool:
        """Switch to ``type_uri`` and load its properties and instances."""
        self.selected = type_uri
        self.message = None
        self.values.clear()
        # A failure in one load does not abandon the other
        loaded = await asyncio.gather(
            self.properties.load(type_uri, lambda: self.catalog.list_properties(type_uri)),
            self.entities.load(type_uri, lambda: self.catalog.list_entities(type_uri)),
            return_exceptions=True,
        )
        errors = [r for r in loaded if isinstance(r, BaseException)]
        for error in errors:
            if not isinstance(error, ShapeformsError):
                raise error
        if errors:
            if self.selected == type_uri:
                self._fail("Loading entities", errors[0])
            return False
        return all(loaded)

    async def open_entity(self, entity_uri: str) -> bool:
        type_uri = self.selected
        if type_uri is None:
            return False
        try:
            return await self.values.load(
                entity_uri, lambda: self.catalog.get_values(entity_uri, type_uri)
            )
        except ShapeformsError as e:
            self._fail("Loading values", e)
            return False

    async def refresh_entities(self) -> bool:
        type_uri = self.selected
        if type_uri is None:
            return False
        try:
            return await self.entities.load(type_uri, lambda: self.catalog.list_entities(type_uri))
        except ShapeformsError as e:
            self._fail("Loading entities", e)
            return False

    async def create(self, values: InputValues) -> Optional[str]:
        if self.selected is None:
            return None
        try:
            entity_uri = await self.repository.create(self.selected, values)
        except ShapeformsError as e:
            self._fail("Create", e)
            return None
        self.message = f"Created: {local_name(entity_uri)}"
        await self.refresh_entities()
        return entity_uri

    async def update(self, entity_uri: str, values: InputValues) -> bool:
        if self.selected is None:
            return False
        try:
            await self.repository.update(entity_uri, self.selected, values)
        except PartialUpdateError as e:
            self.pending_recovery = e
            self._fail("Update", e)
            return False
        except ShapeformsError as e:
            self._fail("Update", e)
            return False
        self.message = f"Updated: {local_name(entity_uri)}"
        return True

    async def recover(self) -> bool:
        """Retry the insert of the last partially applied update."""
        error = self.pending_recovery
        if error is None:
            return False
        try:
            await self.repository.retry(error)
        except ShapeformsError as e:
            self._fail("Recovery", e)
            return False
        self.pending_recovery = None
        self.message = f"Restored: {local_name(error.entity_uri)}"
        return True

    async def delete(self, entity_uri: str) -> bool:
        try:
            await self.repository.delete(entity_uri)
        except ShapeformsError as e:
            self._fail("Delete", e)
            return False
        self.entities.value = [e for e in self.entities.value if e.uri != entity_uri]
        self.message = f"Deleted: {local_name(entity_uri)}"
        return True
