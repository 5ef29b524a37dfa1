"""Create, update and delete entities described by shapes.

An update replaces every value at the type's shape paths: it discovers the
paths, deletes all current values there, then inserts the new set. With
``atomic_updates`` (the default) both operations travel in a single SPARQL
update request. Without it they are two round trips: if the insert fails the
entity is left without values and PartialUpdateError hands the pending values
back for ``retry``.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Union

from shapeforms import queries
from shapeforms.catalog import ShapeCatalog
from shapeforms.codec import (
    DEFAULT_NAMESPACE,
    RawValue,
    entity_triples,
    mint_entity_iri,
    normalize_values,
    type_triple,
)
from shapeforms.errors import PartialUpdateError, StoreError
from shapeforms.schema.common import ResourceRef
from shapeforms.schema.values import EntityValues
from shapeforms.store.base import SparqlStore

logger = logging.getLogger(__name__)

InputValues = Mapping[str, Union[RawValue, Iterable[RawValue]]]


class EntityRepository:
    def __init__(
        self,
        store: SparqlStore,
        catalog: ShapeCatalog,
        namespace: str = DEFAULT_NAMESPACE,
        atomic_updates: bool = True,
    ):
        self.store = store
        self.catalog = catalog
        self.namespace = namespace
        self.atomic_updates = atomic_updates

    async def list(self, type_uri: str) -> list[ResourceRef]:
        return await self.catalog.list_entities(type_uri)

    async def get(self, entity_uri: str, type_uri: str) -> EntityValues:
        return await self.catalog.get_values(entity_uri, type_uri)

    async def create(self, type_uri: str, values: InputValues) -> str:
        """Insert a new entity of ``type_uri`` and return its minted IRI."""
        entity_uri = mint_entity_iri(self.namespace)
        triples = [type_triple(entity_uri, type_uri)]
        triples.extend(entity_triples(entity_uri, normalize_values(values)))
        await self.store.update(queries.insert_data_update(triples))
        logger.info(f"Created {entity_uri} as {type_uri}")
        return entity_uri

    async def update(self, entity_uri: str, type_uri: str, values: InputValues) -> None:
        """Replace the values of ``entity_uri`` at every path its shape declares.

        Raises:
            StoreError: the store failed; with atomic updates nothing changed.
            PartialUpdateError: (non-atomic only) old values were removed but
                the new ones were not written.
        """
        pending = normalize_values(values)
        triples = entity_triples(entity_uri, pending)
        paths = await self.catalog.shape_paths(type_uri)

        delete = queries.delete_paths_update(entity_uri, paths) if paths else ""
        insert = queries.insert_data_update(triples) if triples else ""

        if self.atomic_updates:
            request = queries.join_updates(delete, insert)
            if request.strip():
                await self.store.update(request)
            logger.info(f"Updated {entity_uri} ({len(triples)} values)")
            return

        if delete:
            await self.store.update(delete)
        if insert:
            try:
                await self.store.update(insert)
            except StoreError as e:
                logger.error(f"Values of {entity_uri} were removed but not rewritten: {e}")
                raise PartialUpdateError(
                    f"Update of {entity_uri} incomplete: {e}",
                    entity_uri=entity_uri,
                    values=pending,
                    query=e.query,
                ) from e
        logger.info(f"Updated {entity_uri} ({len(triples)} values)")

    async def retry(self, error: PartialUpdateError) -> None:
        """Re-send the insert half of an update that failed part way."""
        triples = entity_triples(error.entity_uri, error.values)
        if triples:
            await self.store.update(queries.insert_data_update(triples))
        logger.info(f"Restored values of {error.entity_uri}")

    async def delete(self, entity_uri: str) -> None:
        """Remove every triple with ``entity_uri`` as subject; unknown IRIs are a no-op."""
        await self.store.update(queries.delete_entity_update(entity_uri))
        logger.info(f"Deleted {entity_uri}")
