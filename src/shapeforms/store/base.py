"""Abstract query/update collaborator the core runs against."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import rdflib

from shapeforms.errors import StoreError
from shapeforms.queries import PREFIX_BLOCK

logger = logging.getLogger(__name__)

# Variable name → bound term; unbound variables are absent
Row = dict[str, rdflib.term.Node]


class SparqlStore(ABC):
    """Executes SPARQL reads and writes against a triple store.

    Connection handling, retries and endpoint choice belong to the concrete
    store; failures surface as StoreError and are never retried here.
    """

    async def select(self, query: str) -> list[Row]:
        text = PREFIX_BLOCK + query
        logger.debug(f"SPARQL select:\n{query.strip()}")
        try:
            return await self._select(text)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Query failed: {e}", query=query) from e

    async def update(self, update: str) -> None:
        text = PREFIX_BLOCK + update
        logger.debug(f"SPARQL update:\n{update.strip()}")
        try:
            await self._update(text)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Update failed: {e}", query=update) from e

    @abstractmethod
    async def _select(self, query: str) -> list[Row]:
        ...

    @abstractmethod
    async def _update(self, update: str) -> None:
        ...
