"""Remote SPARQL 1.1 endpoint store using SPARQLWrapper."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from SPARQLWrapper import JSON, POST, SPARQLWrapper

from shapeforms.codec import term_from_binding
from shapeforms.store.base import Row, SparqlStore

logger = logging.getLogger(__name__)


class EndpointStore(SparqlStore):
    """Talks to a SPARQL query endpoint and its companion update endpoint.

    Each request gets its own SPARQLWrapper instance and runs in a worker
    thread, so concurrent requests never share wrapper state and the event
    loop never blocks on the network.
    """

    def __init__(self, query_endpoint: str, update_endpoint: Optional[str] = None, timeout: int = 30):
        self.query_endpoint = query_endpoint
        self.update_endpoint = update_endpoint or query_endpoint
        self.timeout = timeout

    def _wrapper(self, endpoint: str) -> SPARQLWrapper:
        sparql = SPARQLWrapper(endpoint)
        sparql.setMethod(POST)
        sparql.setTimeout(self.timeout)
        return sparql

    def _run_select(self, query: str) -> list[Row]:
        sparql = self._wrapper(self.query_endpoint)
        sparql.setQuery(query)
        sparql.setReturnFormat(JSON)
        results = sparql.query().convert()
        rows = []
        for binding in results.get("results", {}).get("bindings", []):
            rows.append({var: term_from_binding(b) for var, b in binding.items()})
        return rows

    def _run_update(self, update: str) -> None:
        sparql = self._wrapper(self.update_endpoint)
        sparql.setQuery(update)
        sparql.query()

    async def _select(self, query: str) -> list[Row]:
        return await asyncio.to_thread(self._run_select, query)

    async def _update(self, update: str) -> None:
        await asyncio.to_thread(self._run_update, update)
        logger.debug(f"Update accepted by {self.update_endpoint}")
