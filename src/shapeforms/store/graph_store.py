"""In-memory store backed by an rdflib Graph."""
from __future__ import annotations

import logging
from typing import Optional

from rdflib import Graph

from shapeforms.store.base import Row, SparqlStore

logger = logging.getLogger(__name__)


class GraphStore(SparqlStore):
    """Runs queries against a local rdflib Graph.

    Queries execute inside the event loop: there is no network I/O to wait on
    and rdflib's memory store is not safe for concurrent writers.
    """

    def __init__(self, graph: Optional[Graph] = None):
        self.graph = graph if graph is not None else Graph()

    @classmethod
    def from_files(cls, *paths: str, format: str = "turtle") -> GraphStore:
        """Load one or more RDF files into a fresh store."""
        g = Graph()
        for path in paths:
            logger.info(f"Loading {path}")
            g.parse(source=path, format=format)
        return cls(g)

    async def _select(self, query: str) -> list[Row]:
        result = self.graph.query(query)
        return [row.asdict() for row in result]

    async def _update(self, update: str) -> None:
        self.graph.update(update)
