"""Triple store collaborators: local rdflib graphs and remote SPARQL endpoints."""
from shapeforms.store.base import Row, SparqlStore
from shapeforms.store.endpoint_store import EndpointStore
from shapeforms.store.graph_store import GraphStore
