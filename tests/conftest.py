import os

import pytest

from shapeforms.catalog import ShapeCatalog
from shapeforms.entities import EntityRepository
from shapeforms.store import GraphStore

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")
SHAPES = os.path.join(FIXTURES, "shapes.ttl")
DATA = os.path.join(FIXTURES, "data.ttl")

EX = "http://example.org/onto#"
D = "http://example.org/data#"


@pytest.fixture
def store():
    return GraphStore.from_files(SHAPES, DATA)


@pytest.fixture
def catalog(store):
    return ShapeCatalog(store)


@pytest.fixture
def repository(store, catalog):
    return EntityRepository(store, catalog, namespace=D)
