"""Tests for view state: latest-response-wins loads and user messages."""
import asyncio

from shapeforms.errors import StoreError
from shapeforms.schema.common import ResourceRef
from shapeforms.schema.shape import EntityTypeNode, ShapeProperty
from shapeforms.session import EntityManager, LatestOnly

from conftest import D, EX

PERSON = EX + "Person"
NAME = EX + "name"


def run(coro):
    return asyncio.run(coro)


async def settle():
    for _ in range(10):
        await asyncio.sleep(0)


class GatedCatalog:
    """Catalog double whose responses are released by the test."""

    def __init__(self, types, failing=()):
        self.gates = {t: asyncio.Event() for t in types}
        self.failing = set(failing)

    async def _wait(self, type_uri):
        await self.gates[type_uri].wait()
        if type_uri in self.failing:
            raise StoreError(f"{type_uri} unavailable")

    async def list_properties(self, type_uri, shape=False):
        await self._wait(type_uri)
        return (ShapeProperty(path=type_uri + "/name"),)

    async def list_entities(self, type_uri):
        await self._wait(type_uri)
        return [ResourceRef(uri=type_uri + "/1", label="one")]


# ── LatestOnly ──────────────────────────────────────────────────

def test_latest_only_drops_stale_result():
    async def scenario():
        slot = LatestOnly("values")
        first_gate, second_gate = asyncio.Event(), asyncio.Event()

        async def fetch(gate, result):
            await gate.wait()
            return result

        first = asyncio.ensure_future(slot.load("a", lambda: fetch(first_gate, "A")))
        await settle()
        second = asyncio.ensure_future(slot.load("b", lambda: fetch(second_gate, "B")))
        await settle()

        second_gate.set()
        assert await second is True
        first_gate.set()
        assert await first is False
        return slot

    slot = run(scenario())
    assert slot.value == "B"
    assert slot.key == "b"


def test_latest_only_drops_stale_failure():
    async def scenario():
        slot = LatestOnly("values")
        gate = asyncio.Event()

        async def failing():
            await gate.wait()
            raise StoreError("late failure")

        async def ok():
            return "fresh"

        stale = asyncio.ensure_future(slot.load("a", failing))
        await settle()
        assert await slot.load("b", ok) is True
        gate.set()
        assert await stale is False
        return slot

    assert run(scenario()).value == "fresh"


def test_latest_only_clear_invalidates_pending():
    async def scenario():
        slot = LatestOnly("values", {})
        gate = asyncio.Event()

        async def fetch():
            await gate.wait()
            return {"x": 1}

        pending = asyncio.ensure_future(slot.load("a", fetch))
        await settle()
        slot.clear()
        gate.set()
        assert await pending is False
        return slot

    assert run(scenario()).value is None


# ── EntityManager ───────────────────────────────────────────────

def test_switching_types_keeps_latest():
    async def scenario():
        catalog = GatedCatalog(["urn:A", "urn:B"])
        manager = EntityManager(catalog, repository=None)
        first = asyncio.ensure_future(manager.select_type("urn:A"))
        await settle()
        second = asyncio.ensure_future(manager.select_type("urn:B"))
        await settle()

        catalog.gates["urn:B"].set()
        assert await second is True
        catalog.gates["urn:A"].set()
        assert await first is False
        return manager

    manager = run(scenario())
    assert manager.selected == "urn:B"
    assert manager.properties.value[0].path == "urn:B/name"
    assert manager.entities.value[0].uri == "urn:B/1"


def test_stale_failure_leaves_no_message():
    async def scenario():
        catalog = GatedCatalog(["urn:A", "urn:B"], failing=["urn:A"])
        manager = EntityManager(catalog, repository=None)
        first = asyncio.ensure_future(manager.select_type("urn:A"))
        await settle()
        second = asyncio.ensure_future(manager.select_type("urn:B"))
        await settle()
        catalog.gates["urn:B"].set()
        await second
        catalog.gates["urn:A"].set()
        assert await first is False
        return manager

    manager = run(scenario())
    assert manager.message is None
    assert manager.entities.value[0].uri == "urn:B/1"


def test_current_failure_sets_message():
    async def scenario():
        catalog = GatedCatalog(["urn:A"], failing=["urn:A"])
        manager = EntityManager(catalog, repository=None)
        catalog.gates["urn:A"].set()
        assert await manager.select_type("urn:A") is False
        return manager

    assert run(scenario()).message == "Loading entities failed: urn:A unavailable"


class BrokenShapesCatalog(GatedCatalog):
    """Property lookups fail at once; instance lookups wait for their gate."""

    async def list_properties(self, type_uri, shape=False):
        raise StoreError(f"{type_uri} shapes unavailable")


def test_failed_properties_wait_for_entities():
    async def scenario():
        catalog = BrokenShapesCatalog(["urn:A"])
        manager = EntityManager(catalog, repository=None)
        selecting = asyncio.ensure_future(manager.select_type("urn:A"))
        await settle()
        assert not selecting.done()
        catalog.gates["urn:A"].set()
        assert await selecting is False
        return manager

    manager = run(scenario())
    assert manager.entities.value[0].uri == "urn:A/1"
    assert manager.message == "Loading entities failed: urn:A shapes unavailable"


def test_grouping_node_not_selectable(catalog, repository):
    manager = EntityManager(catalog, repository)
    group = EntityTypeNode(uri=EX + "Element", label="Element", is_shape=False)
    assert run(manager.select(group)) is False
    assert manager.selected is None


def test_browse_and_edit(catalog, repository):
    manager = EntityManager(catalog, repository)

    async def scenario():
        assert await manager.load_types()
        person = next(n for root in manager.forest.value for n in root.walk() if n.uri == PERSON)
        assert await manager.select(person)
        assert [e.label for e in manager.entities.value] == ["Alice", "Bob", "Carol", "Dave"]

        assert await manager.open_entity(D + "carol")
        assert manager.values.value[NAME][0].value == "Carol"

        uri = await manager.create({NAME: "Alpha"})
        assert manager.message.startswith("Created: inst-")
        assert uri in {e.uri for e in manager.entities.value}

        assert await manager.update(uri, {NAME: "Beta"})
        assert manager.message.startswith("Updated: inst-")

        assert await manager.delete(uri)
        assert manager.message.startswith("Deleted: inst-")
        assert uri not in {e.uri for e in manager.entities.value}

    run(scenario())


def test_failed_delete_reports_message(catalog, repository):
    class BrokenRepository:
        async def delete(self, entity_uri):
            raise StoreError("connection refused")

    manager = EntityManager(catalog, BrokenRepository())
    assert run(manager.delete(D + "alice")) is False
    assert manager.message == "Delete failed: connection refused"
