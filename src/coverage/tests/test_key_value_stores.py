import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from src.config.settings import Settings
from src.coverage.store.key_value_store import InMemoryKeyValueStore
from src.coverage.store.sql_key_value_store import SqlKeyValueStore
from src.coverage.store.store_factory import build_stores


def _sqlite_engine():
    return create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return InMemoryKeyValueStore()
    return SqlKeyValueStore(_sqlite_engine(), namespace="samples")


def _drain(store, limit):
    names, cursor, pages = [], None, 0
    while True:
        page = store.list(cursor=cursor, limit=limit)
        pages += 1
        names.extend(k.name for k in page.keys)
        cursor = page.cursor
        if cursor is None:
            return names, pages


def test_put_get_roundtrip_keeps_metadata(store):
    store.put("abc123-1", "", {"time": 100, "path": ["A", "B"]})

    entry = store.get_with_metadata("abc123-1")

    assert entry.value == ""
    assert entry.metadata == {"time": 100, "path": ["A", "B"]}
    assert store.get_with_metadata("missing") is None


def test_put_replaces_value_and_metadata_together(store):
    store.put("abc123", "[1]", {"updated": 1})
    store.put("abc123", "[2]", {"updated": 2})

    entry = store.get_with_metadata("abc123")

    assert (entry.value, entry.metadata) == ("[2]", {"updated": 2})


def test_delete_is_idempotent(store):
    store.put("abc123-1", "", {})
    store.delete("abc123-1")
    store.delete("abc123-1")

    assert store.get_with_metadata("abc123-1") is None


def test_listing_pages_through_every_key(store):
    for i in range(10):
        store.put(f"k{i:02d}", "", {"time": i})

    names, pages = _drain(store, limit=4)

    assert names == [f"k{i:02d}" for i in range(10)]
    assert pages == 3


def test_listing_exact_page_boundary_ends_with_no_cursor(store):
    for i in range(4):
        store.put(f"k{i}", "", {})

    page = store.list(limit=4)

    assert len(page.keys) == 4
    assert page.cursor is None


def test_listing_carries_metadata(store):
    store.put("abc123-1", "", {"time": 5, "path": []})

    page = store.list()

    assert page.keys[0].metadata == {"time": 5, "path": []}


def test_in_memory_store_copies_metadata():
    store = InMemoryKeyValueStore()
    metadata = {"path": ["A"]}
    store.put("k", "", metadata)
    metadata["path"].append("B")

    store.get_with_metadata("k").metadata["path"].append("C")

    assert store.get_with_metadata("k").metadata == {"path": ["A"]}


def test_sql_namespaces_are_isolated():
    settings = Settings(DATABASE_URL="sqlite+pysqlite:///:memory:")
    stores = build_stores(settings, engine=_sqlite_engine())

    stores.samples.put("abc123-1", "", {"time": 1})

    assert stores.archive.get_with_metadata("abc123-1") is None
    assert stores.coverage.list().keys == []
    assert [k.name for k in stores.samples.list().keys] == ["abc123-1"]


def test_sql_store_from_dsn():
    store = SqlKeyValueStore.from_dsn("sqlite+pysqlite:///:memory:", namespace="archive")

    store.put("abc123-1", "", {"time": 7, "path": ["A"]})

    assert store.get_with_metadata("abc123-1").metadata == {"time": 7, "path": ["A"]}
