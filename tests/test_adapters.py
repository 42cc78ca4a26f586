"""Tests for the DocumentStore adapters.

Network-backed adapters are exercised against mocked clients; only the
in-memory store runs end to end.
"""

import inspect
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from taskvault.adapters.memory import InMemoryDocumentStore
from taskvault.adapters.postgres import AsyncPostgresStore, normalize_postgres_url
from taskvault.timestamps import Timestamp

STORE_METHODS = ("list_page", "get", "set", "update", "close")


def _implements_store(cls) -> bool:
    return all(inspect.iscoroutinefunction(getattr(cls, name, None)) for name in STORE_METHODS)


# ------------------------------------------------------------------
# In-memory
# ------------------------------------------------------------------


class TestInMemoryDocumentStore:
    """Dict-backed store semantics."""

    def test_satisfies_protocol(self):
        assert _implements_store(InMemoryDocumentStore)

    async def test_pages_ordered_by_id(self):
        store = InMemoryDocumentStore({"tasks": {"b": {}, "c": {}, "a": {}}})

        first = await store.list_page("tasks", 2)
        rest = await store.list_page("tasks", 2, start_after=first[-1][0])

        assert [doc_id for doc_id, _ in first] == ["a", "b"]
        assert [doc_id for doc_id, _ in rest] == ["c"]

    async def test_unknown_collection_is_empty(self):
        assert await InMemoryDocumentStore().list_page("groups", 10) == []

    async def test_get_missing_returns_none(self):
        assert await InMemoryDocumentStore().get("tasks", "nope") is None

    async def test_set_then_get_is_a_copy(self):
        store = InMemoryDocumentStore()
        data = {"tags": ["a"], "due": Timestamp(1, 2)}

        await store.set("tasks", "t1", data)
        data["tags"].append("b")
        fetched = await store.get("tasks", "t1")
        fetched["tags"].append("c")

        assert store.dump("tasks")["t1"] == {"tags": ["a"], "due": Timestamp(1, 2)}

    async def test_update_merges_top_level_keys(self):
        store = InMemoryDocumentStore({"groups": {"g1": {"name": "A", "size": 2}}})
        await store.update("groups", "g1", {"name": "B"})
        assert store.dump("groups")["g1"] == {"name": "B", "size": 2}

    async def test_update_missing_raises(self):
        with pytest.raises(KeyError):
            await InMemoryDocumentStore().update("groups", "g1", {"name": "B"})

    async def test_close(self):
        store = InMemoryDocumentStore()
        await store.close()
        assert store.closed is True


# ------------------------------------------------------------------
# PostgreSQL
# ------------------------------------------------------------------


class TestPostgresUrl:
    def test_postgres_scheme(self):
        assert normalize_postgres_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"

    def test_postgresql_scheme(self):
        assert normalize_postgres_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"

    def test_asyncpg_scheme_untouched(self):
        url = "postgresql+asyncpg://u:p@h/db"
        assert normalize_postgres_url(url) == url


class TestAsyncPostgresStore:
    """Table naming and JSONB (de)serialization; no database required."""

    def _store(self, **kwargs) -> AsyncPostgresStore:
        return AsyncPostgresStore("postgresql://u:p@localhost:5432/tasks", **kwargs)

    def test_satisfies_protocol(self):
        assert _implements_store(AsyncPostgresStore)

    def test_table_name_with_prefix(self):
        assert self._store(table_prefix="vault_").table_name("groups") == "vault_groups"

    def test_unsafe_collection_rejected(self):
        with pytest.raises(ValueError, match="Invalid collection name"):
            self._store().table_name("tasks; DROP TABLE groups")

    def test_encode_tags_timestamps(self):
        encoded = self._store()._encode({"due": Timestamp(5, 6)})
        assert encoded == '{"due": {"__type": "timestamp", "seconds": 5, "nanoseconds": 6}}'

    def test_decode_string_and_dict(self):
        store = self._store()
        tagged = {"due": {"__type": "timestamp", "seconds": 5, "nanoseconds": 6}}
        assert store._decode(tagged) == {"due": Timestamp(5, 6)}
        assert store._decode('{"title": "x"}') == {"title": "x"}
        assert store._decode(None) == {}

    async def test_close_disposes_engine(self):
        store = self._store()
        store._engine = MagicMock()
        store._engine.dispose = AsyncMock()

        await store.close()

        store._engine.dispose.assert_awaited_once()


def _pg_store(rows=None, returned=None, **kwargs):
    """AsyncPostgresStore over a mocked engine whose connections share one ``conn``."""
    result = MagicMock()
    result.fetchall.return_value = rows or []
    result.fetchone.return_value = returned

    conn = MagicMock()
    conn.execute = AsyncMock(return_value=result)

    engine = MagicMock()
    for opener in (engine.connect, engine.begin):
        opener.return_value.__aenter__.return_value = conn
        opener.return_value.__aexit__.return_value = False

    with patch("taskvault.adapters.postgres.create_async_engine_pooled") as mock_create:
        mock_create.return_value = engine
        store = AsyncPostgresStore("postgresql://u:p@localhost/db", **kwargs)
    return store, engine, conn


def _executed(conn, index: int = -1) -> tuple[str, dict]:
    """(whitespace-collapsed SQL, params) of one ``conn.execute`` call."""
    args = conn.execute.await_args_list[index].args
    params = args[1] if len(args) > 1 else {}
    return " ".join(str(args[0]).split()), params


class TestAsyncPostgresQueries:
    """SQL issued by each store method against a mocked engine."""

    async def test_first_page_has_no_where_clause(self):
        store, engine, conn = _pg_store(auto_create=False)

        await store.list_page("tasks", 5)

        sql, params = _executed(conn)
        assert sql == "SELECT id, data FROM tasks ORDER BY id LIMIT :limit"
        assert params == {"limit": 5}
        engine.connect.assert_called_once()

    async def test_keyset_page_after_cursor(self):
        rows = [
            ("t1", '{"title": "a"}'),
            ("t2", {"due": {"__type": "timestamp", "seconds": 9, "nanoseconds": 1}}),
        ]
        store, _, conn = _pg_store(rows=rows, auto_create=False)

        page = await store.list_page("tasks", 2, start_after="t0")

        sql, params = _executed(conn)
        assert sql == "SELECT id, data FROM tasks WHERE id > :after ORDER BY id LIMIT :limit"
        assert params == {"limit": 2, "after": "t0"}
        assert page == [("t1", {"title": "a"}), ("t2", {"due": Timestamp(9, 1)})]

    async def test_get_found_and_missing(self):
        store, _, conn = _pg_store(returned=({"name": "Ada"},), auto_create=False)
        assert await store.get("technicians", "tech-1") == {"name": "Ada"}
        sql, params = _executed(conn)
        assert sql == "SELECT data FROM technicians WHERE id = :id"
        assert params == {"id": "tech-1"}

        store, _, _ = _pg_store(returned=None, auto_create=False)
        assert await store.get("technicians", "tech-9") is None

    async def test_set_upserts_in_transaction(self):
        store, engine, conn = _pg_store(auto_create=False)

        await store.set("groups", "g1", {"name": "Network", "at": Timestamp(3, 4)})

        sql, params = _executed(conn)
        assert sql.startswith("INSERT INTO groups (id, data) VALUES (:id, CAST(:data AS jsonb))")
        assert sql.endswith("ON CONFLICT (id) DO UPDATE SET data = EXCLUDED.data")
        assert params == {
            "id": "g1",
            "data": '{"name": "Network", "at": {"__type": "timestamp", "seconds": 3, "nanoseconds": 4}}',
        }
        engine.begin.assert_called_once()

    async def test_update_merges_jsonb(self):
        store, _, conn = _pg_store(returned=("g1",), auto_create=False)

        await store.update("groups", "g1", {"name": "Renamed"})

        sql, params = _executed(conn)
        assert sql == (
            "UPDATE groups SET data = data || CAST(:patch AS jsonb) WHERE id = :id RETURNING id"
        )
        assert params == {"id": "g1", "patch": '{"name": "Renamed"}'}

    async def test_update_missing_row_raises(self):
        store, _, _ = _pg_store(returned=None, auto_create=False)

        with pytest.raises(ValueError, match="No document to update: groups/g1"):
            await store.update("groups", "g1", {"name": "Renamed"})

    async def test_table_created_once_on_first_use(self):
        store, _, conn = _pg_store(returned=None, table_prefix="tm_")

        await store.get("tasks", "t1")
        await store.get("tasks", "t2")

        statements = [_executed(conn, i)[0] for i in range(conn.execute.await_count)]
        assert len(statements) == 3
        assert statements[0].startswith("CREATE TABLE IF NOT EXISTS tm_tasks (")
        assert "id TEXT PRIMARY KEY" in statements[0]
        assert "data JSONB NOT NULL" in statements[0]
        assert statements[1] == statements[2] == "SELECT data FROM tm_tasks WHERE id = :id"

    async def test_no_table_creation_when_disabled(self):
        store, _, conn = _pg_store(auto_create=False)

        await store.list_page("groups", 1)

        assert conn.execute.await_count == 1
        assert not _executed(conn)[0].startswith("CREATE")


# ------------------------------------------------------------------
# Supabase
# ------------------------------------------------------------------


class FakeQuery:
    """Fluent PostgREST query builder stand-in that records its calls."""

    def __init__(self, rows: list[dict]) -> None:
        self.rows = rows
        self.calls: list[tuple] = []

    def __getattr__(self, name):
        def _method(*args, **kwargs):
            self.calls.append((name, *args))
            return self

        return _method

    async def execute(self):
        return SimpleNamespace(data=self.rows)


class TestAsyncSupabaseStore:
    """Query construction against a fake client."""

    @pytest.fixture
    def make_store(self):
        pytest.importorskip("supabase")
        from taskvault.adapters.supabase import AsyncSupabaseStore

        def _make(rows: list[dict]):
            query = FakeQuery(rows)
            store = AsyncSupabaseStore(url="https://abc.supabase.co", key="k", table_prefix="tm_")
            store._client = MagicMock()
            store._client.table.return_value = query
            store._client.aclose = AsyncMock()
            return store, query

        return _make

    async def test_list_page_keyset(self, make_store):
        rows = [{"id": "t2", "data": {"due": {"__type": "timestamp", "seconds": 1, "nanoseconds": 0}}}]
        store, query = make_store(rows)

        page = await store.list_page("tasks", 10, start_after="t1")

        store._client.table.assert_called_with("tm_tasks")
        assert ("gt", "id", "t1") in query.calls
        assert ("order", "id") in query.calls
        assert ("limit", 10) in query.calls
        assert page == [("t2", {"due": Timestamp(1, 0)})]

    async def test_get_missing(self, make_store):
        store, _ = make_store([])
        assert await store.get("tasks", "nope") is None

    async def test_update_missing_raises(self, make_store):
        store, _ = make_store([])
        with pytest.raises(ValueError, match="No document to update"):
            await store.update("tasks", "nope", {"title": "x"})

    async def test_set_upserts_normalized(self, make_store):
        store, query = make_store([])
        await store.set("groups", "g1", {"at": Timestamp(3, 4)})
        assert (
            "upsert",
            {"id": "g1", "data": {"at": {"__type": "timestamp", "seconds": 3, "nanoseconds": 4}}},
        ) in query.calls

    async def test_close(self, make_store):
        store, _ = make_store([])
        client = store._client
        await store.close()
        client.aclose.assert_awaited_once()
        assert store._client is None


# ------------------------------------------------------------------
# Firestore
# ------------------------------------------------------------------


class TestFirestoreConversion:
    """DatetimeWithNanoseconds <-> Timestamp at the Firestore boundary."""

    @pytest.fixture(autouse=True)
    def _firestore(self):
        pytest.importorskip("google.cloud.firestore")

    def test_round_trip_keeps_nanoseconds(self):
        from taskvault.adapters.firestore import from_firestore, to_firestore

        value = {"at": Timestamp(1700000000, 123456789), "tags": [Timestamp(1, 0)]}
        assert from_firestore(to_firestore(value)) == value

    def test_plain_values_untouched(self):
        from taskvault.adapters.firestore import from_firestore, to_firestore

        value = {"title": "x", "order": 2, "meta": {"k": None}}
        assert to_firestore(value) == value
        assert from_firestore(value) == value

    async def test_get_converts_snapshot(self):
        from taskvault.adapters.firestore import AsyncFirestoreStore, to_firestore

        snapshot = MagicMock(exists=True)
        snapshot.to_dict.return_value = {"at": to_firestore(Timestamp(7, 8))}
        client = MagicMock()
        client.collection.return_value.document.return_value.get = AsyncMock(
            return_value=snapshot
        )

        store = AsyncFirestoreStore(client=client)

        assert await store.get("tasks", "t1") == {"at": Timestamp(7, 8)}
        client.collection.assert_called_with("tasks")

    async def test_get_missing(self):
        from taskvault.adapters.firestore import AsyncFirestoreStore

        client = MagicMock()
        client.collection.return_value.document.return_value.get = AsyncMock(
            return_value=MagicMock(exists=False)
        )

        assert await AsyncFirestoreStore(client=client).get("tasks", "t1") is None

    async def test_close_handles_sync_close(self):
        from taskvault.adapters.firestore import AsyncFirestoreStore

        client = MagicMock()
        client.close.return_value = None

        await AsyncFirestoreStore(client=client).close()

        client.close.assert_called_once()
