import asyncio
import uuid
from contextlib import asynccontextmanager

from storage import db
from storage.postgres_store import PostgresTaskStore

WS = "default"


def run(coro):
    return asyncio.run(coro)


class FakeConnection:
    """Records every statement; answers from queued results."""

    def __init__(self, fetch_results=(), fetchval_result=None, execute_status="UPDATE 0"):
        self.fetch_results = list(fetch_results)
        self.fetchval_result = fetchval_result
        self.execute_status = execute_status
        self.calls = []

    async def fetch(self, query, *args):
        self.calls.append(("fetch", query, args))
        return self.fetch_results.pop(0) if self.fetch_results else []

    async def fetchrow(self, query, *args):
        self.calls.append(("fetchrow", query, args))
        rows = await self.fetch(query, *args)
        return rows[0] if rows else None

    async def fetchval(self, query, *args):
        self.calls.append(("fetchval", query, args))
        return self.fetchval_result

    async def execute(self, query, *args):
        self.calls.append(("execute", query, args))
        return self.execute_status


def _install(monkeypatch, conn):
    @asynccontextmanager
    async def fake_transaction():
        yield conn

    monkeypatch.setattr(db, "transaction", fake_transaction)
    monkeypatch.setattr(db, "fetch", conn.fetch)


def test_assign_tasks_locks_backlog_rows_then_numbers_them(monkeypatch):
    a, b = uuid.uuid4(), uuid.uuid4()
    dump_id = uuid.uuid4()
    conn = FakeConnection(fetch_results=[[{"id": a}, {"id": b}], [{"id": a}, {"id": b}]])
    _install(monkeypatch, conn)

    moved = run(PostgresTaskStore().assign_tasks(WS, [str(b), str(a), "not-a-uuid"], str(dump_id), 3))

    assert moved == [str(a), str(b)]
    (_, lock_sql, lock_args), (_, update_sql, update_args) = conn.calls
    assert "FOR UPDATE" in lock_sql
    assert "brain_dump_id IS NULL" in lock_sql
    assert lock_args == ([b, a], WS)
    assert "WITH ORDINALITY" in update_sql
    # locked order (creation order) decides the positions, starting at 3
    assert update_args == ([a, b], dump_id, 3)


def test_reorder_writes_nothing_when_a_task_is_not_owned(monkeypatch):
    a, b = uuid.uuid4(), uuid.uuid4()
    conn = FakeConnection(fetchval_result=1)
    _install(monkeypatch, conn)

    updated = run(PostgresTaskStore().reorder(WS, [str(a), str(b)], str(uuid.uuid4())))

    assert updated == 0
    assert [c[0] for c in conn.calls] == ["fetchval"]


def test_reorder_updates_positions_in_given_order(monkeypatch):
    a, b, dump_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    conn = FakeConnection(fetchval_result=2, execute_status="UPDATE 2")
    _install(monkeypatch, conn)

    updated = run(PostgresTaskStore().reorder(WS, [str(b), str(a)], str(dump_id)))

    assert updated == 2
    (_, _, count_args), (_, update_sql, update_args) = conn.calls
    assert count_args == ([b, a], WS, dump_id)
    assert "o.ord - 1" in update_sql
    assert update_args == ([b, a],)


def test_reorder_rejects_malformed_ids_without_querying(monkeypatch):
    conn = FakeConnection()
    _install(monkeypatch, conn)

    assert run(PostgresTaskStore().reorder(WS, ["bogus"], str(uuid.uuid4()))) == 0
    assert conn.calls == []


def test_get_tasks_backlog_only_filters_dump_members(monkeypatch):
    conn = FakeConnection()
    _install(monkeypatch, conn)
    store = PostgresTaskStore()

    run(store.get_tasks(WS, [str(uuid.uuid4())], backlog_only=True))
    run(store.get_tasks(WS, [str(uuid.uuid4())]))

    assert "brain_dump_id IS NULL" in conn.calls[0][1]
    assert "brain_dump_id IS NULL" not in conn.calls[1][1]


def test_affected_rows_parses_command_status():
    assert db.affected_rows("UPDATE 3") == 3
    assert db.affected_rows("DELETE 0") == 0
    assert db.affected_rows("") == 0
