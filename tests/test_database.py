"""Tests for the PostgreSQL snapshot store, with a mocked connection pool."""
import json
from unittest.mock import MagicMock, patch

import psycopg2
import psycopg2.pool
import pytest

from bookvault.database import PostgresSnapshotStore
from bookvault.errors import PersistenceError
from bookvault.sync import SyncController


@pytest.fixture
def pg():
    """Yield (store, connection, cursor) backed by a MagicMock pool."""
    with patch("psycopg2.pool.SimpleConnectionPool") as pool_cls:
        conn = MagicMock()
        cursor = conn.cursor.return_value.__enter__.return_value
        pool_cls.return_value.getconn.return_value = conn
        store = PostgresSnapshotStore("postgresql://test", slot="test_slot")
        yield store, conn, cursor


def test_read_snapshot_row(pg):
    """Test that a stored JSONB payload is parsed into books."""
    store, _, cursor = pg
    cursor.fetchone.return_value = ([{"_id": "1", "title": "Dune", "author": "Herbert"}],)

    books = store.read_snapshot()

    assert [b.id for b in books] == ["1"]
    args = cursor.execute.call_args[0]
    assert args[1] == ("test_slot",)


def test_read_missing_row(pg):
    """Test that an absent slot reads as None."""
    store, _, cursor = pg
    cursor.fetchone.return_value = None

    assert store.read_snapshot() is None


def test_write_snapshot_upserts(pg, server_books):
    """Test that the slot is upserted and committed."""
    store, conn, cursor = pg

    assert store.write_snapshot(server_books) is True

    slot, payload = cursor.execute.call_args[0][1]
    assert slot == "test_slot"
    assert [item["id"] for item in json.loads(payload)] == ["1", "2", "3"]
    conn.commit.assert_called_once()
    store.connection_pool.putconn.assert_called_with(conn)


def test_write_failure_rolls_back(pg, server_books):
    """Test that a database error is logged and reported as False."""
    store, conn, cursor = pg
    cursor.execute.side_effect = psycopg2.OperationalError("connection lost")

    assert store.write_snapshot(server_books) is False

    conn.rollback.assert_called_once()
    store.connection_pool.putconn.assert_called_with(conn)


def test_read_failure_is_absent(pg):
    """Test that a database error on read yields None."""
    store, _, cursor = pg
    cursor.execute.side_effect = psycopg2.OperationalError("connection lost")

    assert store.read_snapshot() is None


def test_pool_creation_failure():
    """Test that an unreachable database raises PersistenceError."""
    with patch("psycopg2.pool.SimpleConnectionPool", side_effect=psycopg2.OperationalError("refused")):
        with pytest.raises(PersistenceError):
            PostgresSnapshotStore("postgresql://nowhere")


def test_exhausted_pool_is_reported_not_raised(pg, server_books):
    """Test that a pool with no free connection reads None and writes False."""
    store, _, _ = pg
    store.connection_pool.getconn.side_effect = psycopg2.pool.PoolError("connection pool exhausted")

    assert store.read_snapshot() is None
    assert store.write_snapshot(server_books) is False


def test_failed_rollback_is_reported_not_raised(pg, server_books):
    """Test that a rollback on a dead connection still yields False."""
    store, conn, cursor = pg
    cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection")
    conn.rollback.side_effect = psycopg2.InterfaceError("connection already closed")

    assert store.write_snapshot(server_books) is False
    store.connection_pool.putconn.assert_called_with(conn)


def test_init_schema_failure_raises_persistence_error(pg):
    """Test that schema errors surface as PersistenceError."""
    store, conn, cursor = pg
    cursor.execute.side_effect = psycopg2.ProgrammingError("permission denied")

    with pytest.raises(PersistenceError):
        store.init_schema()

    conn.rollback.assert_called_once()


def test_controller_survives_unavailable_database(pg, gateway, server_books):
    """Test that load still succeeds when the snapshot slot cannot be reached."""
    store, _, _ = pg
    store.connection_pool.getconn.side_effect = psycopg2.pool.PoolError("connection pool exhausted")
    controller = SyncController(gateway, store)

    restored = controller.restore()
    result = controller.load()

    assert restored.ok
    assert result.ok
    assert list(controller.books()) == server_books
