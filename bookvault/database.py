"""PostgreSQL-backed snapshot storage."""
import psycopg2
from psycopg2 import pool
from typing import Optional, Any, List
import json
import logging

from bookvault.errors import PersistenceError
from bookvault.store import SnapshotStore

logger = logging.getLogger(__name__)


class PostgresSnapshotStore(SnapshotStore):
    """Snapshot slot stored as a JSONB row, with connection pooling."""

    def __init__(
        self,
        connection_string: str,
        slot: str = "bookvault_books",
        min_conn: int = 1,
        max_conn: int = 5
    ):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            slot: Name of the snapshot row
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        self.slot = slot
        try:
            self.connection_pool = psycopg2.pool.SimpleConnectionPool(
                min_conn,
                max_conn,
                connection_string
            )
        except psycopg2.Error as e:
            raise PersistenceError(f"Failed to create connection pool: {e}") from e

        logger.info("Database connection pool created successfully")

    def _getconn(self):
        try:
            return self.connection_pool.getconn()
        except psycopg2.Error as e:
            raise PersistenceError(f"No database connection available: {e}") from e

    def _putconn(self, conn):
        try:
            self.connection_pool.putconn(conn)
        except psycopg2.Error as e:
            logger.warning(f"Failed to return connection to pool: {e}")

    def _rollback(self, conn):
        try:
            conn.rollback()
        except psycopg2.Error as e:
            logger.warning(f"Rollback failed: {e}")

    def init_schema(self):
        """Create the snapshots table if it doesn't exist."""
        conn = self._getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS snapshots (
                        slot VARCHAR(255) PRIMARY KEY,
                        payload JSONB NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                conn.commit()
                logger.info("Database schema initialized successfully")
        except psycopg2.Error as e:
            self._rollback(conn)
            raise PersistenceError(f"Failed to initialize schema: {e}") from e
        finally:
            self._putconn(conn)

    def _load_raw(self) -> Optional[Any]:
        conn = self._getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT payload FROM snapshots WHERE slot = %s
                """, (self.slot,))

                row = cur.fetchone()
                if row:
                    return row[0]  # JSONB is automatically deserialized
                return None
        except psycopg2.Error as e:
            raise PersistenceError(f"Failed to read slot {self.slot}: {e}") from e
        finally:
            self._putconn(conn)

    def _save_raw(self, payload: List[dict]):
        conn = self._getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO snapshots (slot, payload, updated_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (slot) DO UPDATE SET
                        payload = EXCLUDED.payload,
                        updated_at = CURRENT_TIMESTAMP
                """, (self.slot, json.dumps(payload)))
                conn.commit()
        except psycopg2.Error as e:
            self._rollback(conn)
            raise PersistenceError(f"Failed to write slot {self.slot}: {e}") from e
        finally:
            self._putconn(conn)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            try:
                self.connection_pool.closeall()
            except psycopg2.Error as e:
                logger.warning(f"Failed to close connection pool: {e}")
                return
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
