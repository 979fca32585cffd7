"""PostgreSQL-backed local snapshot cache."""
import psycopg2
from psycopg2 import pool
from typing import Optional, Any
import json
import logging

logger = logging.getLogger(__name__)


class Database:
    """PostgreSQL snapshot store with connection pooling.

    Holds one JSONB payload per key, used as the local fallback cache when
    the journal runs next to a database instead of a writable home directory.
    """

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 4):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        self.connection_pool = psycopg2.pool.SimpleConnectionPool(
            min_conn,
            max_conn,
            connection_string
        )

        if self.connection_pool:
            logger.info("Database connection pool created successfully")
        else:
            raise Exception("Failed to create connection pool")

    def init_schema(self):
        """Create the snapshot table if it doesn't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS journal_snapshots (
                        snapshot_key VARCHAR(255) PRIMARY KEY,
                        payload JSONB NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                conn.commit()
                logger.info("Database schema initialized successfully")
        finally:
            self.connection_pool.putconn(conn)

    def read(self, key: str) -> Optional[Any]:
        """
        Get the snapshot stored under key.

        Args:
            key: Snapshot key

        Returns:
            Decoded payload or None
        """
        try:
            conn = self.connection_pool.getconn()
        except psycopg2.Error as e:
            logger.error(f"Failed to get connection: {e}")
            return None
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT payload
                    FROM journal_snapshots
                    WHERE snapshot_key = %s
                """, (key,))

                row = cur.fetchone()
                if row:
                    logger.info(f"Snapshot hit: {key}")
                    return row[0]  # JSONB is automatically deserialized

                logger.info(f"Snapshot miss: {key}")
                return None
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to read snapshot: {e}")
            return None
        finally:
            self.connection_pool.putconn(conn)

    def write(self, key: str, payload: Any) -> bool:
        """
        Store a snapshot, replacing any previous one.

        Args:
            key: Snapshot key
            payload: JSON-serializable data

        Returns:
            True if successful
        """
        try:
            conn = self.connection_pool.getconn()
        except psycopg2.Error as e:
            logger.error(f"Failed to get connection: {e}")
            return False
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO journal_snapshots (snapshot_key, payload)
                    VALUES (%s, %s)
                    ON CONFLICT (snapshot_key) DO UPDATE SET
                        payload = EXCLUDED.payload,
                        updated_at = CURRENT_TIMESTAMP
                """, (key, json.dumps(payload)))

                conn.commit()
                logger.info(f"Stored snapshot: {key}")
                return True
        except (psycopg2.Error, TypeError, ValueError) as e:
            conn.rollback()
            logger.error(f"Failed to store snapshot: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
