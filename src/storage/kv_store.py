"""
Key-Value Stores

String values with a time-to-live. Expired keys read as absent.
"""

import time
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

import psycopg2
import psycopg2.pool

from src.utils import get_logger

logger = get_logger(__name__)


class KVStore:
    """Interface: get(key) -> value or None, put(key, value, ttl_seconds)"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        raise NotImplementedError

    def purge_expired(self) -> int:
        """Delete expired entries, returns how many were removed"""
        return 0


class MemoryKVStore(KVStore):
    """Process-local store, used for development and tests"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    def get(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        self.purge_expired()
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._data[key] = (value, expires_at)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._data.items()
                   if expires_at is not None and now >= expires_at]
        for key in expired:
            del self._data[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._data)


class PostgresKVStore(KVStore):
    """Store backed by a kv_store table"""

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            expires_at TIMESTAMPTZ
        )
    """

    def __init__(self, db_pool):
        """
        Args:
            db_pool: psycopg2 connection pool (getconn / putconn)
        """
        self.pool = db_pool

    @contextmanager
    def _cursor(self):
        """Cursor on a pooled connection; commits on success, rolls back on error"""
        conn = self.pool.getconn()
        try:
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except psycopg2.Error:
                conn.rollback()
                raise
            finally:
                cursor.close()
        finally:
            self.pool.putconn(conn)

    def ensure_schema(self):
        """Create the table if it does not exist and drop expired rows"""
        with self._cursor() as cursor:
            cursor.execute(self.SCHEMA)
        logger.info("kv_store table ready")
        self.purge_expired()

    def get(self, key: str) -> Optional[str]:
        with self._cursor() as cursor:
            cursor.execute("""
                SELECT value
                FROM kv_store
                WHERE key = %s
                    AND (expires_at IS NULL OR expires_at > NOW())
            """, (key,))
            row = cursor.fetchone()
        return row[0] if row else None

    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds) if ttl_seconds else None

        with self._cursor() as cursor:
            cursor.execute("""
                INSERT INTO kv_store (key, value, expires_at)
                VALUES (%s, %s, %s)
                ON CONFLICT (key)
                DO UPDATE SET
                    value = EXCLUDED.value,
                    expires_at = EXCLUDED.expires_at
            """, (key, value, expires_at))

    def purge_expired(self) -> int:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM kv_store WHERE expires_at <= NOW()")
            removed = cursor.rowcount

        if removed:
            logger.info(f"Purged {removed} expired kv_store rows")
        return removed


def build_kv_store(settings) -> KVStore:
    """Create the store selected by settings.kv_backend"""
    if settings.kv_backend == 'postgres':
        logger.debug("Creating database connection pool...")
        db_pool = psycopg2.pool.ThreadedConnectionPool(
            minconn=1,
            maxconn=5,
            connect_timeout=3,
            **settings.db_config
        )
        store = PostgresKVStore(db_pool)
        store.ensure_schema()
        return store

    logger.info("Using in-memory key-value store")
    return MemoryKVStore()
