"""PostgreSQL storage implementation."""

import logging
import os
import psycopg2
from psycopg2.extras import Json

from core.interfaces import Storage
from server.file_storage import CONFIG_FILE, read_config_file

logger = logging.getLogger(__name__)


class PostgresStorage(Storage):
    """Flat key-value store in a single PostgreSQL table with JSONB values."""

    def __init__(self, config_file: str = None, db_url: str = None, namespace: str = 'default'):
        self.config_file = config_file or CONFIG_FILE
        self.db_url = db_url or os.environ.get(
            'DATABASE_URL',
            'postgresql://localhost:5432/lingoghost'
        )
        self.namespace = namespace
        self._conn = None
        self._initialized = False

    @property
    def conn(self):
        """Lazy connection initialization."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            if not self._initialized:
                self._init_db()
                self._initialized = True
        return self._conn

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    namespace VARCHAR(255) NOT NULL,
                    key VARCHAR(255) NOT NULL,
                    value JSONB NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (namespace, key)
                )
            """)
        self._conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def load_config(self) -> dict:
        return read_config_file(self.config_file)

    def get(self, key: str, default=None):
        with self.conn.cursor() as cur:
            cur.execute(
                "SELECT value FROM kv_store WHERE namespace = %s AND key = %s",
                (self.namespace, key)
            )
            row = cur.fetchone()
        if row is None:
            return default
        # psycopg2 decodes JSONB into Python values
        return row[0]

    def set(self, key: str, value) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO kv_store (namespace, key, value, updated_at)
                    VALUES (%s, %s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (namespace, key)
                    DO UPDATE SET value = EXCLUDED.value, updated_at = CURRENT_TIMESTAMP
                """, (self.namespace, key, Json(value)))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving '{key}': {e}")
            self.conn.rollback()
            raise
