"""PostgreSQL storage implementation."""

import json
import logging
import os
import psycopg2
from psycopg2.extras import RealDictCursor

from core.interfaces import Storage
from core.config import CONFIG_FILE

logger = logging.getLogger(__name__)


class PostgresStorage(Storage):
    """PostgreSQL-based storage implementation."""

    def __init__(self, config_file: str = None, db_url: str = None):
        self.config_file = config_file or os.path.expanduser(CONFIG_FILE)
        self.db_url = db_url or os.environ.get(
            'DATABASE_URL',
            'postgresql://localhost:5432/quickmath'
        )
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
                CREATE TABLE IF NOT EXISTS history_entries (
                    id SERIAL PRIMARY KEY,
                    user_id VARCHAR(255) NOT NULL,
                    entry JSONB NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_history_entries_user_id
                ON history_entries(user_id)
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS score_entries (
                    id SERIAL PRIMARY KEY,
                    user_id VARCHAR(255) NOT NULL,
                    entry JSONB NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        self._conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def _load_entries(self, table: str) -> list[dict]:
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(f"SELECT entry FROM {table} ORDER BY id")
                return [row['entry'] for row in cur.fetchall()]
        except psycopg2.Error as e:
            logger.error(f"Error loading {table}: {e}")
            return []

    def _append_entry(self, table: str, entry: dict) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute(
                    f"INSERT INTO {table} (user_id, entry) VALUES (%s, %s)",
                    (entry['user'], json.dumps(entry))
                )
            self.conn.commit()
        except psycopg2.Error as e:
            logger.error(f"Error saving to {table}: {e}")
            self.conn.rollback()
            raise

    def load_config(self) -> dict:
        if not os.path.exists(self.config_file):
            raise FileNotFoundError(
                f"Config file not found at {self.config_file}\n"
                f'Please create it with: {{"gemini_api_key": "YOUR_API_KEY_HERE"}}'
            )
        with open(self.config_file, 'r') as f:
            return json.load(f)

    def load_history(self) -> list[dict]:
        return self._load_entries('history_entries')

    def append_history(self, entry: dict) -> None:
        self._append_entry('history_entries', entry)

    def load_scores(self) -> list[dict]:
        return self._load_entries('score_entries')

    def append_score(self, entry: dict) -> None:
        self._append_entry('score_entries', entry)
