"""
cache storage for the cache-aside gateway.
rows are appended on every miss and never updated or deleted;
freshness is decided at lookup time.
"""

import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from .models import CacheEntry


def _to_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class CacheStore(ABC):
    """repository the gateway reads from and appends to."""

    @abstractmethod
    def find_fresh(
        self,
        type: str,
        query: str,
        max_age_seconds: float,
        now: datetime
    ) -> Optional[CacheEntry]:
        """most recent entry for (type, query) younger than max_age_seconds."""
        pass

    @abstractmethod
    def insert(self, entry: CacheEntry) -> None:
        """append an entry. never replaces existing rows."""
        pass

    @abstractmethod
    def entries(self, type: str, query: str) -> List[CacheEntry]:
        """every row for (type, query), oldest first, stale ones included."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    def close(self) -> None:
        """release the backing storage. no-op by default."""
        pass


class MemoryCacheStore(CacheStore):
    """
    process-local store.
    enough for tests and single-process use.
    """

    def __init__(self):
        self._rows: List[CacheEntry] = []
        self._lock = threading.Lock()

    def find_fresh(self, type, query, max_age_seconds, now):
        with self._lock:
            for entry in reversed(self._rows):
                if entry.type == type and entry.query == query:
                    if entry.is_fresh(now, max_age_seconds):
                        return entry
        return None

    def insert(self, entry):
        with self._lock:
            self._rows.append(entry)

    def entries(self, type, query):
        with self._lock:
            return [e for e in self._rows if e.type == type and e.query == query]

    def count(self):
        with self._lock:
            return len(self._rows)


class SqliteCacheStore(CacheStore):
    """
    sqlite-backed store.
    data is kept as json text; timestamps as utc iso-8601 strings,
    which sort correctly as text.
    """

    def __init__(self, db_path: str = "scholar_cache.db"):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)
        # one shared connection so ":memory:" keeps its contents
        self._shared = sqlite3.connect(self.db_path, check_same_thread=False)
        self._shared.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        """create tables if they don't exist."""
        with self._conn() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS cache_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    type TEXT NOT NULL,
                    query TEXT NOT NULL,
                    data TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                );

                -- lookup index; not unique, concurrent misses may add duplicates
                CREATE INDEX IF NOT EXISTS idx_cache_type_query
                    ON cache_entries(type, query, timestamp);
            """)

    @contextmanager
    def _conn(self):
        """context manager for db connection."""
        with self._lock:
            try:
                yield self._shared
                self._shared.commit()
            except Exception:
                self._shared.rollback()
                raise

    def close(self):
        self._shared.close()

    def find_fresh(self, type, query, max_age_seconds, now):
        cutoff = _to_utc(now) - timedelta(seconds=max_age_seconds)
        with self._conn() as conn:
            row = conn.execute("""
                SELECT type, query, data, timestamp FROM cache_entries
                WHERE type = ? AND query = ? AND timestamp > ?
                ORDER BY timestamp DESC, id DESC
                LIMIT 1
            """, (type, query, cutoff.isoformat(timespec="microseconds"))).fetchone()

        if not row:
            return None
        return self._row_to_entry(row)

    def insert(self, entry):
        with self._conn() as conn:
            conn.execute(
                "INSERT INTO cache_entries (type, query, data, timestamp) VALUES (?, ?, ?, ?)",
                (
                    entry.type,
                    entry.query,
                    json.dumps(entry.data),
                    _to_utc(entry.timestamp).isoformat(timespec="microseconds")
                )
            )

    def entries(self, type, query):
        with self._conn() as conn:
            rows = conn.execute("""
                SELECT type, query, data, timestamp FROM cache_entries
                WHERE type = ? AND query = ?
                ORDER BY id
            """, (type, query)).fetchall()
        return [self._row_to_entry(r) for r in rows]

    def count(self):
        with self._conn() as conn:
            return conn.execute("SELECT COUNT(*) FROM cache_entries").fetchone()[0]

    def _row_to_entry(self, row: sqlite3.Row) -> CacheEntry:
        return CacheEntry(
            type=row["type"],
            query=row["query"],
            data=json.loads(row["data"]),
            timestamp=datetime.fromisoformat(row["timestamp"])
        )
