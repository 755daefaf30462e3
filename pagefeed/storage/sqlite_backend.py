"""SQLite implementation of the key-value backend

One table, ``kv_entries(key TEXT PRIMARY KEY, value TEXT)``. Key tuples are
joined with a unit separator (0x1F) so a prefix scan is a plain range query
on the primary key and comes back in key order. Values are JSON text.

Connections use WAL mode and a lock-retry decorator with exponential backoff,
the same way the rest of the backend talks to SQLite. Every sqlite3 error is
re-raised as StorageError so callers only deal with one failure type.
"""

from __future__ import annotations

import json
import random
import sqlite3
import time
from collections.abc import Callable, Iterator
from functools import wraps
from pathlib import Path
from threading import RLock
from typing import Any, TypeVar

from pagefeed.config import (
    DB_CONNECT_TIMEOUT,
    DB_RETRY_BASE_DELAY,
    DB_RETRY_JITTER,
    DB_RETRY_MAX,
    DB_RETRY_MAX_DELAY,
)
from pagefeed.observability.logging import get_logger
from pagefeed.observability.telemetry import counter
from pagefeed.storage.backend import Key, StorageError, Value
from pagefeed.utils.validators import KEY_SEPARATOR

F = TypeVar("F", bound=Callable[..., Any])

logger = get_logger(__name__)

# Smallest character greater than the separator; upper bound for prefix scans
_SCAN_UPPER = chr(ord(KEY_SEPARATOR) + 1)


def retry_on_db_lock(
    max_retries: int = DB_RETRY_MAX,
    base_delay: float = DB_RETRY_BASE_DELAY,
    max_delay: float = DB_RETRY_MAX_DELAY,
) -> Callable[[F], F]:
    """
    Retry on SQLITE_BUSY / "database is locked", then give up with StorageError.

    Any other sqlite3 error is converted to StorageError immediately.

    Side Effects:
        - Sleeps between retries (exponential backoff with jitter)
        - Logs a warning per retry, an error when retries are exhausted
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except sqlite3.OperationalError as e:
                    message = str(e).lower()
                    if "locked" not in message and "busy" not in message:
                        counter("storage.errors")
                        raise StorageError(f"SQLite operation failed: {e}") from e

                    if attempt >= max_retries:
                        logger.error(
                            "Database lock retry exhausted after %d attempts: %s",
                            max_retries,
                            e,
                        )
                        counter("storage.errors")
                        raise StorageError(f"Database locked: {e}") from e

                    delay = min(base_delay * (2**attempt), max_delay)
                    sleep_time = delay + random.uniform(0, delay * DB_RETRY_JITTER)
                    logger.warning(
                        "Database locked (attempt %d/%d), retrying in %.2fs: %s",
                        attempt + 1,
                        max_retries,
                        sleep_time,
                        e,
                    )
                    time.sleep(sleep_time)

                except sqlite3.Error as e:
                    counter("storage.errors")
                    raise StorageError(f"SQLite operation failed: {e}") from e

            raise StorageError("Database retry loop exited unexpectedly")

        return wrapper  # type: ignore[return-value]

    return decorator


def encode_key(key: Key) -> str:
    return KEY_SEPARATOR.join(key)


def decode_key(raw: str) -> Key:
    return tuple(raw.split(KEY_SEPARATOR))


class SqliteBackend:
    """
    KeyValueBackend over a single SQLite file (or ``":memory:"``).

    A single connection is shared across threads and serialized with a lock;
    request handlers are short and the store does one key at a time.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        self._lock = RLock()
        self._conn = self._create_connection()
        self._init_schema()

    @retry_on_db_lock()
    def _create_connection(self) -> sqlite3.Connection:
        """
        Open the database with WAL journaling and an integrity check.

        Raises:
            StorageError: If the file is corrupt or can't be opened
        """
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            self.db_path,
            timeout=DB_CONNECT_TIMEOUT,
            check_same_thread=False,
        )

        result = conn.execute("PRAGMA quick_check(1)").fetchone()
        if result[0] != "ok":
            conn.close()
            logger.critical("Database corruption detected: %s", result[0])
            counter("storage.corruption_detected")
            raise StorageError(f"Database corruption detected: {result[0]}")

        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    @retry_on_db_lock()
    def _init_schema(self) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    @staticmethod
    def _decode_value(key: str, raw: str) -> Value:
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt value at key {decode_key(key)!r}") from e
        if not isinstance(value, dict):
            raise StorageError(f"Corrupt value at key {decode_key(key)!r}")
        return value

    @retry_on_db_lock()
    def get(self, key: Key) -> Value | None:
        encoded = encode_key(key)
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM kv_entries WHERE key = ?", (encoded,)
            ).fetchone()
        if row is None:
            return None
        return self._decode_value(encoded, row[0])

    @retry_on_db_lock()
    def set(self, key: Key, value: Value) -> None:
        encoded = encode_key(key)
        payload = json.dumps(value, ensure_ascii=False)
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO kv_entries (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (encoded, payload),
            )

    @retry_on_db_lock()
    def delete(self, key: Key) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM kv_entries WHERE key = ?", (encode_key(key),))

    @retry_on_db_lock()
    def _scan_rows(self, prefix: Key) -> list[tuple[str, str]]:
        with self._lock:
            if not prefix:
                cursor = self._conn.execute("SELECT key, value FROM kv_entries ORDER BY key")
            else:
                base = encode_key(prefix)
                cursor = self._conn.execute(
                    "SELECT key, value FROM kv_entries WHERE key >= ? AND key < ? ORDER BY key",
                    (base + KEY_SEPARATOR, base + _SCAN_UPPER),
                )
            return cursor.fetchall()

    def scan(self, prefix: Key) -> Iterator[tuple[Key, Value]]:
        """Yield entries under `prefix` in key order (snapshot read)."""
        for raw_key, raw_value in self._scan_rows(tuple(prefix)):
            yield decode_key(raw_key), self._decode_value(raw_key, raw_value)

    def close(self) -> None:
        with self._lock:
            self._conn.close()
