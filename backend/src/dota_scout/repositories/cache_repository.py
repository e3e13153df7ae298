"""Versioned ancillary caches with per-family time-to-live."""

import json
import logging
import time
from pathlib import Path
from typing import Any, Literal, Optional

import duckdb

logger = logging.getLogger(__name__)

CacheFamily = Literal["reference", "team", "player", "match"]

SECONDS_PER_HOUR = 60 * 60


class CacheRepository:
    """Cache entries tagged with a version and an optional expiry.

    An entry written under a different version, or older than its TTL, is
    treated as absent and deleted on read. A TTL of None never expires.
    """

    def __init__(
        self,
        database_path: str | Path,
        version: str,
        ttl_hours: Optional[dict[CacheFamily, Optional[float]]] = None,
    ):
        self._db_path = Path(database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self.version = version
        self.ttl_hours: dict[CacheFamily, Optional[float]] = {
            "reference": 24,
            "team": 24,
            "player": 24,
            "match": None,
        }
        if ttl_hours:
            self.ttl_hours.update(ttl_hours)

        with duckdb.connect(str(self._db_path)) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_entries (
                    key VARCHAR PRIMARY KEY,
                    version VARCHAR NOT NULL,
                    family VARCHAR NOT NULL,
                    payload VARCHAR NOT NULL,
                    stored_at DOUBLE NOT NULL,
                    ttl_seconds DOUBLE
                )
                """
            )

    def get(self, key: str, now: Optional[float] = None) -> Any:
        now = time.time() if now is None else now
        with duckdb.connect(str(self._db_path)) as conn:
            row = conn.execute(
                "SELECT version, payload, stored_at, ttl_seconds FROM cache_entries WHERE key = ?",
                [key],
            ).fetchone()
        if row is None:
            return None

        version, payload, stored_at, ttl_seconds = row
        if version != self.version:
            logger.debug(f"Cache entry {key} has version {version}, expected {self.version}")
            self.invalidate(key)
            return None
        if ttl_seconds is not None and now - stored_at > ttl_seconds:
            logger.debug(f"Cache entry {key} expired")
            self.invalidate(key)
            return None

        try:
            return json.loads(payload)
        except ValueError as e:
            logger.error(f"Cache entry {key} is not valid JSON: {e}")
            self.invalidate(key)
            return None

    def set(self, key: str, value: Any, family: CacheFamily, now: Optional[float] = None) -> None:
        ttl_hours = self.ttl_hours.get(family)
        ttl_seconds = ttl_hours * SECONDS_PER_HOUR if ttl_hours is not None else None
        with duckdb.connect(str(self._db_path)) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO cache_entries VALUES (?, ?, ?, ?, ?, ?)",
                [
                    key,
                    self.version,
                    family,
                    json.dumps(value),
                    time.time() if now is None else now,
                    ttl_seconds,
                ],
            )

    def invalidate(self, key: str) -> None:
        with duckdb.connect(str(self._db_path)) as conn:
            conn.execute("DELETE FROM cache_entries WHERE key = ?", [key])

    def clear(self, family: Optional[CacheFamily] = None) -> None:
        with duckdb.connect(str(self._db_path)) as conn:
            if family is None:
                conn.execute("DELETE FROM cache_entries")
            else:
                conn.execute("DELETE FROM cache_entries WHERE family = ?", [family])


def reference_cache_key(name: str) -> str:
    return f"reference:{name}"


def league_cache_key(league_id: int) -> str:
    return f"league:{league_id}"
