"""DuckDB-backed durable key/value storage."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import duckdb
import pandas as pd

logger = logging.getLogger(__name__)

TEAMS_KEY = "dota-scout-assistant-teams"
ACTIVE_TEAM_KEY = "dota-scout-assistant-active-team"


class StorageRepository:
    """Key/value records stored as JSON text in a DuckDB file."""

    def __init__(self, database_path: str | Path):
        """Open (and create if needed) the storage database.

        Args:
            database_path: Path to the DuckDB file. Parent directories are
                          created on first use.
        """
        self._db_path = Path(database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with duckdb.connect(str(self._db_path)) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key VARCHAR PRIMARY KEY,
                    value VARCHAR NOT NULL,
                    updated_at TIMESTAMP DEFAULT current_timestamp
                )
                """
            )
        logger.info(f"StorageRepository: Using {self._db_path}")

    @property
    def path(self) -> Path:
        return self._db_path

    def _execute(self, sql: str, params: Optional[list] = None) -> None:
        with duckdb.connect(str(self._db_path)) as conn:
            conn.execute(sql, params or [])

    def _query(self, sql: str, params: Optional[list] = None) -> list[dict]:
        """Execute query and return list of dicts with JSON-friendly values."""
        with duckdb.connect(str(self._db_path)) as conn:
            df = conn.execute(sql, params or []).df()

        for col in df.columns:
            if pd.api.types.is_datetime64_any_dtype(df[col]):
                df[col] = df[col].dt.strftime("%Y-%m-%dT%H:%M:%S")

        return df.to_dict(orient="records")

    def get_item(self, key: str) -> Any:
        """Return the decoded value for ``key``, or None if absent or unreadable."""
        rows = self._query("SELECT value FROM kv_store WHERE key = ?", [key])
        if not rows:
            return None
        try:
            return json.loads(rows[0]["value"])
        except (TypeError, ValueError) as e:
            logger.error(f"Stored value for {key} is not valid JSON: {e}")
            return None

    def set_item(self, key: str, value: Any) -> None:
        self._execute(
            "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, current_timestamp)",
            [key, json.dumps(value)],
        )

    def set_raw(self, key: str, text: str) -> None:
        """Store text without encoding it (used to inject legacy records)."""
        self._execute(
            "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, current_timestamp)",
            [key, text],
        )

    def remove_item(self, key: str) -> None:
        self._execute("DELETE FROM kv_store WHERE key = ?", [key])

    def keys(self) -> list[str]:
        return [row["key"] for row in self._query("SELECT key FROM kv_store ORDER BY key")]

    def last_updated(self, key: str) -> Optional[str]:
        rows = self._query("SELECT updated_at FROM kv_store WHERE key = ?", [key])
        return rows[0]["updated_at"] if rows else None
