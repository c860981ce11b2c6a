import json
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from src.coverage.domain.store_records import ListedKey, ListPage, StoredEntry
from src.coverage.store.key_value_store import KeyValueStore


class SqlKeyValueStore(KeyValueStore):
    """
    Key-value store backed by a single `kv_entries` table.
    Each store instance owns one namespace. Metadata is stored as JSON text.
    """

    def __init__(self, engine: Engine, namespace: str):
        self.engine = engine
        self.namespace = namespace
        self.ensure_schema()

    @classmethod
    def from_dsn(cls, dsn: str, namespace: str) -> "SqlKeyValueStore":
        engine = create_engine(dsn, pool_pre_ping=True, future=True)
        return cls(engine, namespace)

    def ensure_schema(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                text(
                    """
                    CREATE TABLE IF NOT EXISTS kv_entries (
                        namespace TEXT NOT NULL,
                        key TEXT NOT NULL,
                        value TEXT NOT NULL,
                        metadata TEXT NOT NULL,
                        PRIMARY KEY (namespace, key)
                    )
                    """
                )
            )

    def list(self, cursor: Optional[str] = None, limit: int = 1000) -> ListPage:
        if limit <= 0:
            raise ValueError("limit must be positive")
        params: Dict[str, Any] = {"namespace": self.namespace, "limit": limit + 1}
        after_cursor = ""
        if cursor is not None:
            after_cursor = "AND key > :cursor"
            params["cursor"] = cursor
        with self.engine.begin() as conn:
            # One extra row tells whether another page exists.
            rows = conn.execute(
                text(
                    f"""
                    SELECT key, metadata
                    FROM kv_entries
                    WHERE namespace=:namespace {after_cursor}
                    ORDER BY key ASC
                    LIMIT :limit
                    """
                ),
                params,
            ).fetchall()
        page = rows[:limit]
        keys = [ListedKey(name=row.key, metadata=json.loads(row.metadata)) for row in page]
        next_cursor = page[-1].key if len(rows) > limit else None
        return ListPage(keys=keys, cursor=next_cursor)

    def get_with_metadata(self, key: str) -> Optional[StoredEntry]:
        with self.engine.begin() as conn:
            row = conn.execute(
                text(
                    """
                    SELECT value, metadata
                    FROM kv_entries
                    WHERE namespace=:namespace AND key=:key
                    """
                ),
                {"namespace": self.namespace, "key": key},
            ).first()
        if not row:
            return None
        return StoredEntry(value=row.value, metadata=json.loads(row.metadata))

    def put(self, key: str, value: str, metadata: Dict[str, Any]) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                text(
                    """
                    INSERT INTO kv_entries (namespace, key, value, metadata)
                    VALUES (:namespace, :key, :value, :metadata)
                    ON CONFLICT (namespace, key)
                    DO UPDATE SET
                      value=EXCLUDED.value,
                      metadata=EXCLUDED.metadata
                    """
                ),
                {
                    "namespace": self.namespace,
                    "key": key,
                    "value": value,
                    "metadata": json.dumps(metadata or {}),
                },
            )

    def delete(self, key: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                text("DELETE FROM kv_entries WHERE namespace=:namespace AND key=:key"),
                {"namespace": self.namespace, "key": key},
            )
