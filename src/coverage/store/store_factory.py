from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from src.config.settings import Settings
from src.coverage.store.key_value_store import InMemoryKeyValueStore, KeyValueStore
from src.coverage.store.sql_key_value_store import SqlKeyValueStore


@dataclass(frozen=True)
class ConsolidationStores:
    samples: KeyValueStore
    coverage: KeyValueStore
    archive: KeyValueStore

    @classmethod
    def in_memory(cls) -> "ConsolidationStores":
        return cls(
            samples=InMemoryKeyValueStore(),
            coverage=InMemoryKeyValueStore(),
            archive=InMemoryKeyValueStore(),
        )


def build_stores(settings: Settings, engine: Engine | None = None) -> ConsolidationStores:
    """
    Wires the three namespaced SQL stores onto one shared engine.
    """
    engine = engine or create_engine(settings.DATABASE_URL, pool_pre_ping=True, future=True)
    return ConsolidationStores(
        samples=SqlKeyValueStore(engine, settings.SAMPLES_NAMESPACE),
        coverage=SqlKeyValueStore(engine, settings.COVERAGE_NAMESPACE),
        archive=SqlKeyValueStore(engine, settings.ARCHIVE_NAMESPACE),
    )
