from typing import Any, Dict, Optional, Protocol

from src.coverage.domain.store_records import StoredEntry


class CoverageStore(Protocol):
    """
    Contract for the coverage store.
    `put` replaces value and metadata together, never one without the other.
    """
    def get_with_metadata(self, key: str) -> Optional[StoredEntry]:
        ...

    def put(self, key: str, value: str, metadata: Dict[str, Any]) -> None:
        ...
