from typing import Any, Dict, Optional, Protocol

from src.coverage.domain.store_records import ListPage, StoredEntry


class SampleStore(Protocol):
    """
    Contract for the live sample store.
    Keys are opaque sample ids; metadata is {time, path}.
    """
    def list(self, cursor: Optional[str] = None, limit: int = 1000) -> ListPage:
        """Return one page of keys with metadata, resuming after `cursor`."""
        ...

    def get_with_metadata(self, key: str) -> Optional[StoredEntry]:
        ...

    def put(self, key: str, value: str, metadata: Dict[str, Any]) -> None:
        ...

    def delete(self, key: str) -> None:
        ...
