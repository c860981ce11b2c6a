import bisect
import copy
from abc import ABC, abstractmethod
from threading import Lock
from typing import Any, Dict, List, Optional

from src.coverage.domain.store_records import ListedKey, ListPage, StoredEntry


class KeyValueStore(ABC):
    """
    Key-value store with per-key metadata and cursor pagination.
    Satisfies the sample, coverage and archive store contracts.
    """

    @abstractmethod
    def list(self, cursor: Optional[str] = None, limit: int = 1000) -> ListPage:
        pass

    @abstractmethod
    def get_with_metadata(self, key: str) -> Optional[StoredEntry]:
        pass

    @abstractmethod
    def put(self, key: str, value: str, metadata: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self):
        self._entries: Dict[str, StoredEntry] = {}
        self._keys: List[str] = []
        self._lock = Lock()

    def list(self, cursor: Optional[str] = None, limit: int = 1000) -> ListPage:
        if limit <= 0:
            raise ValueError("limit must be positive")
        with self._lock:
            start = bisect.bisect_right(self._keys, cursor) if cursor is not None else 0
            names = self._keys[start:start + limit]
            keys = [
                ListedKey(name=name, metadata=copy.deepcopy(self._entries[name].metadata))
                for name in names
            ]
            has_more = start + limit < len(self._keys)
        return ListPage(keys=keys, cursor=names[-1] if has_more else None)

    def get_with_metadata(self, key: str) -> Optional[StoredEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return StoredEntry(value=entry.value, metadata=copy.deepcopy(entry.metadata))

    def put(self, key: str, value: str, metadata: Dict[str, Any]) -> None:
        entry = StoredEntry(value=value, metadata=copy.deepcopy(metadata or {}))
        with self._lock:
            if key not in self._entries:
                bisect.insort(self._keys, key)
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            if self._entries.pop(key, None) is None:
                return
            idx = bisect.bisect_left(self._keys, key)
            del self._keys[idx]

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)
