from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ListedKey:
    name: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ListPage:
    """
    One page of a key listing.
    `cursor` is None once the listing is exhausted.
    """
    keys: List[ListedKey]
    cursor: Optional[str] = None


@dataclass(frozen=True)
class StoredEntry:
    value: str
    metadata: Dict[str, Any] = field(default_factory=dict)
