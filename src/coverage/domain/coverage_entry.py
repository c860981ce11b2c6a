from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from src.coverage.domain.sample import Number, coerce_time
from src.coverage.domain.uber_sample import UberSample


@dataclass(frozen=True)
class CoverageMetadata:
    """
    Stats stored beside a coverage entry's history.
    `updated` is the consolidation watermark. `hit_repeaters` only ever grows.
    """
    heard: int = 0
    lost: int = 0
    last_heard: Number = 0
    updated: Number = 0
    hit_repeaters: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "CoverageMetadata":
        return cls()

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]]) -> "CoverageMetadata":
        if not record:
            return cls.empty()
        return cls(
            heard=int(record.get("heard", 0) or 0),
            lost=int(record.get("lost", 0) or 0),
            last_heard=coerce_time(record.get("lastHeard", 0) or 0),
            updated=coerce_time(record.get("updated", 0) or 0),
            hit_repeaters=tuple(record.get("hitRepeaters") or ()),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "heard": self.heard,
            "lost": self.lost,
            "lastHeard": self.last_heard,
            "updated": self.updated,
            "hitRepeaters": list(self.hit_repeaters),
        }


@dataclass(frozen=True)
class CoverageEntry:
    location_hash: str
    history: Tuple[UberSample, ...]
    metadata: CoverageMetadata
