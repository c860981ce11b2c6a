from dataclasses import dataclass
from typing import Any, Dict, Tuple

from src.coverage.domain.sample import Number


@dataclass(frozen=True)
class UberSample:
    """
    Aggregate of one consolidation batch inside a coverage entry.
    `repeaters` keeps ids in first-seen order with their original case.
    """
    time: Number
    heard: int = 0
    lost: int = 0
    last_heard: Number = 0
    repeaters: Tuple[str, ...] = ()

    def to_record(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "heard": self.heard,
            "lost": self.lost,
            "lastHeard": self.last_heard,
            "repeaters": list(self.repeaters),
        }
