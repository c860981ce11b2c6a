from dataclasses import dataclass
from typing import Any, Dict, Tuple

from src.coverage.domain.sample import Number, SampleDescriptor


@dataclass(frozen=True)
class ArchiveTombstone:
    """
    Zero-value marker left in the archive store for a consolidated sample.
    """
    key: str
    time: Number
    path: Tuple[str, ...]

    VALUE = ""

    @classmethod
    def for_sample(cls, sample: SampleDescriptor) -> "ArchiveTombstone":
        return cls(key=sample.key, time=sample.time, path=sample.path)

    def to_metadata(self) -> Dict[str, Any]:
        return {"time": self.time, "path": list(self.path)}
