from dataclasses import dataclass, field
from typing import Dict, List

from src.coverage.domain.sample import SampleDescriptor


@dataclass
class SampleIndex:
    """
    Eligible samples grouped by location hash.
    Bucket order is unspecified.
    """
    groups: Dict[str, List[SampleDescriptor]] = field(default_factory=dict)
    eligible_count: int = 0

    def add(self, location_hash: str, sample: SampleDescriptor) -> None:
        self.groups.setdefault(location_hash, []).append(sample)
        self.eligible_count += 1

    def samples_for(self, location_hash: str) -> List[SampleDescriptor]:
        return list(self.groups.get(location_hash, []))

    @property
    def hash_count(self) -> int:
        return len(self.groups)
