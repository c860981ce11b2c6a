from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from src.coverage.domain.uber_sample import UberSample


class MergeStatus(Enum):
    MERGED = "merged"
    NOTHING_NEW = "nothing_new"
    FAILED = "failed"


@dataclass(frozen=True)
class MergeResult:
    """
    Outcome of merging one location hash.
    NOTHING_NEW is still a success: its samples were consolidated by an earlier run.
    """
    location_hash: str
    status: MergeStatus
    uber_sample: Optional[UberSample] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status != MergeStatus.FAILED


class ArchiveOutcome(Enum):
    ARCHIVED_AND_DELETED = "archived_and_deleted"
    ARCHIVED_DELETE_FAILED = "archived_delete_failed"
    ARCHIVE_FAILED = "archive_failed"


@dataclass(frozen=True)
class SampleArchiveResult:
    key: str
    outcome: ArchiveOutcome
    error: Optional[str] = None

    @property
    def duplicate_risk(self) -> bool:
        # Tombstone written but the live sample survived.
        return self.outcome == ArchiveOutcome.ARCHIVED_DELETE_FAILED


@dataclass(frozen=True)
class ConsolidationReport:
    """
    Aggregate counters for one consolidation run.
    """
    samples_to_update: int = 0
    coverage_entries_to_update: int = 0
    merged_ok: int = 0
    merged_fail: int = 0
    archive_ok: int = 0
    archive_fail: int = 0
    delete_ok: int = 0
    delete_fail: int = 0
    delete_skip: int = 0
    duplicate_risk_keys: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_results(
            cls,
            samples_to_update: int,
            coverage_entries_to_update: int,
            merge_results: Iterable[MergeResult],
            archive_results: Iterable[SampleArchiveResult],
    ) -> "ConsolidationReport":
        merge_results = list(merge_results)
        archive_results = list(archive_results)

        merged_ok = sum(1 for r in merge_results if r.succeeded)
        outcomes = [r.outcome for r in archive_results]
        archived = outcomes.count(ArchiveOutcome.ARCHIVED_AND_DELETED) + \
            outcomes.count(ArchiveOutcome.ARCHIVED_DELETE_FAILED)
        archive_failed = outcomes.count(ArchiveOutcome.ARCHIVE_FAILED)

        return cls(
            samples_to_update=samples_to_update,
            coverage_entries_to_update=coverage_entries_to_update,
            merged_ok=merged_ok,
            merged_fail=len(merge_results) - merged_ok,
            archive_ok=archived,
            archive_fail=archive_failed,
            delete_ok=outcomes.count(ArchiveOutcome.ARCHIVED_AND_DELETED),
            delete_fail=outcomes.count(ArchiveOutcome.ARCHIVED_DELETE_FAILED),
            delete_skip=archive_failed,
            duplicate_risk_keys=tuple(r.key for r in archive_results if r.duplicate_risk),
        )

    def to_response(self) -> Dict[str, int]:
        # Field names, typo included, are consumed by existing clients.
        return {
            "coverage_entites_to_update": self.coverage_entries_to_update,
            "samples_to_update": self.samples_to_update,
            "merged_ok": self.merged_ok,
            "merged_fail": self.merged_fail,
            "archive_ok": self.archive_ok,
            "archive_fail": self.archive_fail,
            "delete_ok": self.delete_ok,
            "delete_fail": self.delete_fail,
            "delete_skip": self.delete_skip,
        }
