from typing import List, Optional, Tuple

from src.core.observability.structured_runtime_logger import StructuredRuntimeLogger
from src.core.time.system_time_source import SystemTimeSource
from src.core.time.time_source import TimeSource
from src.coverage.domain.consolidation_config import ConsolidationConfig
from src.coverage.domain.consolidation_report import (
    ConsolidationReport,
    MergeResult,
    MergeStatus,
)
from src.coverage.domain.sample import SampleDescriptor
from src.coverage.domain.sample_index import SampleIndex
from src.coverage.interfaces.archive_store import ArchiveStore
from src.coverage.interfaces.coverage_store import CoverageStore
from src.coverage.interfaces.sample_store import SampleStore
from src.coverage.services.archive_pipeline import ArchivePipeline
from src.coverage.services.bounded_fanout import fan_out
from src.coverage.services.coverage_merger import CoverageMerger
from src.coverage.services.sample_index_builder import SampleIndexBuilder


class CoverageConsolidationService:
    """
    Runs one consolidation pass: index -> merge -> archive/delete.

    Each hash merge and each sample archive is an independent unit. A failing
    unit is counted and logged; it never stops the others. Samples of a hash
    whose merge failed stay live for the next run. Does NOT schedule itself.
    """

    def __init__(
            self,
            sample_store: SampleStore,
            coverage_store: CoverageStore,
            archive_store: ArchiveStore,
            time_source: Optional[TimeSource] = None,
            config: Optional[ConsolidationConfig] = None,
            structured_logger: Optional[StructuredRuntimeLogger] = None,
    ):
        self.coverage_store = coverage_store
        self.config = config or ConsolidationConfig()
        self.structured_logger = structured_logger or StructuredRuntimeLogger()
        self.index_builder = SampleIndexBuilder(
            sample_store=sample_store,
            time_source=time_source or SystemTimeSource(),
            location_hash_length=self.config.location_hash_length,
            page_size=self.config.list_page_size,
            structured_logger=self.structured_logger,
        )
        self.merger = CoverageMerger(
            max_samples_per_coverage=self.config.max_samples_per_coverage,
            structured_logger=self.structured_logger,
        )
        self.archive_pipeline = ArchivePipeline(
            archive_store=archive_store,
            sample_store=sample_store,
            structured_logger=self.structured_logger,
        )

    def run(self, max_age_days: Optional[float] = None) -> ConsolidationReport:
        if max_age_days is None:
            max_age_days = self.config.default_max_age_days

        # 1. Index eligible samples
        index = self.index_builder.build(max_age_days)

        # 2. Merge every hash group
        merge_results = fan_out(
            self._merge_unit,
            list(index.groups.items()),
            self.config.merge_max_workers,
            name="merge",
        )

        # 3. Archive and delete samples of merged hashes only
        archive_results = fan_out(
            self.archive_pipeline.archive_sample,
            self._archivable_samples(index, merge_results),
            self.config.archive_max_workers,
            name="archive",
        )

        # 4. Reduce
        report = ConsolidationReport.from_results(
            samples_to_update=index.eligible_count,
            coverage_entries_to_update=index.hash_count,
            merge_results=merge_results,
            archive_results=archive_results,
        )
        self.structured_logger.emit(event_type="CONSOLIDATION_COMPLETE", **report.to_response())
        return report

    def _merge_unit(self, group: Tuple[str, List[SampleDescriptor]]) -> MergeResult:
        location_hash, samples = group
        try:
            return self.merger.merge(location_hash, samples, self.coverage_store)
        except Exception as exc:
            self.structured_logger.warn(
                event_type="MERGE_FAILED",
                location_hash=location_hash,
                samples=len(samples),
                error=repr(exc),
            )
            return MergeResult(location_hash=location_hash, status=MergeStatus.FAILED, error=repr(exc))

    @staticmethod
    def _archivable_samples(
            index: SampleIndex,
            merge_results: List[MergeResult],
    ) -> List[SampleDescriptor]:
        samples: List[SampleDescriptor] = []
        for result in merge_results:
            if result.succeeded:
                samples.extend(index.samples_for(result.location_hash))
        return samples
