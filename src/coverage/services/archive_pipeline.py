import logging
from typing import List, Optional, Sequence

from src.core.observability.structured_runtime_logger import StructuredRuntimeLogger
from src.coverage.domain.archive_tombstone import ArchiveTombstone
from src.coverage.domain.consolidation_report import ArchiveOutcome, SampleArchiveResult
from src.coverage.domain.sample import SampleDescriptor
from src.coverage.interfaces.archive_store import ArchiveStore
from src.coverage.interfaces.sample_store import SampleStore

logger = logging.getLogger(__name__)


class ArchivePipeline:
    """
    Moves consolidated samples out of the live store.
    The tombstone is written first; the live sample is deleted only after.
    Nothing is retried or rolled back.
    """

    def __init__(
            self,
            archive_store: ArchiveStore,
            sample_store: SampleStore,
            structured_logger: Optional[StructuredRuntimeLogger] = None,
    ):
        self.archive_store = archive_store
        self.sample_store = sample_store
        self.structured_logger = structured_logger or StructuredRuntimeLogger()

    def archive_sample(self, sample: SampleDescriptor) -> SampleArchiveResult:
        tombstone = ArchiveTombstone.for_sample(sample)
        try:
            self.archive_store.put(tombstone.key, ArchiveTombstone.VALUE, tombstone.to_metadata())
        except Exception as exc:
            self.structured_logger.warn(
                event_type="ARCHIVE_FAILED", key=sample.key, error=repr(exc)
            )
            return SampleArchiveResult(sample.key, ArchiveOutcome.ARCHIVE_FAILED, error=repr(exc))

        try:
            self.sample_store.delete(sample.key)
        except Exception as exc:
            # Sample now lives in both stores.
            self.structured_logger.warn(
                event_type="DELETE_FAILED", key=sample.key, error=repr(exc), duplicate_risk=True
            )
            return SampleArchiveResult(sample.key, ArchiveOutcome.ARCHIVED_DELETE_FAILED, error=repr(exc))

        return SampleArchiveResult(sample.key, ArchiveOutcome.ARCHIVED_AND_DELETED)

    def archive_and_delete(
            self,
            location_hash: str,
            samples: Sequence[SampleDescriptor],
    ) -> List[SampleArchiveResult]:
        """
        Per-hash sequential form of `archive_sample`; a run fans out per sample instead.
        """
        logger.debug("Archiving %d samples for %s", len(samples), location_hash)
        return [self.archive_sample(sample) for sample in samples]
