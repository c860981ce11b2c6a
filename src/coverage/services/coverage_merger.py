import logging
from typing import Iterable, List, Optional, Sequence

from src.core.observability.structured_runtime_logger import StructuredRuntimeLogger
from src.coverage.domain.consolidation_report import MergeResult, MergeStatus
from src.coverage.domain.coverage_entry import CoverageEntry, CoverageMetadata
from src.coverage.domain.sample import Number, SampleDescriptor
from src.coverage.domain.uber_sample import UberSample
from src.coverage.interfaces.coverage_store import CoverageStore
from src.coverage.services.coverage_record_codec import decode_history, encode_history

logger = logging.getLogger(__name__)


def fold_samples(samples: Iterable[SampleDescriptor], watermark: Number) -> Optional[UberSample]:
    """
    Folds the samples newer than `watermark` into one UberSample.
    Returns None when every sample was already consolidated.
    """
    time: Number = 0
    heard = 0
    lost = 0
    last_heard: Number = 0
    repeaters: List[str] = []

    for sample in samples:
        if sample.time <= watermark:
            continue
        time = max(time, sample.time)
        if sample.was_heard:
            heard += 1
            last_heard = max(last_heard, sample.time)
            for repeater in sample.path:
                if repeater not in repeaters:
                    repeaters.append(repeater)
        else:
            lost += 1

    if time == 0:
        return None
    return UberSample(
        time=time,
        heard=heard,
        lost=lost,
        last_heard=last_heard,
        repeaters=tuple(repeaters),
    )


def bound_history(history: Sequence[UberSample], max_entries: int) -> List[UberSample]:
    # Only the newest entries survive so recent batches can still flip a tile.
    if len(history) <= max_entries:
        return list(history)
    return sorted(history, key=lambda uber: uber.time)[-max_entries:]


def summarize_history(
        history: Sequence[UberSample],
        previous: CoverageMetadata,
        updated: Number,
) -> CoverageMetadata:
    heard = 0
    lost = 0
    last_heard: Number = 0
    # Repeaters seen before are kept even once their batch is evicted.
    hit_repeaters = dict.fromkeys(previous.hit_repeaters)
    for uber in history:
        heard += uber.heard
        lost += uber.lost
        last_heard = max(last_heard, uber.last_heard)
        for repeater in uber.repeaters:
            hit_repeaters.setdefault(repeater.lower())
    return CoverageMetadata(
        heard=heard,
        lost=lost,
        last_heard=last_heard,
        updated=updated,
        hit_repeaters=tuple(hit_repeaters),
    )


class CoverageMerger:
    """
    Folds a batch of samples into the coverage entry for one location hash.

    The entry's `updated` watermark is the only dedup mechanism: samples at or
    below it were consolidated before and are ignored. A batch with nothing new
    performs no write at all.

    The read and the write are not conditional on each other. Two runs merging
    the same hash at once can lose the earlier write.
    """

    def __init__(
            self,
            max_samples_per_coverage: int = 15,
            structured_logger: Optional[StructuredRuntimeLogger] = None,
    ):
        if max_samples_per_coverage <= 0:
            raise ValueError("max_samples_per_coverage must be positive")
        self.max_samples_per_coverage = max_samples_per_coverage
        self.structured_logger = structured_logger or StructuredRuntimeLogger()

    def merge(
            self,
            location_hash: str,
            samples: Sequence[SampleDescriptor],
            store: CoverageStore,
    ) -> MergeResult:
        """
        Store errors propagate; nothing is written when one occurs.
        """
        # 1. Current entry (or defaults)
        stored = store.get_with_metadata(location_hash)
        previous = CoverageMetadata.from_record(stored.metadata if stored else None)

        # 2. Fold unseen samples
        uber = fold_samples(samples, previous.updated)

        # 3. Nothing new
        if uber is None:
            self.structured_logger.emit(
                event_type="MERGE_SKIPPED_NOTHING_NEW",
                location_hash=location_hash,
                samples=len(samples),
                watermark=previous.updated,
            )
            return MergeResult(location_hash=location_hash, status=MergeStatus.NOTHING_NEW)

        # 4. Decode stored history, migrating legacy records
        history = decode_history(location_hash, stored.value if stored else None)

        # 5-6. Append and bound
        history.append(uber)
        history = bound_history(history, self.max_samples_per_coverage)

        # 7. Recompute stats
        entry = CoverageEntry(
            location_hash=location_hash,
            history=tuple(history),
            metadata=summarize_history(history, previous, updated=uber.time),
        )

        # 8. Single write of value and metadata
        store.put(location_hash, encode_history(entry.history), entry.metadata.to_record())
        logger.debug("Merged %s: %d history entries", location_hash, len(entry.history))
        self.structured_logger.emit(
            event_type="MERGE_OK",
            location_hash=location_hash,
            heard=uber.heard,
            lost=uber.lost,
            watermark=uber.time,
        )
        return MergeResult(location_hash=location_hash, status=MergeStatus.MERGED, uber_sample=uber)
