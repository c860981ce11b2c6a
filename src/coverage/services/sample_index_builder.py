from typing import Mapping, Optional

from src.core.observability.structured_runtime_logger import StructuredRuntimeLogger
from src.core.time.age import age_in_days
from src.core.time.time_source import TimeSource
from src.coverage.domain.errors import InvalidSampleError
from src.coverage.domain.sample import SampleDescriptor, coerce_time, normalize_path
from src.coverage.domain.sample_index import SampleIndex
from src.coverage.domain.store_records import ListedKey
from src.coverage.interfaces.sample_store import SampleStore


def describe_sample(listed: ListedKey) -> SampleDescriptor:
    metadata = listed.metadata if listed.metadata is not None else {}
    if not isinstance(metadata, Mapping):
        raise InvalidSampleError(listed.name, f"metadata is not a mapping: {metadata!r}")
    if metadata.get("time") is None:
        raise InvalidSampleError(listed.name, "missing time")
    try:
        time = coerce_time(metadata["time"])
    except (TypeError, ValueError):
        raise InvalidSampleError(listed.name, f"unusable time {metadata['time']!r}")
    try:
        path = normalize_path(metadata.get("path"))
    except TypeError as exc:
        raise InvalidSampleError(listed.name, str(exc))
    return SampleDescriptor(key=listed.name, time=time, path=path)


class SampleIndexBuilder:
    """
    Walks the live sample store and groups consolidation-eligible samples
    by location hash.
    """

    def __init__(
            self,
            sample_store: SampleStore,
            time_source: TimeSource,
            location_hash_length: int = 6,
            page_size: int = 1000,
            structured_logger: Optional[StructuredRuntimeLogger] = None,
    ):
        self.sample_store = sample_store
        self.time_source = time_source
        self.location_hash_length = location_hash_length
        self.page_size = page_size
        self.structured_logger = structured_logger or StructuredRuntimeLogger()

    def build(self, max_age_days: float = 1) -> SampleIndex:
        index = SampleIndex()
        now = self.time_source.epoch_seconds()
        cursor: Optional[str] = None
        pages = 0

        while True:
            page = self.sample_store.list(cursor=cursor, limit=self.page_size)
            pages += 1
            for listed in page.keys:
                try:
                    sample = describe_sample(listed)
                except InvalidSampleError as exc:
                    # Left live; nothing to consolidate it into.
                    self.structured_logger.warn(
                        event_type="SAMPLE_INVALID", key=exc.key, reason=exc.reason
                    )
                    continue

                # Recent batches may still be arriving.
                if age_in_days(sample.time, now) < max_age_days:
                    continue
                index.add(sample.location_hash(self.location_hash_length), sample)

            cursor = page.cursor
            if cursor is None:
                break

        self.structured_logger.emit(
            event_type="INDEX_BUILT",
            pages=pages,
            eligible=index.eligible_count,
            hashes=index.hash_count,
            max_age_days=max_age_days,
        )
        return index
