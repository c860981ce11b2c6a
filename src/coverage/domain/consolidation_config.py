from dataclasses import dataclass

from src.config.settings import Settings


@dataclass(frozen=True)
class ConsolidationConfig:
    """
    Limits and fan-out bounds for one consolidation run.
    """
    max_samples_per_coverage: int = 15
    location_hash_length: int = 6
    default_max_age_days: float = 1.0
    list_page_size: int = 1000
    merge_max_workers: int = 16
    archive_max_workers: int = 32

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConsolidationConfig":
        return cls(
            max_samples_per_coverage=settings.MAX_SAMPLES_PER_COVERAGE,
            location_hash_length=settings.LOCATION_HASH_LENGTH,
            default_max_age_days=settings.DEFAULT_MAX_AGE_DAYS,
            list_page_size=settings.LIST_PAGE_SIZE,
            merge_max_workers=settings.MERGE_MAX_WORKERS,
            archive_max_workers=settings.ARCHIVE_MAX_WORKERS,
        )
