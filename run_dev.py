import sys
import os
import json
from datetime import datetime, timedelta, timezone

# Ensure the project root is importable
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from src.core.observability.structured_runtime_logger import configure_logging
from src.core.time.frozen_time_source import FrozenTimeSource
from src.coverage.services.coverage_consolidation_service import CoverageConsolidationService
from src.coverage.store.store_factory import ConsolidationStores


def seed(stores: ConsolidationStores, now: datetime) -> None:
    day = 86400
    base = int(now.timestamp())

    # Aged samples across two cells
    stores.samples.put("9q8yyk-001", "", {"time": base - 3 * day, "path": ["A1", "b2"]})
    stores.samples.put("9q8yyk-002", "", {"time": base - 2 * day, "path": []})
    stores.samples.put("9q8yym-001", "", {"time": base - 2 * day, "path": ["C3"]})

    # Too recent to consolidate
    stores.samples.put("9q8yyk-003", "", {"time": base - 3600, "path": ["A1"]})

    # Legacy-shaped coverage entry with a textual time
    stores.coverage.put(
        "9q8yym",
        json.dumps([{"time": str(base - 10 * day), "path": ["D4"]}]),
        {"heard": 1, "lost": 0, "lastHeard": base - 10 * day, "updated": base - 10 * day,
         "hitRepeaters": ["d4"]},
    )


def main():
    print("Initializing DEV environment...")
    configure_logging("INFO")

    # 1. Infrastructure
    now = datetime.now(timezone.utc)
    time_source = FrozenTimeSource(now)
    stores = ConsolidationStores.in_memory()
    seed(stores, now)

    # 2. Service
    service = CoverageConsolidationService(
        sample_store=stores.samples,
        coverage_store=stores.coverage,
        archive_store=stores.archive,
        time_source=time_source,
    )

    # 3. Run twice; the second pass only sees the recent sample once it ages
    print(json.dumps(service.run(max_age_days=1).to_response(), indent=2))
    time_source.advance(timedelta(days=1))
    print(json.dumps(service.run(max_age_days=1).to_response(), indent=2))

    for key in stores.coverage.keys():
        entry = stores.coverage.get_with_metadata(key)
        print(key, entry.value, json.dumps(entry.metadata))


if __name__ == "__main__":
    main()
