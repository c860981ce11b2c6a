import json

import pytest

from src.core.time.age import SECONDS_PER_DAY
from src.core.time.frozen_time_source import FrozenTimeSource
from src.coverage.domain.consolidation_config import ConsolidationConfig
from src.coverage.domain.consolidation_report import ConsolidationReport
from src.coverage.services.coverage_consolidation_service import CoverageConsolidationService
from src.coverage.store.key_value_store import InMemoryKeyValueStore

NOW = 1_700_000_000
OLD = NOW - 2 * SECONDS_PER_DAY


class _FailingCoverage(InMemoryKeyValueStore):
    def __init__(self, fail_hashes):
        super().__init__()
        self.fail_hashes = set(fail_hashes)

    def get_with_metadata(self, key):
        if key in self.fail_hashes:
            raise ConnectionError("coverage read failed")
        return super().get_with_metadata(key)


class _FailingArchive(InMemoryKeyValueStore):
    def __init__(self, fail_keys):
        super().__init__()
        self.fail_keys = set(fail_keys)

    def put(self, key, value, metadata):
        if key in self.fail_keys:
            raise ConnectionError("archive write failed")
        super().put(key, value, metadata)


class _FailingDelete(InMemoryKeyValueStore):
    def __init__(self, fail_keys):
        super().__init__()
        self.fail_keys = set(fail_keys)

    def delete(self, key):
        if key in self.fail_keys:
            raise ConnectionError("delete failed")
        super().delete(key)


def _service(samples, coverage=None, archive=None, **config) -> CoverageConsolidationService:
    return CoverageConsolidationService(
        sample_store=samples,
        coverage_store=coverage if coverage is not None else InMemoryKeyValueStore(),
        archive_store=archive if archive is not None else InMemoryKeyValueStore(),
        time_source=FrozenTimeSource.at_epoch(NOW),
        config=ConsolidationConfig(**config),
    )


@pytest.fixture
def samples():
    store = InMemoryKeyValueStore()
    store.put("aaaaaa-1", "", {"time": OLD, "path": ["R1"]})
    store.put("aaaaaa-2", "", {"time": OLD + 1, "path": []})
    store.put("bbbbbb-1", "", {"time": OLD, "path": ["R2"]})
    store.put("cccccc-1", "", {"time": NOW - 60, "path": ["R3"]})
    return store


def test_full_run_consolidates_archives_and_deletes(samples):
    coverage = InMemoryKeyValueStore()
    archive = InMemoryKeyValueStore()

    report = _service(samples, coverage, archive, merge_max_workers=4, archive_max_workers=4).run()

    assert report.to_response() == {
        "coverage_entites_to_update": 2,
        "samples_to_update": 3,
        "merged_ok": 2,
        "merged_fail": 0,
        "archive_ok": 3,
        "archive_fail": 0,
        "delete_ok": 3,
        "delete_fail": 0,
        "delete_skip": 0,
    }
    assert samples.keys() == ["cccccc-1"]
    assert archive.keys() == ["aaaaaa-1", "aaaaaa-2", "bbbbbb-1"]
    assert coverage.keys() == ["aaaaaa", "bbbbbb"]
    assert json.loads(coverage.get_with_metadata("aaaaaa").value) == [
        {"time": OLD + 1, "heard": 1, "lost": 1, "lastHeard": OLD, "repeaters": ["R1"]}
    ]


def test_archive_failure_skips_delete_but_merge_still_counts(samples):
    archive = _FailingArchive({"aaaaaa-1"})

    report = _service(samples, archive=archive).run()

    assert report.merged_ok == 2
    assert report.archive_ok == 2
    assert report.archive_fail == 1
    assert report.delete_skip == 1
    assert report.delete_ok == 2
    assert "aaaaaa-1" in samples.keys()


def test_merge_failure_leaves_samples_live(samples):
    coverage = _FailingCoverage({"aaaaaa"})

    report = _service(samples, coverage=coverage).run()

    assert report.merged_ok == 1
    assert report.merged_fail == 1
    assert report.archive_ok == 1
    assert sorted(samples.keys()) == ["aaaaaa-1", "aaaaaa-2", "cccccc-1"]


def test_delete_failure_is_reported_as_duplicate_risk(samples):
    samples_store = _FailingDelete({"bbbbbb-1"})
    for key in samples.keys():
        entry = samples.get_with_metadata(key)
        samples_store.put(key, entry.value, entry.metadata)
    archive = InMemoryKeyValueStore()

    report = _service(samples_store, archive=archive).run()

    assert report.delete_fail == 1
    assert report.delete_ok == 2
    assert report.archive_ok == 3
    assert report.duplicate_risk_keys == ("bbbbbb-1",)
    assert "bbbbbb-1" in archive.keys()
    assert "bbbbbb-1" in samples_store.keys()


def test_rerun_after_straggler_is_safe(samples):
    coverage = InMemoryKeyValueStore()
    samples_store = _FailingDelete({"aaaaaa-1"})
    for key in samples.keys():
        entry = samples.get_with_metadata(key)
        samples_store.put(key, entry.value, entry.metadata)

    _service(samples_store, coverage=coverage).run()
    first = coverage.get_with_metadata("aaaaaa")
    samples_store.fail_keys.clear()

    report = _service(samples_store, coverage=coverage).run()

    # The straggler is already below the watermark: no new coverage data.
    assert report.samples_to_update == 1
    assert report.merged_ok == 1
    assert report.delete_ok == 1
    assert coverage.get_with_metadata("aaaaaa") == first
    assert samples_store.keys() == ["cccccc-1"]


def test_max_age_override_includes_recent_samples(samples):
    report = _service(samples).run(max_age_days=0)

    assert report.samples_to_update == 4
    assert report.coverage_entries_to_update == 3


def test_empty_store_reports_zeroes():
    report = _service(InMemoryKeyValueStore()).run()

    assert report == ConsolidationReport()


@pytest.mark.parametrize(
    "bad_metadata",
    [
        {"time": "inf", "path": []},
        {"time": "nan", "path": ["R9"]},
        {"time": OLD, "path": 5},
        ["not", "a", "mapping"],
    ],
)
def test_one_malformed_sample_does_not_abort_run(samples, bad_metadata):
    samples.put("dddddd-1", "", bad_metadata)

    report = _service(samples).run()

    assert report.samples_to_update == 3
    assert report.merged_ok == 2
    assert report.delete_ok == 3
    assert sorted(samples.keys()) == ["cccccc-1", "dddddd-1"]
