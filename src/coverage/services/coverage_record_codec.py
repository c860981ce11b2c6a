"""Coverage history codec.

Stored history records come in two shapes:
- CURRENT: {time, heard, lost, lastHeard, repeaters}
- LEGACY_PATH: {time, path}, written before batches were aggregated.
  Each legacy record stands for a single sample.

Any older writer may also have stored `time` as text. Decoding always yields
current-shape UberSamples with numeric times; encoding writes only the current
shape, so a decoded-then-encoded history carries no legacy records.
"""

import json
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Union

from src.coverage.domain.errors import UnrecognizedRecordShapeError
from src.coverage.domain.sample import coerce_time, normalize_path
from src.coverage.domain.uber_sample import UberSample


class RecordShape(Enum):
    CURRENT = "current"
    LEGACY_PATH = "legacy_path"


def classify_record(record: Any) -> Optional[RecordShape]:
    if not isinstance(record, Mapping) or "time" not in record:
        return None
    if "heard" in record:
        return RecordShape.CURRENT
    if "path" in record:
        return RecordShape.LEGACY_PATH
    return None


def decode_record(location_hash: str, record: Any) -> UberSample:
    shape = classify_record(record)
    if shape is None:
        raise UnrecognizedRecordShapeError(location_hash, record)

    try:
        return _decode_shape(shape, record)
    except (TypeError, ValueError):
        raise UnrecognizedRecordShapeError(location_hash, record)


def _decode_shape(shape: RecordShape, record: Mapping[str, Any]) -> UberSample:
    time = coerce_time(record["time"])

    if shape == RecordShape.LEGACY_PATH:
        path = normalize_path(record.get("path"))
        heard = 1 if path else 0
        return UberSample(
            time=time,
            heard=heard,
            lost=1 - heard,
            last_heard=time if heard else 0,
            repeaters=path,
        )

    return UberSample(
        time=time,
        heard=int(record.get("heard") or 0),
        lost=int(record.get("lost") or 0),
        last_heard=coerce_time(record.get("lastHeard") or 0),
        repeaters=normalize_path(record.get("repeaters")),
    )


def decode_history(location_hash: str, raw_value: Union[str, Sequence[Any], None]) -> List[UberSample]:
    if raw_value is None or raw_value == "":
        return []
    records = json.loads(raw_value) if isinstance(raw_value, str) else raw_value
    if not isinstance(records, list):
        raise UnrecognizedRecordShapeError(location_hash, records)
    return [decode_record(location_hash, record) for record in records]


def encode_history(history: Sequence[UberSample]) -> str:
    return json.dumps([uber.to_record() for uber in history])
