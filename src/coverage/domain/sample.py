import math
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

Number = Union[int, float]


def coerce_time(value: Any) -> Number:
    """
    Normalizes a stored time to a number.
    Older writers stored times as text; integral values come back as int.
    NaN and infinities are rejected with ValueError.
    """
    if isinstance(value, bool):
        raise TypeError(f"time must be numeric, got {value!r}")
    if isinstance(value, str):
        value = float(value.strip())
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"time must be finite, got {value!r}")
        return int(value) if value.is_integer() else value
    if isinstance(value, int):
        return value
    raise TypeError(f"time must be numeric, got {value!r}")


def normalize_path(path: Optional[Any]) -> Tuple[str, ...]:
    """
    Repeater ids as a tuple. A missing path is empty; anything other than
    a list or tuple of strings raises TypeError.
    """
    if path is None:
        return ()
    if not isinstance(path, (list, tuple)):
        raise TypeError(f"path must be a list of repeater ids, got {path!r}")
    for repeater in path:
        if not isinstance(repeater, str):
            raise TypeError(f"repeater id must be a string, got {repeater!r}")
    return tuple(path)


@dataclass(frozen=True)
class SampleDescriptor:
    """
    Eligible live sample, as seen by the consolidation run.
    An empty path means no repeater heard the transmission.
    """
    key: str
    time: Number
    path: Tuple[str, ...] = ()

    @property
    def was_heard(self) -> bool:
        return len(self.path) > 0

    def location_hash(self, length: int) -> str:
        return self.key[:length]
