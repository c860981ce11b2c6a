from datetime import datetime, timedelta, timezone
from src.core.time.time_source import TimeSource


class FrozenTimeSource(TimeSource):
    """
    Test clock.
    Stays at a fixed instant until advanced explicitly.
    """
    def __init__(self, start_time: datetime):
        if start_time.tzinfo is None:
            raise ValueError("FrozenTimeSource requires timezone-aware datetime")
        self._current_time = start_time

    @classmethod
    def at_epoch(cls, seconds: float) -> "FrozenTimeSource":
        return cls(datetime.fromtimestamp(seconds, tz=timezone.utc))

    def now(self) -> datetime:
        return self._current_time

    def advance(self, delta: timedelta) -> None:
        self._current_time += delta
