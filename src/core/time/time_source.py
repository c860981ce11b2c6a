from abc import ABC, abstractmethod
from datetime import datetime


class TimeSource(ABC):
    """
    Abstract clock used to judge sample age.
    Implementations must return UTC-aware datetimes.
    """
    @abstractmethod
    def now(self) -> datetime:
        pass

    def epoch_seconds(self) -> float:
        return self.now().timestamp()
