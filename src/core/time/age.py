import math

SECONDS_PER_DAY = 86400


def age_in_days(timestamp: float, now: float) -> int:
    """
    Whole days elapsed between `timestamp` and `now` (both epoch seconds).
    Timestamps in the future yield a negative age.
    """
    return math.floor((float(now) - float(timestamp)) / SECONDS_PER_DAY)
