"""Coverage consolidation error hierarchy."""


class ConsolidationError(Exception):
    """Base error for coverage consolidation."""


class InvalidSampleError(ConsolidationError):
    """Listed sample carries metadata that cannot be consolidated."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Sample {key!r} is invalid: {reason}")


class UnrecognizedRecordShapeError(ConsolidationError):
    """Stored coverage history record matches no known shape.

    Attributes:
        location_hash: The coverage entry holding the record
        record: The offending raw record
    """

    def __init__(self, location_hash: str, record: object) -> None:
        self.location_hash = location_hash
        self.record = record
        super().__init__(
            f"Coverage entry {location_hash!r} holds an unrecognized record: {record!r}"
        )
