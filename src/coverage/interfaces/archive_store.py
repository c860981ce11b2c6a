from typing import Any, Dict, Protocol


class ArchiveStore(Protocol):
    """
    Contract for the archive store. Write-only from the consolidation side.
    """
    def put(self, key: str, value: str, metadata: Dict[str, Any]) -> None:
        ...
