"""Exceptions raised by a census."""


class CensusError(Exception):
    """Base class for failures that abort a census."""

    pass


class SourceUnavailable(CensusError):
    """Raised when the process source can't be invoked or enumerated.

    Covers a missing or failing ``ps`` binary and an inaccessible procfs root.
    """

    pass


class MalformedRecord(CensusError):
    """Raised when a per-process status record has too few fields."""

    def __init__(self, path: str, field_count: int):
        self.path = path
        self.field_count = field_count
        super().__init__(
            f"Malformed status record in {path}: expected at least 3 fields "
            f"after the process name, got {field_count}"
        )
