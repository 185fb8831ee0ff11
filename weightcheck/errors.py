"""Exceptions raised by the weight check core."""
from typing import Sequence


class WeightCheckError(Exception):
    """Base class for every error the service reports to a caller."""


class ShiftValidationError(WeightCheckError):
    """Raised when a shift record is not complete enough to be persisted."""

    def __init__(self, problems: Sequence[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "invalid shift record")


class StoreError(WeightCheckError):
    """Raised when a shift could not be appended to the workbook."""


class SchemaMismatchError(StoreError):
    """The existing sheet's header row does not match the expected columns."""

    def __init__(self, path, expected: Sequence, found: Sequence):
        self.path = path
        self.expected = tuple(expected)
        self.found = tuple(found)
        super().__init__(
            f"{path}: header {list(self.found)} does not match expected {list(self.expected)}"
        )


class StoreIOError(StoreError):
    """The workbook could not be read or written; ``__cause__`` holds the OS error."""


class StoreTimeoutError(StoreError):
    """Another writer held the file for longer than the caller was willing to wait."""
