"""Errors raised by sparsearray operations."""

from __future__ import annotations


class SparseArrayError(Exception):
    """Base class for sparsearray errors."""


class IndexOutOfRange(SparseArrayError, IndexError):
    """An index is negative, or past the end of a fixed-size array.

    Attributes:
        index: The rejected index
        size: The fixed size that was exceeded, or None for a negative index
    """

    def __init__(self, index: int, size: int | None = None) -> None:
        self.index = index
        self.size = size
        if size is None:
            message = f"index {index} is negative"
        else:
            message = f"index {index} out of range for fixed size {size}"
        super().__init__(message)

    def __reduce__(self) -> tuple[type[IndexOutOfRange], tuple[int, int | None]]:
        return (self.__class__, (self.index, self.size))


class BadSize(SparseArrayError, ValueError):
    """A requested size is negative or cannot hold the supplied data."""

    def __init__(self, size: int, message: str = "size must be non-negative") -> None:
        self.size = size
        self.reason = message
        super().__init__(f"{message} (got {size})")

    def __reduce__(self) -> tuple[type[BadSize], tuple[int, str]]:
        return (self.__class__, (self.size, self.reason))
