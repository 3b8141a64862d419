"""
Validation outcome - exactly one of a value or a typed error.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from receipt_validator.exceptions import ReceiptValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationOutcome(Generic[T]):
    """Result of a validation operation."""

    value: T | None = None
    error: ReceiptValidationError | None = None

    def __post_init__(self) -> None:
        """Enforce that exactly one side is set."""
        if (self.error is None) == (self.value is None):
            raise ValueError("ValidationOutcome requires exactly one of value or error")

    @classmethod
    def success(cls, value: T) -> "ValidationOutcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ReceiptValidationError) -> "ValidationOutcome[T]":
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        assert self.value is not None
        return self.value
