from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar


T = TypeVar("T")


@dataclass
class ParseResult(Generic[T]):
    """Outcome of validating one raw stream element.

    Attributes:
        success: Whether validation succeeded
        value: The validated object (only when successful)
        error: The validation or decoding error (only when unsuccessful)
        raw_value: The element as received, before validation
    """
    success: bool
    value: Optional[T] = None
    error: Optional[Exception] = None
    raw_value: Any = None

    @classmethod
    def ok(cls, value: T, raw_value: Any = None) -> "ParseResult[T]":
        return cls(success=True, value=value, raw_value=raw_value)

    @classmethod
    def fail(cls, error: Exception, raw_value: Any = None) -> "ParseResult[T]":
        return cls(success=False, error=error, raw_value=raw_value)
