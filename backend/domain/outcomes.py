"""
Per-track results and the failure taxonomy.

Failures are exception types so they read naturally in logs and tracebacks,
but they travel inside a FetchOutcome instead of being raised across threads.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from domain.models import ApiErrorInfo

T = TypeVar("T")


class FetchError(Exception):
    """Base class for a failed track."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(FetchError):
    """Connection, timeout or DNS failure."""

    kind = "transport"


class DecodeError(FetchError):
    """Malformed JSON or a body that does not match the expected schema."""

    kind = "decode"


class ApiError(FetchError):
    """Well-formed error payload (or non-success status) from a service."""

    kind = "api"

    def __init__(self, info: ApiErrorInfo):
        super().__init__(str(info))
        self.info = info


class ResourceLoadError(FetchError):
    kind = "resource_load"


class StyleLoadError(ResourceLoadError):
    def __init__(self, style_name: str, reason: str = ""):
        message = "style library failed to load"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.style_name = style_name


class SymbolNotFoundError(ResourceLoadError):
    def __init__(self, style_name: str, symbol_name: str):
        super().__init__(f"symbol not found: {symbol_name!r} in {style_name}")
        self.style_name = style_name
        self.symbol_name = symbol_name


@dataclass(frozen=True)
class FetchOutcome(Generic[T]):
    """Success(value) or Failure(error) for one track."""
    value: Optional[T] = None
    error: Optional[FetchError] = None

    def __post_init__(self) -> None:
        if self.error is not None and self.value is not None:
            raise ValueError("FetchOutcome cannot carry both a value and an error")

    @classmethod
    def success(cls, value: T) -> "FetchOutcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: FetchError) -> "FetchOutcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
