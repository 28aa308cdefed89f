"""
Result - explicit success/failure outcome

Adapters, the registry client and the services return ``Result`` for every
expected failure mode instead of raising, so callers such as the kline
waterfall can move on to the next exchange without exception plumbing.

Example:
    >>> result = await exchange.list_spot_coins()
    >>> if result.is_failure:
    ...     logger.error(result.error_message)
    ... else:
    ...     coins = result.value
"""

from dataclasses import dataclass, field
from typing import Generic, Optional, Tuple, TypeVar

from core.exceptions import CoinHubError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation: a value or one or more errors, never both."""

    value: Optional[T] = None
    errors: Tuple[CoinHubError, ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, *errors: CoinHubError) -> "Result[T]":
        if not errors:
            raise ValueError("A failed Result needs at least one error")
        return cls(errors=tuple(errors))

    @property
    def is_success(self) -> bool:
        return not self.errors

    @property
    def is_failure(self) -> bool:
        return bool(self.errors)

    @property
    def error_message(self) -> str:
        return "; ".join(str(error) for error in self.errors)

