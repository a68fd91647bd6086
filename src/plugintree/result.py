"""Success or failure outcome of a plugin operation or lifecycle phase."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from plugintree.errors import (
    AggregateError,
    ExceptionError,
    GenericError,
    PluginLifecycleError,
    ResultError,
)

__all__ = ["Result", "aggregate"]


@dataclass(frozen=True)
class Result:
    """The outcome of an operation.

    A result with no error is a success. Plugin operations may return a
    ``Result`` explicitly, return ``None`` (treated as success) or raise.

    Example:
        >>> Result.from_success().is_success
        True
        >>> Result.from_error("database unreachable").error.message
        'database unreachable'
    """

    error: Optional[ResultError] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @staticmethod
    def from_success() -> "Result":
        return _SUCCESS

    @staticmethod
    def from_error(error: Union[ResultError, str]) -> "Result":
        if isinstance(error, str):
            error = GenericError(error)
        return Result(error)

    @staticmethod
    def from_exception(exception: BaseException) -> "Result":
        return Result(ExceptionError(exception))

    @staticmethod
    def coerce(value: Any) -> "Result":
        """Interpret the return value of a plugin operation as a Result.

        Raises:
            TypeError: If the value is neither ``None`` nor a ``Result``.
        """
        if value is None:
            return _SUCCESS
        if isinstance(value, Result):
            return value
        raise TypeError(f"Plugin operations must return a Result or None, not {value!r}")

    def unwrap(self) -> None:
        """Raise :class:`PluginLifecycleError` if this result is a failure."""
        if self.error is not None:
            raise PluginLifecycleError(self.error)


_SUCCESS = Result()


def aggregate(results: Iterable[Result]) -> Result:
    """Collapse many results into one.

    Returns a success if every result succeeded, otherwise a failure carrying an
    :class:`AggregateError` that lists each individual error in order.
    """
    errors = tuple(result.error for result in results if not result.is_success)
    if not errors:
        return Result.from_success()
    return Result.from_error(AggregateError(errors))
