"""Exceptions and result errors raised or reported by the framework.

Two families live here. Exceptions derived from :class:`DependencyError` are
raised while building a plugin tree, when the input cannot form one. Subclasses
of :class:`ResultError` are never raised; they are carried by
:class:`~plugintree.result.Result` values emitted while walking a tree, so that a
single lifecycle phase can report every failing plugin at once.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from plugintree.node import PluginTreeNode

__all__ = [
    "DependencyError",
    "CyclicDependencyError",
    "OperationCancelled",
    "PluginLifecycleError",
    "ResultError",
    "GenericError",
    "ExceptionError",
    "PluginError",
    "OperationFailed",
    "Cancelled",
    "CascadedFailure",
    "PluginConfigurationFailed",
    "PluginInitializationFailed",
    "PluginMigrationFailed",
    "AggregateError",
]


class DependencyError(Exception):
    """Raised when a plugin's declared dependencies cannot form a valid tree."""

    pass


class CyclicDependencyError(DependencyError):
    """Raised when the declared dependencies contain a cycle.

    Attributes:
        unresolved: The plugin ids that could not be placed in dependency order.
    """

    def __init__(self, unresolved: Iterable[str]):
        self.unresolved = frozenset(unresolved)
        super().__init__(f"Unresolvable dependencies: {set(self.unresolved)}")


class OperationCancelled(Exception):
    """Raised inside a plugin operation that observed a cancellation request."""

    pass


class PluginLifecycleError(Exception):
    """Raised by :meth:`Result.unwrap` when a lifecycle phase has failed."""

    def __init__(self, error: "ResultError"):
        self.error = error
        super().__init__(error.message)


class ResultError:
    """Base class of every error carried by a failed :class:`Result`."""

    @property
    def message(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class GenericError(ResultError):
    """A failure described only by a human-readable message."""

    description: str

    @property
    def message(self) -> str:
        return self.description


@dataclass(frozen=True)
class ExceptionError(ResultError):
    """A failure caused by an exception escaping a plugin operation."""

    exception: BaseException

    @property
    def message(self) -> str:
        return f"{type(self.exception).__name__}: {self.exception}"


@dataclass(frozen=True)
class PluginError(ResultError):
    """A failure attributed to a single node of the plugin tree."""

    node: "PluginTreeNode"

    @property
    def plugin_id(self) -> Optional[str]:
        return self.node.plugin_id

    @property
    def plugin_name(self) -> str:
        return self.node.plugin.name

    @property
    def message(self) -> str:
        return f"{self.plugin_name} failed"


@dataclass(frozen=True)
class OperationFailed(PluginError):
    """The node's own operation returned a failure or raised."""

    cause: ResultError

    @property
    def message(self) -> str:
        return f"{self.plugin_name} ({self.plugin_id}) failed: {self.cause.message}"


@dataclass(frozen=True)
class Cancelled(PluginError):
    """The node's operation observed a cancellation request."""

    @property
    def message(self) -> str:
        return f"{self.plugin_name} ({self.plugin_id}) was cancelled"


@dataclass(frozen=True)
class CascadedFailure(PluginError):
    """The node is marked failed only because an upstream dependency failed.

    Attributes:
        ancestor: The node whose own operation failed.
        reason: Explanation reported alongside the plugin name.
    """

    ancestor: "PluginTreeNode"
    reason: str = "One or more of the plugin's dependencies failed."

    @property
    def message(self) -> str:
        return (
            f"{self.plugin_name} ({self.plugin_id}) skipped because "
            f"{self.ancestor.plugin.name} failed: {self.reason}"
        )


@dataclass(frozen=True)
class PluginConfigurationFailed(CascadedFailure):
    reason: str = "One or more of the plugin's dependencies failed to configure their services."


@dataclass(frozen=True)
class PluginInitializationFailed(CascadedFailure):
    reason: str = "One or more of the plugin's dependencies failed to initialize."


@dataclass(frozen=True)
class PluginMigrationFailed(CascadedFailure):
    reason: str = "One or more of the plugin's dependencies failed to migrate."


@dataclass(frozen=True)
class AggregateError(ResultError):
    """Every failure produced by one lifecycle phase, in emission order."""

    errors: tuple[ResultError, ...] = field(default_factory=tuple)

    @property
    def message(self) -> str:
        lines = [f"{len(self.errors)} plugin operation(s) failed:"]
        lines.extend(f"  - {error.message}" for error in self.errors)
        return "\n".join(lines)

    @property
    def root_causes(self) -> list[ResultError]:
        """Failures that are not merely fallout from an upstream failure."""
        return [error for error in self.errors if not isinstance(error, CascadedFailure)]

    @property
    def cascaded(self) -> list[CascadedFailure]:
        return [error for error in self.errors if isinstance(error, CascadedFailure)]
