"""Domain models used throughout the framework."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from importlib import metadata
from typing import TYPE_CHECKING, Any, Callable, FrozenSet, Optional

from plugintree.result import Result

if TYPE_CHECKING:
    from plugintree.cancellation import CancellationToken

__all__ = [
    "PluginDescriptor",
    "MigratablePlugin",
    "PluginRecord",
    "supports_migration",
    "is_plugin_descriptor",
]

DEFAULT_VERSION = "1.0.0"


class PluginDescriptor(ABC):
    """Describes a plugin and the lifecycle hooks it takes part in.

    Subclasses must provide ``name`` and ``description``. Every hook defaults
    to doing nothing successfully.

    Example:
        >>> class CorePlugin(PluginDescriptor):
        ...     name = "Core"
        ...     description = "Core services"
        ...
        ...     def configure_services(self, services):
        ...         services["clock"] = SystemClock()
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    def version(self) -> str:
        """Version of the distribution providing this plugin, or ``1.0.0``."""
        top_level_module = type(self).__module__.split(".")[0]
        try:
            return metadata.version(top_level_module)
        except metadata.PackageNotFoundError:
            return DEFAULT_VERSION

    def configure_services(self, services: Any) -> Optional[Result]:
        """Register the services this plugin provides."""
        return Result.from_success()

    async def initialize(
        self, context: Any, ct: "CancellationToken"
    ) -> Optional[Result]:
        """Perform any start-up work once all services are configured."""
        return Result.from_success()

    def __str__(self) -> str:
        return self.name


class MigratablePlugin(PluginDescriptor):
    """A plugin that owns a persistent store which may need migrating."""

    @abstractmethod
    async def migrate(self, context: Any, ct: "CancellationToken") -> Optional[Result]:
        ...


def is_plugin_descriptor(candidate: Any) -> bool:
    """Check that an object offers the capabilities every plugin must have.

    Descriptors are duck-typed: any object with a ``name`` and callable
    ``configure_services`` and ``initialize`` attributes is accepted.
    """
    return (
        candidate is not None
        and hasattr(candidate, "name")
        and callable(getattr(candidate, "configure_services", None))
        and callable(getattr(candidate, "initialize", None))
    )


def supports_migration(plugin: Any) -> bool:
    return callable(getattr(plugin, "migrate", None))


@dataclass(frozen=True)
class PluginRecord:
    """A discovered plugin, before its descriptor has been constructed.

    Attributes:
        plugin_id: Stable identifier, unique among the records being built.
        construct: Callable returning the plugin's descriptor, or ``None`` if the
            plugin cannot be constructed.
        dependencies: Ids of the plugins this one depends on. Ids that do not
            belong to any known record are ignored.
    """

    plugin_id: str
    construct: Callable[[], Any]
    dependencies: FrozenSet[str] = field(default_factory=frozenset)
