"""Registration of plugins defined in-process."""

import inspect
from typing import Any, Callable, Iterable, Optional, Union

from plugintree.domain import PluginRecord
from plugintree.errors import DependencyError

__all__ = [
    "PluginReference",
    "PluginRegistry",
    "inferred_name",
]

PluginReference = Union[str, type, Callable]
"""A dependency declared either by plugin id or by the registered class or factory."""


def inferred_name(target: Any) -> str:
    """Derive a plugin id from class or function name, removing 'make_' prefix if present.

    Args:
        target: The function or class to derive a name from.

    Returns:
        The class name, or the function name with any 'make_' prefix removed.

    Example:
        >>> inferred_name(CorePlugin)        # Returns "CorePlugin"
        >>> inferred_name(make_core_plugin)  # Returns "core_plugin"
    """
    if inspect.isclass(target):
        return target.__name__

    if target.__name__.startswith("make_"):
        return target.__name__[5:]
    else:
        return target.__name__


class PluginRegistry:
    """Registry of plugin records, populated explicitly or by decorator.

    Example:
        >>> registry = PluginRegistry()
        >>>
        >>> @registry.plugin()
        >>> class CorePlugin(PluginDescriptor):
        ...     name = "Core"
        ...     description = "Core services"
        >>>
        >>> @registry.plugin(depends_on=[CorePlugin])
        >>> def make_logging() -> PluginDescriptor:
        ...     return LoggingPlugin(level="INFO")
    """

    def __init__(self):
        self._records: list[PluginRecord] = []
        self._ids_by_target: dict[Any, str] = {}

    def register(self, record: PluginRecord):
        """Register a plugin record explicitly.

        Raises:
            DependencyError: If a record with the same id is already registered.
        """
        if any(existing.plugin_id == record.plugin_id for existing in self._records):
            raise DependencyError(f"Duplicate plugin id '{record.plugin_id}'")
        self._records.append(record)

    def registered_plugins(self) -> list[PluginRecord]:
        return list(self._records)

    def plugin(
        self,
        name: Optional[str] = None,
        depends_on: Optional[Iterable[PluginReference]] = None,
    ) -> Callable:
        """Decorator to register a descriptor class or factory function as a plugin.

        Args:
            name: Optional plugin id; defaults to the class name, or the function
                name with any 'make_' prefix removed.
            depends_on: Plugin ids, or classes and functions already registered
                with this registry, that the plugin depends on.

        Returns:
            A decorator that registers its target and returns it unchanged.
        """
        dependencies = frozenset(self._resolve_reference(ref) for ref in depends_on or [])

        def decorator(obj):
            if not (inspect.isclass(obj) or inspect.isfunction(obj)):
                raise DependencyError(f"{obj} is not a class or function")

            plugin_id = name or inferred_name(obj)
            self.register(PluginRecord(plugin_id, obj, dependencies))
            self._ids_by_target[obj] = plugin_id
            return obj

        return decorator

    def _resolve_reference(self, reference: PluginReference) -> str:
        if isinstance(reference, str):
            return reference
        if reference in self._ids_by_target:
            return self._ids_by_target[reference]
        return inferred_name(reference)
