"""Discovery of plugins from registries and installed distributions.

Installed distributions advertise plugins through entry points in the
``plugintree.plugins`` group (configurable through
:class:`~plugintree.options.PluginServiceOptions`). An entry point may name either
a :class:`~plugintree.registry.PluginRegistry`, contributing all of its records,
or a descriptor class, registered under the entry point's name with the ids in
its ``dependencies`` attribute::

    [project.entry-points."plugintree.plugins"]
    metrics = "acme_metrics.plugin:MetricsPlugin"
"""

import inspect
import logging
from importlib import metadata
from typing import Any, Optional

from plugintree.builders import load_plugins, make_plugin_tree
from plugintree.domain import PluginRecord
from plugintree.options import PluginServiceOptions
from plugintree.registry import PluginRegistry
from plugintree.tree import PluginTree

__all__ = ["PluginService"]

logger = logging.getLogger(__name__)


class PluginService:
    """Find plugins and arrange them into a :class:`PluginTree`."""

    def __init__(self, options: Optional[PluginServiceOptions] = None):
        self._options = options or PluginServiceOptions.default()

    @property
    def options(self) -> PluginServiceOptions:
        return self._options

    def discover(self) -> list[PluginRecord]:
        """Collect plugin records from the configured registries and entry points."""
        records = [
            record
            for registry in self._options.registries
            for record in registry.registered_plugins()
        ]
        if self._options.scan_entry_points:
            records.extend(self._discover_entry_points())
        return records

    def load_plugin_tree(self) -> PluginTree:
        """Discover plugins and build their tree.

        Raises:
            DependencyError: If plugin ids are duplicated or dependencies are cyclic.
        """
        return make_plugin_tree(self.discover())

    def load_plugins(self) -> list[Any]:
        """Discover plugins and construct their descriptors, dependencies first."""
        return load_plugins(self.discover())

    def _discover_entry_points(self) -> list[PluginRecord]:
        group = self._options.entry_point_group
        records: list[PluginRecord] = []

        for entry_point in metadata.entry_points(group=group):
            try:
                target = entry_point.load()
            except Exception:
                logger.warning(
                    "Skipping plugin entry point %s: failed to load %s",
                    entry_point.name,
                    entry_point.value,
                    exc_info=True,
                )
                continue

            if isinstance(target, PluginRegistry):
                records.extend(target.registered_plugins())
            elif inspect.isclass(target):
                records.append(
                    PluginRecord(
                        entry_point.name,
                        target,
                        frozenset(getattr(target, "dependencies", ())),
                    )
                )
            else:
                logger.warning(
                    "Skipping plugin entry point %s: %r is neither a plugin registry nor a class",
                    entry_point.name,
                    target,
                )

        logger.debug("Discovered %d plugin(s) in entry point group %s", len(records), group)
        return records
