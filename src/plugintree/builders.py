"""High level entry points for constructing plugin trees."""

from typing import Any, Iterable

from plugintree.domain import PluginRecord
from plugintree.tree import PluginTree
from plugintree.tree_builder import PluginTreeBuilder

__all__ = ["make_plugin_tree", "load_plugins"]


def make_plugin_tree(records: Iterable[PluginRecord]) -> PluginTree:
    """Construct a :class:`PluginTree` from discovered plugin records.

    Args:
        records: The plugins to include, each with its declared dependencies.

    Returns:
        The tree, ready for its lifecycle phases to be run.

    Raises:
        DependencyError: If plugin ids are duplicated or dependencies are cyclic.

    Example:
        >>> tree = make_plugin_tree(registry.registered_plugins())
        >>> tree.configure_services(services).unwrap()
    """
    return PluginTreeBuilder().build(records)


def load_plugins(records: Iterable[PluginRecord]) -> list[Any]:
    """Construct the descriptors of every usable plugin, dependencies first.

    Plugins whose descriptor cannot be constructed, or that depend on such a
    plugin, are omitted.

    Raises:
        DependencyError: If plugin ids are duplicated or dependencies are cyclic.
    """
    records = list(records)
    builder = PluginTreeBuilder()
    plugins_by_id = {node.plugin_id: node.plugin for node in builder.build(records).nodes()}
    return [
        plugins_by_id[plugin_id]
        for plugin_id in builder.build_order(records)
        if plugin_id in plugins_by_id
    ]
