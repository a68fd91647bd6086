"""Construction of plugin trees from discovered plugin records.

The builder orders plugins so that each comes after everything it depends on,
constructs their descriptors, and links each plugin only beneath its *direct*
dependencies. A dependency is direct when no other dependency of the same plugin
already depends on it, so the resulting edges are the transitive reduction of the
declared relation. Given::

    Core
    Logging  -> Core
    Metrics  -> Core, Logging

the tree is ``Core => (Logging => (Metrics))``; the ``Metrics -> Core`` edge is
implied by ``Logging`` and elided.
"""

import logging
from collections import deque, defaultdict
from typing import Any, Iterable, Iterator, Optional

from plugintree.domain import PluginRecord, is_plugin_descriptor
from plugintree.errors import CyclicDependencyError, DependencyError
from plugintree.node import PluginTreeNode
from plugintree.tree import PluginTree

__all__ = ["PluginTreeBuilder"]

logger = logging.getLogger(__name__)


class _DependencyGraph:
    """
    Internal helper to represent and traverse a directed acyclic graph of plugin dependencies.

    Each node corresponds to a plugin id, and each edge indicates a declared dependency.
    The graph supports topological traversal, raising an error if cycles remain.
    """

    def __init__(self):
        self._dependencies: dict[str, set[str]] = defaultdict(set)

    def add_dependencies(self, dependee: str, dependencies: Iterable[str]):
        """
        Add one or more dependencies to the graph for a given dependee node.

        Args:
            dependee: The plugin id whose dependencies are being registered.
            dependencies: Plugin ids this dependee depends on.
        """
        self._dependencies[dependee].update(dependencies)

    def traverse(self) -> Iterator[str]:
        """
        Perform a topological traversal of the dependency graph.

        Plugins that become ready at the same time are yielded in the order they
        were added to the graph.

        Yields:
            Plugin ids in an order where all dependencies of each node
            are yielded before the node itself.

        Raises:
            CyclicDependencyError: If any cycles remain.
        """
        remaining = {
            dependee: set(dependencies)
            for dependee, dependencies in self._dependencies.items()
        }
        ready = deque(
            dependee for dependee, dependencies in remaining.items() if not dependencies
        )

        while ready:
            next_item = ready.popleft()
            yield next_item

            del remaining[next_item]
            for dependee, dependencies in remaining.items():
                if dependencies:
                    dependencies.discard(next_item)
                    if not dependencies:
                        ready.append(dependee)

        if remaining:
            raise CyclicDependencyError(remaining.keys())


class PluginTreeBuilder:
    """Resolve plugin records into a :class:`PluginTree`."""

    def build_order(self, records: Iterable[PluginRecord]) -> list[str]:
        """Order plugin ids so that every plugin follows all of its dependencies.

        Raises:
            DependencyError: If two records share an id.
            CyclicDependencyError: If the dependencies contain a cycle.
        """
        return _build_order(_known_dependencies(_records_by_unique_id(records)))

    def build(self, records: Iterable[PluginRecord]) -> PluginTree:
        """Build a tree from plugin records.

        Dependencies on ids outside ``records`` are ignored. A plugin whose
        descriptor cannot be constructed is left out of the tree, together with
        every plugin that depends on it.

        Args:
            records: Discovered plugins. Their order decides the order of
                branches and of dependents that become ready together.

        Returns:
            The built :class:`PluginTree`. No plugin hook has been called.

        Raises:
            DependencyError: If two records share an id.
            CyclicDependencyError: If the dependencies contain a cycle.
        """
        records_by_id = _records_by_unique_id(records)
        dependencies = _known_dependencies(records_by_id)
        build_order = _build_order(dependencies)

        transitive: dict[str, frozenset[str]] = {}
        for plugin_id in build_order:
            transitive[plugin_id] = dependencies[plugin_id].union(
                *(transitive[dependency] for dependency in dependencies[plugin_id])
            )

        positions = {plugin_id: index for index, plugin_id in enumerate(records_by_id)}
        tree = PluginTree()
        nodes: dict[str, PluginTreeNode] = {}
        for plugin_id in build_order:
            current_dependencies = dependencies[plugin_id]

            missing = [d for d in current_dependencies if d not in nodes]
            if missing:
                logger.warning(
                    "Excluding plugin %s: dependencies %s are unavailable",
                    plugin_id,
                    sorted(missing),
                )
                continue

            plugin = _construct(records_by_id[plugin_id])
            if plugin is None:
                continue

            node = PluginTreeNode(plugin, plugin_id)
            if not current_dependencies:
                tree._add_branch(node)

            for dependency in sorted(current_dependencies, key=positions.__getitem__):
                if _is_direct_dependency(dependency, current_dependencies, transitive):
                    nodes[dependency].add_dependent(node)

            nodes[plugin_id] = node

        return tree


def _is_direct_dependency(
    dependency: str, dependencies: frozenset[str], transitive: dict[str, frozenset[str]]
) -> bool:
    """Check that no other dependency already leads to ``dependency``."""
    return all(
        dependency not in transitive[other]
        for other in dependencies
        if other != dependency
    )


def _construct(record: PluginRecord) -> Optional[Any]:
    try:
        plugin = record.construct()
    except Exception:
        logger.warning("Excluding plugin %s: construction failed", record.plugin_id, exc_info=True)
        return None

    if plugin is None:
        logger.warning("Excluding plugin %s: no descriptor was constructed", record.plugin_id)
        return None
    if not is_plugin_descriptor(plugin):
        logger.warning(
            "Excluding plugin %s: %r does not provide the required plugin hooks",
            record.plugin_id,
            plugin,
        )
        return None
    return plugin


def _records_by_unique_id(records: Iterable[PluginRecord]) -> dict[str, PluginRecord]:
    records_by_id: dict[str, PluginRecord] = {}

    for record in records:
        if record.plugin_id in records_by_id:
            raise DependencyError(f"Duplicate plugin id '{record.plugin_id}'")
        records_by_id[record.plugin_id] = record

    return records_by_id


def _known_dependencies(records_by_id: dict[str, PluginRecord]) -> dict[str, frozenset[str]]:
    return {
        plugin_id: frozenset(
            dependency
            for dependency in record.dependencies
            if dependency in records_by_id
        )
        for plugin_id, record in records_by_id.items()
    }


def _build_order(dependencies: dict[str, frozenset[str]]) -> list[str]:
    graph = _DependencyGraph()
    for plugin_id, plugin_dependencies in dependencies.items():
        graph.add_dependencies(plugin_id, plugin_dependencies)
    build_order = list(graph.traverse())
    logger.debug("Plugin build order: %s", build_order)
    return build_order
