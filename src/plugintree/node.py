"""Nodes of the plugin dependency tree."""

from typing import Any, Iterator, Optional

__all__ = ["PluginTreeNode"]


class PluginTreeNode:
    """A plugin descriptor together with the nodes that directly depend on it.

    A plugin that is a direct dependency of several others is represented by a
    single node shared between all of its parents. Nodes compare and hash by
    identity, so a node reached through any parent is recognised as the same.

    Attributes:
        plugin: The wrapped plugin descriptor.
        plugin_id: The id the plugin was discovered under, if any.
    """

    def __init__(self, plugin: Any, plugin_id: Optional[str] = None):
        self._plugin = plugin
        self._plugin_id = plugin_id
        # dict keys keep insertion order and give set membership
        self._dependents: dict["PluginTreeNode", None] = {}

    @property
    def plugin(self) -> Any:
        return self._plugin

    @property
    def plugin_id(self) -> str:
        return self._plugin_id if self._plugin_id is not None else str(self._plugin)

    @property
    def dependents(self) -> tuple["PluginTreeNode", ...]:
        """Nodes whose plugin depends directly on this node's plugin."""
        return tuple(self._dependents)

    def add_dependent(self, node: "PluginTreeNode"):
        """Record a direct dependent. Adding a node twice has no effect."""
        self._dependents.setdefault(node, None)

    def all_dependents(self) -> Iterator["PluginTreeNode"]:
        """Yield every transitive dependent of this node, depth first.

        Each dependent is yielded once, even if it can be reached through more
        than one path, and always after the dependent through which it was first
        reached.
        """
        seen: set["PluginTreeNode"] = set()
        stack = list(reversed(self.dependents))
        while stack:
            node = stack.pop()
            if node in seen:
                continue
            seen.add(node)
            yield node
            stack.extend(reversed(node.dependents))

    def __repr__(self) -> str:
        dependents = ", ".join(str(node.plugin) for node in self._dependents)
        return f"{self._plugin} => ({dependents})"
