"""The plugin tree and its lifecycle phases.

A :class:`PluginTree` is produced by :class:`~plugintree.tree_builder.PluginTreeBuilder`
and then driven through its phases by the host application, in order:

    >>> tree = make_plugin_tree(records)
    >>> tree.configure_services(services).unwrap()
    >>> (await tree.initialize(context)).unwrap()
    >>> (await tree.migrate(context)).unwrap()

Each phase visits every plugin once, dependencies before dependents, and returns a
single :class:`~plugintree.result.Result`. Phases must not overlap on one tree.
"""

import logging
from typing import Any, AsyncIterator, Iterable, Iterator, Optional

from plugintree.cancellation import CancellationToken
from plugintree.domain import supports_migration
from plugintree.errors import (
    PluginConfigurationFailed,
    PluginInitializationFailed,
    PluginMigrationFailed,
)
from plugintree.node import PluginTreeNode
from plugintree.result import Result, aggregate
from plugintree.walker import (
    AsyncOperation,
    ErrorFactory,
    Operation,
    walk,
    walk_async,
)

__all__ = ["PluginTree"]

logger = logging.getLogger(__name__)


class PluginTree:
    """A forest of plugin nodes linked by direct dependency.

    Attributes:
        branches: Nodes whose plugin has no dependency on any other known plugin,
            in the order their walks are performed.
    """

    def __init__(self, branches: Optional[Iterable[PluginTreeNode]] = None):
        self._branches: list[PluginTreeNode] = []
        for branch in branches or []:
            self._add_branch(branch)

    @property
    def branches(self) -> tuple[PluginTreeNode, ...]:
        return tuple(self._branches)

    def _add_branch(self, branch: PluginTreeNode):
        if branch in self._branches:
            return
        self._branches.append(branch)

    def nodes(self) -> Iterator[PluginTreeNode]:
        """Yield every node in the tree once, in walk order."""
        seen: set[PluginTreeNode] = set()
        for branch in self._branches:
            if branch not in seen:
                seen.add(branch)
                yield branch
            for node in branch.all_dependents():
                if node not in seen:
                    seen.add(node)
                    yield node

    def configure_services(self, services: Any) -> Result:
        """Let each plugin register its services.

        Args:
            services: Registration surface handed unmodified to every plugin.
        """

        def configure(node: PluginTreeNode) -> Optional[Result]:
            return node.plugin.configure_services(services)

        return self._run_phase(
            "configure_services",
            self.walk(_cascade(PluginConfigurationFailed), configure),
        )

    async def initialize(
        self, context: Any, ct: Optional[CancellationToken] = None
    ) -> Result:
        """Initialize each plugin.

        Args:
            context: Lookup surface handed unmodified to every plugin.
            ct: Cancellation token passed to each plugin's ``initialize``.
        """

        async def initialize(node: PluginTreeNode, token: CancellationToken) -> Optional[Result]:
            return await node.plugin.initialize(context, token)

        results = [
            result
            async for result in self.walk_async(
                _cascade(PluginInitializationFailed), initialize, ct=ct
            )
        ]
        return self._run_phase("initialize", results)

    async def migrate(
        self, context: Any, ct: Optional[CancellationToken] = None
    ) -> Result:
        """Migrate the persistent store of each plugin that has one.

        Plugins without a ``migrate`` hook succeed without doing anything, and
        their dependents are still migrated.
        """

        async def migrate(node: PluginTreeNode, token: CancellationToken) -> Optional[Result]:
            if not supports_migration(node.plugin):
                return Result.from_success()
            return await node.plugin.migrate(context, token)

        results = [
            result
            async for result in self.walk_async(
                _cascade(PluginMigrationFailed), migrate, ct=ct
            )
        ]
        return self._run_phase("migrate", results)

    def walk(
        self,
        error_factory: ErrorFactory,
        pre_operation: Operation,
        post_operation: Optional[Operation] = None,
    ) -> Iterator[Result]:
        """Walk this tree; see :func:`plugintree.walker.walk`."""
        return walk(self._branches, error_factory, pre_operation, post_operation)

    def walk_async(
        self,
        error_factory: ErrorFactory,
        pre_operation: AsyncOperation,
        post_operation: Optional[AsyncOperation] = None,
        ct: Optional[CancellationToken] = None,
    ) -> AsyncIterator[Result]:
        """Walk this tree asynchronously; see :func:`plugintree.walker.walk_async`."""
        return walk_async(self._branches, error_factory, pre_operation, post_operation, ct)

    @staticmethod
    def _run_phase(phase: str, results: Iterable[Result]) -> Result:
        results = list(results)
        outcome = aggregate(results)
        if outcome.is_success:
            logger.info("Phase %s succeeded for %d plugin(s)", phase, len(results))
        else:
            logger.info(
                "Phase %s failed with %d error(s)", phase, len(outcome.error.errors)
            )
        return outcome

    def __repr__(self) -> str:
        return f"PluginTree({list(self._branches)!r})"


def _cascade(error_type) -> ErrorFactory:
    def error_factory(node: PluginTreeNode, ancestor: PluginTreeNode):
        return error_type(node, ancestor)

    return error_factory
