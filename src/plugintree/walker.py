"""Depth-first traversal of a plugin tree.

Both walkers visit every node reachable from the given branches exactly once,
in the order the branches are supplied: a node linked from several parents runs
under the first branch that reaches it. For each node they

1. run the pre-operation and emit its result,
2. if it failed, emit a cascaded failure for each transitive dependent,
3. descend into every direct dependent, whether or not the node failed, and
4. run the post-operation, if one was given and nothing in the subtree failed.

A walk never stops early, so the emitted results describe every affected plugin.
Exceptions raised by an operation are reported as failures of that node instead
of escaping the walk.
"""

import logging
from typing import (
    AsyncIterator,
    Awaitable,
    Callable,
    Iterable,
    Iterator,
    Optional,
)

from plugintree.cancellation import CancellationToken
from plugintree.errors import (
    Cancelled,
    ExceptionError,
    OperationCancelled,
    OperationFailed,
    PluginError,
    ResultError,
)
from plugintree.node import PluginTreeNode
from plugintree.result import Result

__all__ = ["ErrorFactory", "Operation", "AsyncOperation", "walk", "walk_async"]

logger = logging.getLogger(__name__)

ErrorFactory = Callable[[PluginTreeNode, PluginTreeNode], ResultError]
"""Builds the error for a node (first argument) whose ancestor (second) failed."""

Operation = Callable[[PluginTreeNode], Optional[Result]]
AsyncOperation = Callable[[PluginTreeNode, CancellationToken], Awaitable[Optional[Result]]]


def walk(
    branches: Iterable[PluginTreeNode],
    error_factory: ErrorFactory,
    pre_operation: Operation,
    post_operation: Optional[Operation] = None,
) -> Iterator[Result]:
    """Walk the tree rooted at ``branches``, yielding a result per operation.

    Args:
        branches: Root nodes, walked in the given order.
        error_factory: Creates the failure reported for a dependent of a failed node.
        pre_operation: Run once per node on the way down.
        post_operation: Run once per node on the way up, only over clean subtrees.
    """
    visited: set[PluginTreeNode] = set()
    for branch in branches:
        yield from _walk_node(branch, visited, error_factory, pre_operation, post_operation)


async def walk_async(
    branches: Iterable[PluginTreeNode],
    error_factory: ErrorFactory,
    pre_operation: AsyncOperation,
    post_operation: Optional[AsyncOperation] = None,
    ct: Optional[CancellationToken] = None,
) -> AsyncIterator[Result]:
    """Asynchronous counterpart of :func:`walk`.

    Operations are awaited one at a time; no two operations of the same walk
    ever run concurrently. Each operation receives ``ct`` and is expected to
    check it itself.
    """
    ct = ct or CancellationToken()
    visited: set[PluginTreeNode] = set()
    for branch in branches:
        async for result in _walk_node_async(
            branch, visited, error_factory, pre_operation, post_operation, ct
        ):
            yield result


def _walk_node(
    node: PluginTreeNode,
    visited: set[PluginTreeNode],
    error_factory: ErrorFactory,
    pre_operation: Operation,
    post_operation: Optional[Operation],
) -> Iterator[Result]:
    if node in visited:
        return
    visited.add(node)

    subtree_clean = True
    for result in _perform(node, error_factory, pre_operation):
        subtree_clean = subtree_clean and result.is_success
        yield result

    for dependent in node.dependents:
        for result in _walk_node(dependent, visited, error_factory, pre_operation, post_operation):
            subtree_clean = subtree_clean and result.is_success
            yield result

    if post_operation is None or not subtree_clean:
        return

    yield from _perform(node, error_factory, post_operation)


async def _walk_node_async(
    node: PluginTreeNode,
    visited: set[PluginTreeNode],
    error_factory: ErrorFactory,
    pre_operation: AsyncOperation,
    post_operation: Optional[AsyncOperation],
    ct: CancellationToken,
) -> AsyncIterator[Result]:
    if node in visited:
        return
    visited.add(node)

    subtree_clean = True
    for result in await _perform_async(node, error_factory, pre_operation, ct):
        subtree_clean = subtree_clean and result.is_success
        yield result

    for dependent in node.dependents:
        async for result in _walk_node_async(
            dependent, visited, error_factory, pre_operation, post_operation, ct
        ):
            subtree_clean = subtree_clean and result.is_success
            yield result

    if post_operation is None or not subtree_clean:
        return

    for result in await _perform_async(node, error_factory, post_operation, ct):
        yield result


def _perform(
    node: PluginTreeNode, error_factory: ErrorFactory, operation: Operation
) -> list[Result]:
    logger.debug("Running %s on plugin %s", _operation_name(operation), node.plugin_id)
    try:
        result = _attributed(node, Result.coerce(operation(node)))
    except OperationCancelled:
        result = Result.from_error(Cancelled(node))
    except Exception as e:
        result = Result.from_error(OperationFailed(node, ExceptionError(e)))
    return _with_cascade(node, result, error_factory)


async def _perform_async(
    node: PluginTreeNode,
    error_factory: ErrorFactory,
    operation: AsyncOperation,
    ct: CancellationToken,
) -> list[Result]:
    logger.debug("Running %s on plugin %s", _operation_name(operation), node.plugin_id)
    try:
        result = _attributed(node, Result.coerce(await operation(node, ct)))
    except OperationCancelled:
        result = Result.from_error(Cancelled(node))
    except Exception as e:
        result = Result.from_error(OperationFailed(node, ExceptionError(e)))
    return _with_cascade(node, result, error_factory)


def _attributed(node: PluginTreeNode, result: Result) -> Result:
    """Ensure a failed result names the node whose operation produced it."""
    if result.is_success or isinstance(result.error, PluginError):
        return result
    return Result.from_error(OperationFailed(node, result.error))


def _with_cascade(
    node: PluginTreeNode, result: Result, error_factory: ErrorFactory
) -> list[Result]:
    if result.is_success:
        return [result]

    logger.warning("Plugin %s failed: %s", node.plugin_id, result.error.message)
    return [result] + [
        Result.from_error(error_factory(dependent, node))
        for dependent in node.all_dependents()
    ]


def _operation_name(operation) -> str:
    return getattr(operation, "__name__", repr(operation))
