"""Plugintree plugin lifecycle framework.

Plugintree arranges plugins that depend on one another into a tree of direct
dependencies, then drives every plugin through its lifecycle phases (configure
services, initialize, migrate) exactly once, dependencies before dependents. When
a plugin fails, every plugin depending on it is reported as failed too, so a
single phase result describes both root causes and their fallout.

Key Features:
    - Declarative plugin registration with dependencies by id or by class
    - Discovery of installed plugins through entry points
    - Transitive reduction of the declared dependency relation
    - Cycle detection before any plugin code runs
    - Once-only, sequential visitation with cooperative cancellation

Basic Usage:
    >>> from plugintree.registry import PluginRegistry
    >>> from plugintree.builders import make_plugin_tree
    >>>
    >>> registry = PluginRegistry()
    >>>
    >>> @registry.plugin()
    >>> class CorePlugin(PluginDescriptor):
    ...     name = "Core"
    ...     description = "Core services"
    >>>
    >>> tree = make_plugin_tree(registry.registered_plugins())
    >>> tree.configure_services(services).unwrap()
    >>> (await tree.initialize(context)).unwrap()

The framework consists of several core modules:
    - domain: Plugin descriptor base classes and discovered plugin records
    - registry: In-process plugin registration
    - service: Discovery from registries and entry points
    - builders: High-level tree construction functions
    - tree_builder: Dependency ordering and transitive reduction
    - tree: The plugin tree and its lifecycle phases
    - walker: Depth-first traversal with cascading failures
    - result: Operation outcomes and their aggregation
    - errors: Framework-specific exceptions and result errors
"""
