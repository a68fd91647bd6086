import pytest

from plugintree.builders import make_plugin_tree
from plugintree.cancellation import CancellationToken
from plugintree.errors import (
    AggregateError,
    Cancelled,
    OperationFailed,
    PluginConfigurationFailed,
    PluginInitializationFailed,
    PluginLifecycleError,
    PluginMigrationFailed,
)
from plugintree.node import PluginTreeNode
from plugintree.tree import PluginTree


@pytest.fixture
def services() -> dict:
    return {}


def test_configure_services_visits_dependencies_first(diamond, calls, services):
    result = make_plugin_tree(diamond).configure_services(services)

    assert result.is_success
    assert calls == [
        ("configure_services", "A"),
        ("configure_services", "B"),
        ("configure_services", "D"),
        ("configure_services", "C"),
    ]


def test_configure_services_forwards_services_unmodified(make_plugin, make_record, services):
    plugin = make_plugin("Core")

    make_plugin_tree([make_record(plugin)]).configure_services(services)

    assert plugin.seen_services is services


def test_configure_failure_reports_root_cause_and_fallout(make_plugin, make_record, services):
    tree = make_plugin_tree([
        make_record(make_plugin("Core")),
        make_record(make_plugin("Logging", fail_on={"configure_services"}), "Core"),
        make_record(make_plugin("Metrics"), "Core", "Logging"),
        make_record(make_plugin("Cache"), "Core"),
    ])

    result = tree.configure_services(services)

    assert not result.is_success
    error = result.error
    assert isinstance(error, AggregateError)
    assert [type(e) for e in error.errors] == [OperationFailed, PluginConfigurationFailed]
    assert [e.plugin_id for e in error.root_causes] == ["Logging"]
    assert [e.plugin_id for e in error.cascaded] == ["Metrics"]
    assert "Metrics (Metrics) skipped because Logging failed" in error.message


def test_failed_phase_unwraps_to_exception(make_plugin, make_record, services):
    tree = make_plugin_tree([make_record(make_plugin("Core", raise_on={"configure_services"}))])

    with pytest.raises(PluginLifecycleError, match="Core exploded during configure_services") as exc_info:
        tree.configure_services(services).unwrap()

    assert isinstance(exc_info.value.error, AggregateError)


def test_successful_phase_unwraps_quietly(diamond, services):
    make_plugin_tree(diamond).configure_services(services).unwrap()


def test_failure_count_covers_every_transitive_dependent(make_plugin, make_record, services):
    tree = make_plugin_tree([
        make_record(make_plugin("A", fail_on={"configure_services"})),
        make_record(make_plugin("B"), "A"),
        make_record(make_plugin("C"), "A"),
        make_record(make_plugin("D"), "B", "C"),
    ])

    result = tree.configure_services(services)

    assert len(result.error.errors) == 4


@pytest.mark.asyncio
async def test_initialize_runs_each_plugin_once(diamond, calls):
    context = object()

    result = await make_plugin_tree(diamond).initialize(context)

    assert result.is_success
    assert sorted(calls) == [("initialize", name) for name in "ABCD"]


@pytest.mark.asyncio
async def test_initialize_failure_uses_initialization_error(make_plugin, make_record):
    tree = make_plugin_tree([
        make_record(make_plugin("Core", raise_on={"initialize"})),
        make_record(make_plugin("Logging"), "Core"),
    ])

    result = await tree.initialize(object())

    errors = result.error.errors
    assert [type(e) for e in errors] == [OperationFailed, PluginInitializationFailed]
    assert "failed to initialize" in errors[1].message


@pytest.mark.asyncio
async def test_initialize_observes_cancellation(diamond):
    token = CancellationToken()
    token.cancel()

    result = await make_plugin_tree(diamond).initialize(object(), token)

    errors = result.error.errors
    assert isinstance(errors[0], Cancelled)
    assert sum(isinstance(e, Cancelled) for e in errors) == 4
    # A cascades to B, D and C; B and C each cascade to D again
    assert sum(isinstance(e, PluginInitializationFailed) for e in errors) == 5


@pytest.mark.asyncio
async def test_migrate_skips_plugins_without_migrations(make_plugin, make_record, calls):
    tree = make_plugin_tree([
        make_record(make_plugin("Core", migratable=True)),
        make_record(make_plugin("Logging"), "Core"),
        make_record(make_plugin("Storage", migratable=True), "Logging"),
    ])

    result = await tree.migrate(object())

    assert result.is_success
    assert calls == [("migrate", "Core"), ("migrate", "Storage")]


@pytest.mark.asyncio
async def test_migration_failure_cascades_past_non_migratable_plugins(make_plugin, make_record):
    tree = make_plugin_tree([
        make_record(make_plugin("Core", migratable=True, fail_on={"migrate"})),
        make_record(make_plugin("Logging"), "Core"),
        make_record(make_plugin("Storage", migratable=True), "Logging"),
    ])

    result = await tree.migrate(object())

    errors = result.error.errors
    assert [type(e) for e in errors] == [
        OperationFailed,
        PluginMigrationFailed,
        PluginMigrationFailed,
    ]
    assert [e.plugin_id for e in errors] == ["Core", "Logging", "Storage"]


def test_end_to_end_tree_shape(make_plugin, make_record):
    tree = make_plugin_tree([
        make_record(make_plugin("Core")),
        make_record(make_plugin("Logging"), "Core"),
        make_record(make_plugin("Metrics"), "Core", "Logging"),
    ])

    (core,) = tree.branches
    (logging_node,) = core.dependents
    (metrics,) = logging_node.dependents
    assert (core.plugin_id, logging_node.plugin_id, metrics.plugin_id) == ("Core", "Logging", "Metrics")
    assert metrics.dependents == ()


def test_branches_are_not_duplicated(make_plugin):
    branch = PluginTreeNode(make_plugin("Core"), "Core")

    tree = PluginTree([branch, branch])

    assert tree.branches == (branch,)


def test_empty_tree_succeeds(services):
    assert PluginTree().configure_services(services).is_success
