from typing import Any, Iterable, Optional

import pytest

from plugintree.domain import MigratablePlugin, PluginDescriptor, PluginRecord
from plugintree.result import Result


class RecordingPlugin(PluginDescriptor):
    """Plugin that logs each hook call and fails or raises on request."""

    description = "Plugin used in tests"

    def __init__(self, name: str, calls: list, fail_on: Iterable[str] = (), raise_on: Iterable[str] = ()):
        self._name = name
        self.calls = calls
        self.fail_on = set(fail_on)
        self.raise_on = set(raise_on)
        self.seen_services: Optional[Any] = None
        self.seen_context: Optional[Any] = None

    @property
    def name(self) -> str:
        return self._name

    def _outcome(self, hook: str) -> Result:
        self.calls.append((hook, self._name))
        if hook in self.raise_on:
            raise RuntimeError(f"{self._name} exploded during {hook}")
        if hook in self.fail_on:
            return Result.from_error(f"{self._name} could not {hook}")
        return Result.from_success()

    def configure_services(self, services):
        self.seen_services = services
        return self._outcome("configure_services")

    async def initialize(self, context, ct):
        self.seen_context = context
        ct.raise_if_cancelled()
        return self._outcome("initialize")


class RecordingMigratablePlugin(RecordingPlugin, MigratablePlugin):
    async def migrate(self, context, ct):
        ct.raise_if_cancelled()
        return self._outcome("migrate")


@pytest.fixture
def calls() -> list:
    return []


@pytest.fixture
def make_plugin(calls):
    def make(name: str, migratable: bool = False, **kwargs) -> RecordingPlugin:
        plugin_type = RecordingMigratablePlugin if migratable else RecordingPlugin
        return plugin_type(name, calls, **kwargs)

    return make


@pytest.fixture
def make_record():
    def make(plugin: Any, *dependencies: str) -> PluginRecord:
        return PluginRecord(plugin.name, lambda: plugin, frozenset(dependencies))

    return make


@pytest.fixture
def diamond(make_plugin, make_record) -> list[PluginRecord]:
    """A <- B, A <- C, B <- D, C <- D."""
    return [
        make_record(make_plugin("A")),
        make_record(make_plugin("B"), "A"),
        make_record(make_plugin("C"), "A"),
        make_record(make_plugin("D"), "B", "C"),
    ]
