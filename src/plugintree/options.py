"""Options controlling plugin discovery."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from plugintree.registry import PluginRegistry

__all__ = ["PluginServiceOptions", "DEFAULT_ENTRY_POINT_GROUP"]

DEFAULT_ENTRY_POINT_GROUP = "plugintree.plugins"


@dataclass(frozen=True)
class PluginServiceOptions:
    """Where :class:`~plugintree.service.PluginService` looks for plugins.

    Attributes:
        registries: In-process registries, consulted first and in order.
        scan_entry_points: Whether installed distributions are scanned for plugins.
        entry_point_group: The entry point group scanned for plugins.
    """

    registries: tuple["PluginRegistry", ...] = ()
    scan_entry_points: bool = True
    entry_point_group: str = DEFAULT_ENTRY_POINT_GROUP

    @staticmethod
    def default() -> "PluginServiceOptions":
        return PluginServiceOptions()
