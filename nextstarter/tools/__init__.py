"""Adapters for the external tools a run depends on."""

from .base import InstallOutcome, ToolResult
from .components import ComponentInstaller, ComponentReport
from .package_manager import PackageInstaller, detect_package_manager, resolve_package_manager
from .scaffold import ScaffoldRunner, verify_scaffold

__all__ = [
    "ComponentInstaller",
    "ComponentReport",
    "InstallOutcome",
    "PackageInstaller",
    "ScaffoldRunner",
    "ToolResult",
    "detect_package_manager",
    "resolve_package_manager",
    "verify_scaffold",
]
