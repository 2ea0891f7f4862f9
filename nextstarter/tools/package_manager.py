"""Package-manager detection and dependency installation.

Detection probes ``pnpm`` then ``yarn`` and settles on ``npm``.  Installs go
through a fallback chain: when the active manager fails, npm is tried and,
if it succeeds, becomes the active manager for the rest of the run.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from nextstarter.config import PackageManager
from nextstarter.utils import print_warning, run_command

from .base import InstallOutcome, ToolResult

PROBE_ORDER: tuple[PackageManager, ...] = (PackageManager.PNPM, PackageManager.YARN)

CORE_DEPENDENCIES: tuple[str, ...] = (
    "class-variance-authority",
    "clsx",
    "tailwind-merge",
    "lucide-react",
    "tailwindcss-animate",
)

# Non-interactive, quiet installs.
FAST_ENV: dict[str, str] = {
    "CI": "true",
    "DISABLE_OPENCOLLECTIVE": "1",
    "DISABLE_NOTIFIER": "1",
    "NEXT_TELEMETRY_DISABLED": "1",
    "NPM_CONFIG_FUND": "0",
    "NPM_CONFIG_AUDIT": "false",
}


async def is_available(manager: PackageManager, timeout: int = 15) -> bool:
    """``True`` if ``<manager> --version`` exits cleanly."""
    returncode, _, _ = await run_command([manager.value, "--version"], timeout=timeout)
    return returncode == 0


async def detect_package_manager(timeout: int = 15) -> PackageManager:
    """Return the first installed manager of pnpm, yarn; npm otherwise.

    Never raises: a missing binary is just a negative probe.
    """
    for candidate in PROBE_ORDER:
        if await is_available(candidate, timeout):
            return candidate
    return PackageManager.NPM


async def resolve_package_manager(choice: PackageManager, timeout: int = 15) -> PackageManager:
    if choice is PackageManager.AUTO:
        return await detect_package_manager(timeout)
    return choice


def add_args(manager: PackageManager, packages: list[str], dev: bool = False) -> list[str]:
    """``npm install [-D] ...`` / ``pnpm add [-D] ...`` / ``yarn add [-D] ...``."""
    args = [manager.value, manager.add_subcommand]
    if dev:
        args.append("-D")
    return args + list(packages)


def install_args(manager: PackageManager) -> list[str]:
    args = [manager.value, "install"]
    if manager in (PackageManager.PNPM, PackageManager.YARN):
        args.append("--prefer-offline")
    return args


class PackageInstaller:
    """Runs dependency commands for one project directory.

    Attributes:
        manager: The active package manager.  Switches to npm after a
            successful fallback.
    """

    def __init__(
        self,
        manager: PackageManager,
        project_dir: Path,
        *,
        timeout: int = 600,
        fast: bool = False,
    ) -> None:
        if manager is PackageManager.AUTO:
            raise ValueError("PackageInstaller needs a concrete package manager")
        self.manager = manager
        self.project_dir = project_dir
        self.timeout = timeout
        self.env = dict(FAST_ENV) if fast else None

    async def add(self, packages: list[str], dev: bool = False, label: str | None = None) -> ToolResult:
        """Add *packages* to the project."""
        name = label or " ".join(packages)
        return await self._run_with_fallback(
            name, lambda manager: add_args(manager, packages, dev)
        )

    async def install(self) -> ToolResult:
        """Install everything listed in the manifest."""
        return await self._run_with_fallback("install", install_args)

    async def _run_with_fallback(
        self, name: str, build_args: Callable[[PackageManager], list[str]]
    ) -> ToolResult:
        attempts: list[str] = []
        args = build_args(self.manager)
        attempts.append(" ".join(args))
        returncode, stdout, stderr = await run_command(
            args, cwd=self.project_dir, timeout=self.timeout, env=self.env
        )
        if returncode == 0:
            return ToolResult(name, InstallOutcome.SUCCEEDED, stdout, attempts=attempts)

        if self.manager is PackageManager.NPM:
            return ToolResult(name, InstallOutcome.FAILED, stderr or stdout, attempts=attempts)

        print_warning(f"{self.manager.value} failed for '{name}', trying npm instead...")
        fallback_args = build_args(PackageManager.NPM)
        attempts.append(" ".join(fallback_args))
        returncode, stdout, fb_stderr = await run_command(
            fallback_args, cwd=self.project_dir, timeout=self.timeout, env=self.env
        )
        if returncode == 0:
            self.manager = PackageManager.NPM
            return ToolResult(name, InstallOutcome.SUCCEEDED_VIA_FALLBACK, stdout, attempts=attempts)
        return ToolResult(
            name, InstallOutcome.FAILED, fb_stderr or stderr or stdout, attempts=attempts
        )
