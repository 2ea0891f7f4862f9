"""Component installation through the shadcn generator.

Library components are added either one at a time (one retry each, with the
"skip questions" flag) or, in fast mode, in batches that fall back to
one-at-a-time when a batch fails.  Custom components never reach the
generator; they are rendered from local templates.  A component that still
fails is recorded and installation carries on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from nextstarter.catalog import CUSTOM_DEPENDENCIES, ComponentSelection
from nextstarter.config import ToolConfig
from nextstarter.scaffolder.features import FeatureWriter
from nextstarter.utils import print_info, print_warning, run_command

from .base import InstallOutcome, ToolResult
from .package_manager import PackageInstaller

BASE_ENV: dict[str, str] = {"FORCE_COLOR": "1", "CI": "true"}
RETRY_ENV: dict[str, str] = {**BASE_ENV, "NEXT_SHADCN_SKIP_QUESTIONS": "1"}

SKIPPED_MARKER = "Skipped"


def chunked(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


@dataclass
class ComponentReport:
    """Per-component results of one installation run."""

    results: list[ToolResult] = field(default_factory=list)

    @property
    def installed(self) -> list[str]:
        return [r.name for r in self.results if r.ok]

    @property
    def failed(self) -> list[str]:
        return [r.name for r in self.results if not r.ok]

    @property
    def skipped(self) -> list[str]:
        return [r.name for r in self.results if r.skipped]

    def extend(self, results: list[ToolResult]) -> None:
        self.results.extend(results)


class ComponentInstaller:
    """Adds a :class:`ComponentSelection` to one project."""

    def __init__(
        self,
        project_dir: Path,
        tools: ToolConfig,
        writer: FeatureWriter,
        packages: PackageInstaller,
    ) -> None:
        self.project_dir = project_dir
        self.tools = tools
        self.writer = writer
        self.packages = packages

    # -- Library components --------------------------------------------------

    def _add_args(self, components: list[str], *, batch: bool) -> list[str]:
        args = [*self.tools.component_command, *components, "--yes"]
        if batch:
            args.append("--overwrite")
        args += ["--cwd", str(self.project_dir)]
        return args

    async def add_one(self, component: str) -> ToolResult:
        """Add one component, retrying once with questions suppressed."""
        attempts: list[str] = []
        detail = ""
        args = self._add_args([component], batch=False)
        for env in (BASE_ENV, RETRY_ENV):
            attempts.append(" ".join(args))
            returncode, stdout, stderr = await run_command(
                args, cwd=self.project_dir, timeout=self.tools.component_timeout, env=env
            )
            if returncode == 0:
                outcome = (
                    InstallOutcome.SUCCEEDED if env is BASE_ENV else InstallOutcome.SUCCEEDED_VIA_FALLBACK
                )
                return ToolResult(
                    component,
                    outcome,
                    stdout,
                    skipped=SKIPPED_MARKER in stdout,
                    attempts=attempts,
                )
            detail = stderr or stdout
        return ToolResult(component, InstallOutcome.FAILED, detail, attempts=attempts)

    async def add_batch(self, components: list[str]) -> list[ToolResult]:
        """Add *components* in chunks of ``batch_size``.

        A chunk that fails as a whole is retried component by component;
        components that make it through that way are marked as fallback
        successes.
        """
        results: list[ToolResult] = []
        for chunk in chunked(components, self.tools.batch_size):
            args = self._add_args(chunk, batch=True)
            returncode, stdout, stderr = await run_command(
                args, cwd=self.project_dir, timeout=self.tools.component_timeout, env=RETRY_ENV
            )
            if returncode == 0:
                skipped = SKIPPED_MARKER in stdout
                results.extend(
                    ToolResult(c, InstallOutcome.SUCCEEDED, skipped=skipped, attempts=[" ".join(args)])
                    for c in chunk
                )
                continue

            print_warning(f"Batch {', '.join(chunk)} failed; installing one by one...")
            for component in chunk:
                single = await self.add_one(component)
                single.attempts.insert(0, " ".join(args))
                if single.outcome is InstallOutcome.SUCCEEDED:
                    single.outcome = InstallOutcome.SUCCEEDED_VIA_FALLBACK
                results.append(single)
        return results

    # -- Custom components ---------------------------------------------------

    async def add_custom(self, component: str) -> ToolResult:
        """Render a custom component and add the npm packages it imports."""
        try:
            path = await self.writer.write_custom_component(component)
        except OSError as exc:
            return ToolResult(component, InstallOutcome.FAILED, str(exc))

        deps = list(CUSTOM_DEPENDENCIES.get(component, ()))
        if deps:
            dep_result = await self.packages.add(deps)
            if not dep_result.ok:
                return ToolResult(
                    component,
                    InstallOutcome.FAILED,
                    f"wrote {path.name} but could not add {', '.join(deps)}: {dep_result.detail}",
                )
        return ToolResult(component, InstallOutcome.SUCCEEDED, str(path))

    # -- Whole selection -----------------------------------------------------

    async def install(self, selection: ComponentSelection, *, fast: bool) -> ComponentReport:
        report = ComponentReport()
        library = selection.library
        if library:
            if fast:
                report.extend(await self.add_batch(library))
            else:
                for component in library:
                    print_info(f"Adding {component}...")
                    report.extend([await self.add_one(component)])
        for component in selection.custom:
            report.extend([await self.add_custom(component)])
        return report
