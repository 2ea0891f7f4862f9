"""nextstarter generation pipeline.

Drives the ordered generation stages for one confirmed wizard run:

    scaffold -> chdir -> install-core-deps -> setup-components ->
    write-env -> write-readme -> theme-switch -> auth -> database ->
    docs -> responsive -> typescript-fixups

Optional stages are included or left out once, up front, from the
``FeatureSet``; the progress bar total is the length of that plan and the
pipeline advances it exactly once per planned stage.  External tool failures
degrade to warnings; only the scaffold/chdir gate can stop the run.
"""

from __future__ import annotations

import asyncio
import shutil
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from rich.progress import Progress, TaskID

from nextstarter.catalog import ComponentSelection, SelectionStrategy, required_components
from nextstarter.config import Config, FeatureSet, PackageManager, ProjectConfig
from nextstarter.errors import AbortRequested, PipelineError, RestartRequested, StructuralError
from nextstarter.scaffolder.features import FeatureWriter
from nextstarter.scaffolder.generator import ProjectGenerator
from nextstarter.scaffolder.layout import LayoutDocument
from nextstarter.scaffolder.templates import TemplateStore
from nextstarter.tools.base import InstallOutcome, ToolResult
from nextstarter.tools.components import ComponentInstaller, ComponentReport
from nextstarter.tools.package_manager import (
    CORE_DEPENDENCIES,
    PackageInstaller,
    resolve_package_manager,
)
from nextstarter.tools.scaffold import ScaffoldRunner
from nextstarter.utils import (
    console,
    create_progress,
    format_duration,
    generate_secret,
    is_directory_available,
    print_panel,
    print_success,
    print_summary_table,
    print_warning,
    summarize_list,
)

# ---------------------------------------------------------------------------
# Step plan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PipelineStep:
    key: str
    label: str


STEP_LABELS: dict[str, str] = {
    "scaffold": "Creating Next.js application",
    "chdir": "Preparing project directory",
    "install-core-deps": "Installing core dependencies",
    "setup-components": "Setting up UI components",
    "write-env": "Writing environment file",
    "write-readme": "Writing README",
    "theme-switch": "Adding theme switcher",
    "auth": "Setting up authentication",
    "database": "Setting up database",
    "docs": "Adding documentation",
    "responsive": "Adding responsive layout helpers",
    "typescript-fixups": "Finalizing TypeScript files",
}

# Stages whose failure ends the run; every other stage warns and continues.
HARD_STAGES: frozenset[str] = frozenset({"scaffold", "chdir"})


def plan_steps(features: FeatureSet) -> list[PipelineStep]:
    """The ordered stages a run with *features* will execute."""
    keys = ["scaffold", "chdir", "install-core-deps"]
    if features.install_components or required_components(features.enabled()):
        keys.append("setup-components")
    keys += ["write-env", "write-readme"]
    if features.theme_switch:
        keys.append("theme-switch")
    if features.auth:
        keys.append("auth")
    if features.database:
        keys.append("database")
    if features.include_docs:
        keys.append("docs")
    if features.responsive:
        keys.append("responsive")
    keys.append("typescript-fixups")
    return [PipelineStep(key, STEP_LABELS[key]) for key in keys]


def installable_components(features: FeatureSet, selection: ComponentSelection) -> ComponentSelection:
    """The user's pick plus the components enabled features import.

    With component installation off only the feature-required ones remain.
    """
    required = required_components(features.enabled())
    if features.install_components:
        return selection.including(required)
    return ComponentSelection(strategy=SelectionStrategy.CUSTOM, components=required)


class StepTracker:
    """Counts completed steps against the fixed plan, mirrored on a progress bar."""

    def __init__(self, steps: list[PipelineStep], progress: Progress | None = None) -> None:
        self.steps = list(steps)
        self.total = len(self.steps)
        self.completed = 0
        self.progress = progress
        self._task: TaskID | None = None
        if progress is not None:
            self._task = progress.add_task("Starting...", total=self.total)

    @property
    def finished(self) -> bool:
        return self.completed == self.total

    def start(self, step: PipelineStep) -> None:
        if self.progress is not None and self._task is not None:
            self.progress.update(self._task, description=step.label)

    def advance(self) -> None:
        if self.completed >= self.total:
            raise RuntimeError(f"Progress advanced past the {self.total} planned steps")
        self.completed += 1
        if self.progress is not None and self._task is not None:
            self.progress.advance(self._task)

    @contextmanager
    def suspended(self) -> Iterator[None]:
        """Hide the live progress display while the user answers a prompt."""
        if self.progress is None:
            yield
            return
        self.progress.stop()
        try:
            yield
        finally:
            self.progress.start()


# ---------------------------------------------------------------------------
# User decisions the pipeline may need
# ---------------------------------------------------------------------------


class CollisionChoice(str, Enum):
    RENAME = "rename"
    DELETE = "delete"
    CANCEL = "cancel"


class GateChoice(str, Enum):
    CREATE_MANUALLY = "create"
    RETRY = "retry"
    EXIT = "exit"


class PipelinePrompts(Protocol):
    async def resolve_collision(self, project: ProjectConfig) -> tuple[CollisionChoice, str | None]:
        """Target directory is not empty: rename (with the new name), delete, or cancel."""

    async def resolve_missing_project(self, error: StructuralError) -> GateChoice:
        """The project directory failed the gate."""


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class PipelineResult:
    project: ProjectConfig
    features: FeatureSet
    outcomes: list[ToolResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    failed_components: list[str] = field(default_factory=list)
    skipped_components: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    duration: float = 0.0

    @property
    def dev_command(self) -> str:
        return self.project.package_manager.dev_command


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """Generates one project from confirmed wizard answers.

    The project directory is passed explicitly to every stage and every
    subprocess; the process working directory is never changed.

    Attributes:
        project: Current project config.  Replaced on a collision rename and
            when the package manager falls back to npm.
        layout: Root layout document, rendered in the last stage.
        result: Accumulated outcomes and warnings.
    """

    _STAGE_METHODS: dict[str, str] = {
        "scaffold": "stage_scaffold",
        "chdir": "stage_chdir",
        "install-core-deps": "stage_install_core_deps",
        "setup-components": "stage_setup_components",
        "write-env": "stage_write_env",
        "write-readme": "stage_write_readme",
        "theme-switch": "stage_theme_switch",
        "auth": "stage_auth",
        "database": "stage_database",
        "docs": "stage_docs",
        "responsive": "stage_responsive",
        "typescript-fixups": "stage_typescript_fixups",
    }

    def __init__(
        self,
        config: Config,
        project: ProjectConfig,
        features: FeatureSet,
        selection: ComponentSelection,
        prompts: PipelinePrompts,
        *,
        store: TemplateStore | None = None,
    ) -> None:
        self.config = config
        self.project = project
        self.features = features
        self.selection = selection
        self.installable = installable_components(features, selection)
        self.prompts = prompts
        self.store = store or TemplateStore()
        self.generator = ProjectGenerator(self.store)
        self.scaffolder = ScaffoldRunner(config.tools, self.generator)
        self.steps = plan_steps(features)
        self.layout = LayoutDocument.for_project(project.name)
        self.writer = FeatureWriter(
            project, features, selection, secret=generate_secret(), store=self.store
        )
        self.packages: PackageInstaller | None = None
        self.tracker = StepTracker(self.steps)
        self.result = PipelineResult(project=project, features=features)

    @property
    def project_dir(self) -> Path:
        return self.project.app_directory

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> PipelineResult:
        """Execute every planned stage in order.

        Raises:
            PipelineError: The project directory could not be created.
            RestartRequested: The user chose to start over at the gate.
            AbortRequested: The user chose to exit at a prompt.
        """
        started = time.monotonic()
        await self._init()

        print_panel(
            f"[bold bright_cyan]Creating {self.project.name}[/bold bright_cyan]\n"
            f"Location        : {self.project_dir}\n"
            f"Package manager : {self.project.package_manager.value}\n"
            f"Steps           : {len(self.steps)}",
            title="nextstarter",
        )

        with create_progress() as progress:
            self.tracker = StepTracker(self.steps, progress)
            for step in self.steps:
                self.tracker.start(step)
                method = getattr(self, self._STAGE_METHODS[step.key])
                if step.key in HARD_STAGES:
                    await method()
                else:
                    try:
                        await method()
                    except (OSError, ValueError) as exc:
                        self._warn(f"{step.label} did not complete: {exc}")
                self.result.completed.append(step.key)
                self.tracker.advance()
                if self.config.step_delay:
                    await asyncio.sleep(self.config.step_delay)

        self.result.project = self.project
        self.result.duration = time.monotonic() - started
        self._print_final_summary()
        return self.result

    async def _init(self) -> None:
        if self.project.package_manager is PackageManager.AUTO:
            manager = await resolve_package_manager(
                PackageManager.AUTO, self.config.tools.probe_timeout
            )
            self._set_project(self.project.with_package_manager(manager))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def stage_scaffold(self) -> None:
        if not is_directory_available(self.project_dir):
            await self._resolve_collision()
        result = await self.scaffolder.create(self.project, self.features, self.selection)
        self._record(result)

    async def stage_chdir(self) -> None:
        missing = self._missing_project_files()
        if missing:
            await self._gate(StructuralError(self.project_dir, missing))

        self.packages = PackageInstaller(
            self.project.package_manager,
            self.project_dir,
            timeout=self.config.tools.install_timeout,
            fast=self.features.fast_mode,
        )
        if self.project.package_manager is PackageManager.PNPM:
            await self.writer.configure_pnpm()
        self.writer.create_project_dirs()
        await self.writer.write_styling()
        await self.writer.write_entry_page()
        await self.layout.write(self.store.renderer, self.project_dir)

    async def stage_install_core_deps(self) -> None:
        packages = self._require_packages()
        deps = list(CORE_DEPENDENCIES)
        if self.features.theme_switch:
            deps.append("next-themes")
        self._record(await packages.add(deps, label="core dependencies"))
        self._record(await packages.install())
        self._sync_package_manager()

    async def stage_setup_components(self) -> None:
        await self.writer.write_component_config()
        installer = ComponentInstaller(
            self.project_dir, self.config.tools, self.writer, self._require_packages()
        )
        report = await installer.install(self.installable, fast=self.features.fast_mode)
        self._record_components(report)
        self._sync_package_manager()

    async def stage_write_env(self) -> None:
        await self.writer.write_env()

    async def stage_write_readme(self) -> None:
        await self.writer.write_readme()

    async def stage_theme_switch(self) -> None:
        await self.writer.apply_theme(self.layout)

    async def stage_auth(self) -> None:
        await self.writer.apply_auth(self.layout)
        self._record(await self._require_packages().add(["next-auth"]))
        self._sync_package_manager()

    async def stage_database(self) -> None:
        await self.writer.apply_database()

    async def stage_docs(self) -> None:
        await self.writer.write_docs()

    async def stage_responsive(self) -> None:
        await self.writer.write_responsive()

    async def stage_typescript_fixups(self) -> None:
        await self.writer.apply_typescript_fixups(self.layout)

    # ------------------------------------------------------------------
    # Scaffold / chdir decisions
    # ------------------------------------------------------------------

    async def _resolve_collision(self) -> None:
        with self.tracker.suspended():
            choice, new_name = await self.prompts.resolve_collision(self.project)

        if choice is CollisionChoice.RENAME and new_name:
            self._set_project(self.project.renamed(new_name))
            self.layout = LayoutDocument.for_project(self.project.name)
            if not is_directory_available(self.project_dir):
                raise PipelineError("scaffold", f"{self.project_dir} is not empty")
        elif choice is CollisionChoice.DELETE:
            await asyncio.to_thread(shutil.rmtree, self.project_dir)
            print_warning(f"Deleted {self.project_dir}")
        else:
            raise AbortRequested(0, "Operation cancelled")

    async def _gate(self, error: StructuralError) -> None:
        print_warning(str(error))
        with self.tracker.suspended():
            choice = await self.prompts.resolve_missing_project(error)

        if choice is GateChoice.CREATE_MANUALLY:
            result = await self.scaffolder.create_manually(
                self.project, self.features, self.selection, reason=str(error)
            )
            self._record(result)
            missing = self._missing_project_files()
            if missing:
                raise PipelineError("chdir", f"manual creation failed, {missing} still missing")
        elif choice is GateChoice.RETRY:
            raise RestartRequested()
        else:
            raise AbortRequested(1, f"Project directory not usable: {error}")

    def _missing_project_files(self) -> str | None:
        if not self.project_dir.is_dir():
            return "project directory"
        if not (self.project_dir / "package.json").is_file():
            return "package.json"
        return None

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _set_project(self, project: ProjectConfig) -> None:
        self.project = project
        self.writer.project = project
        self.result.project = project

    def _require_packages(self) -> PackageInstaller:
        if self.packages is None:
            raise PipelineError("chdir", "package installer used before the project directory was ready")
        return self.packages

    def _sync_package_manager(self) -> None:
        if self.packages and self.packages.manager is not self.project.package_manager:
            self._warn(
                f"Switched from {self.project.package_manager.value} to "
                f"{self.packages.manager.value} after an install failure"
            )
            self._set_project(self.project.with_package_manager(self.packages.manager))

    def _warn(self, message: str) -> None:
        self.result.warnings.append(message)
        print_warning(message)

    def _record(self, result: ToolResult) -> None:
        self.result.outcomes.append(result)
        if result.outcome is InstallOutcome.FAILED:
            self._warn(result.summary())
        elif result.outcome is InstallOutcome.SUCCEEDED_VIA_FALLBACK:
            self._warn(f"{result.name} used a fallback: {result.detail.splitlines()[-1] if result.detail else 'ok'}")

    def _record_components(self, report: ComponentReport) -> None:
        self.result.outcomes.extend(report.results)
        self.result.failed_components.extend(report.failed)
        self.result.skipped_components.extend(report.skipped)

        rows = {r.name: r.summary().split(": ", 1)[1] for r in report.results}
        if rows:
            print_summary_table(rows, title="Components")
        if report.failed:
            self._warn(f"Components that failed to install: {', '.join(report.failed)}")
        else:
            print_success(f"{len(report.installed)} components installed")

    def _print_final_summary(self) -> None:
        features = self.features.labels()
        lines = [
            "[bold green]Your app is ready![/bold green]",
            "",
            f"Project         : {self.project.name}",
            f"Location        : {self.project_dir}",
            f"Package manager : {self.project.package_manager.value}",
            f"Features        : {', '.join(features) if features else 'None'}",
            f"Components      : {summarize_list(list(self.installable.components)) if self.installable.components else 'None'}",
            f"Duration        : {format_duration(self.result.duration)}",
        ]
        if self.result.failed_components:
            lines.append(f"[yellow]Failed          : {', '.join(self.result.failed_components)}[/yellow]")
        if self.result.warnings:
            lines.append(f"[yellow]Warnings        : {len(self.result.warnings)}[/yellow]")
        lines += [
            "",
            "Next steps:",
            f"  cd {self.project.name}",
            f"  {self.result.dev_command}",
            "",
            "Then open http://localhost:3000",
        ]
        console.print()
        print_panel("\n".join(lines), title="Done", style="bold green")
