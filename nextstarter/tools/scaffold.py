"""``create-next-app`` invocation with verification and a manual fallback.

A zero exit status is not trusted on its own: the target directory has to
contain a manifest, an app entry directory and a config file.  Anything less
(including a missing ``npx`` or a timeout) sends the run to the manual
skeleton generator.
"""

from __future__ import annotations

from pathlib import Path

from nextstarter.catalog import ComponentSelection
from nextstarter.config import FeatureSet, ProjectConfig, ToolConfig
from nextstarter.scaffolder.generator import ProjectGenerator
from nextstarter.utils import print_warning, run_command

from .base import InstallOutcome, ToolResult

MANIFEST = "package.json"
ENTRY_DIRS: tuple[str, ...] = ("app", "src/app")
CONFIG_FILES: tuple[str, ...] = (
    "next.config.js",
    "next.config.mjs",
    "next.config.ts",
    "tsconfig.json",
)


def scaffold_args(tools: ToolConfig, project: ProjectConfig) -> list[str]:
    """Full ``create-next-app`` command line for *project*."""
    return [
        *tools.scaffold_command,
        project.name,
        "--ts",
        "--tailwind",
        "--eslint",
        "--app",
        "--no-src-dir",
        "--import-alias",
        "@/*",
        project.package_manager.create_flag,
        "--yes",
    ]


def verify_scaffold(project_dir: Path) -> list[str]:
    """Return what is missing from a scaffolded directory (empty if it looks right)."""
    if not project_dir.is_dir():
        return [str(project_dir)]
    missing: list[str] = []
    if not (project_dir / MANIFEST).is_file():
        missing.append(MANIFEST)
    if not any((project_dir / d).is_dir() for d in ENTRY_DIRS):
        missing.append("app/")
    if not any((project_dir / f).is_file() for f in CONFIG_FILES):
        missing.append("next.config.* or tsconfig.json")
    return missing


class ScaffoldRunner:
    """Creates the project directory, by generator or by hand."""

    def __init__(self, tools: ToolConfig, generator: ProjectGenerator | None = None) -> None:
        self.tools = tools
        self.generator = generator or ProjectGenerator()

    async def create(
        self,
        project: ProjectConfig,
        features: FeatureSet,
        selection: ComponentSelection | None = None,
    ) -> ToolResult:
        """Scaffold *project* into its ``app_directory``.

        Returns ``SUCCEEDED`` when the generator produced a verified project,
        ``SUCCEEDED_VIA_FALLBACK`` when the manual skeleton was written, and
        ``FAILED`` only when even the skeleton could not be written.
        """
        args = scaffold_args(self.tools, project)
        returncode, stdout, stderr = await run_command(
            args,
            cwd=project.parent_directory,
            timeout=self.tools.scaffold_timeout,
            env={"NEXT_TELEMETRY_DISABLED": "1"},
        )

        if returncode == 0:
            missing = verify_scaffold(project.app_directory)
            if not missing:
                return ToolResult("scaffold", InstallOutcome.SUCCEEDED, stdout, attempts=[" ".join(args)])
            reason = f"generator finished but {', '.join(missing)} missing"
        elif returncode == -1:
            reason = f"generator timed out after {self.tools.scaffold_timeout}s"
        else:
            reason = (stderr or stdout or f"exit code {returncode}").splitlines()[-1]

        print_warning(f"create-next-app did not produce a project ({reason}); creating it manually.")
        return await self.create_manually(project, features, selection, reason=reason)

    async def create_manually(
        self,
        project: ProjectConfig,
        features: FeatureSet,
        selection: ComponentSelection | None = None,
        *,
        reason: str = "manual creation requested",
    ) -> ToolResult:
        try:
            await self.generator.generate_skeleton(project, features, selection)
        except OSError as exc:
            return ToolResult(
                "scaffold",
                InstallOutcome.FAILED,
                f"{reason}; manual skeleton failed: {exc}",
                attempts=["manual"],
            )
        return ToolResult(
            "scaffold", InstallOutcome.SUCCEEDED_VIA_FALLBACK, reason, attempts=["manual"]
        )
