"""Tests for the create-next-app adapter (nextstarter.tools.scaffold).

Covers:
- Command line construction
- verify_scaffold
- Verified success, and every route to the manual skeleton
"""

from __future__ import annotations

from pathlib import Path

import pytest

from nextstarter.config import FeatureSet, PackageManager, ProjectConfig, ToolConfig
from nextstarter.tools.base import InstallOutcome
from nextstarter.tools.scaffold import ScaffoldRunner, scaffold_args, verify_scaffold


class TestScaffoldArgs:
    @pytest.mark.unit
    def test_args(self, tmp_path: Path):
        project = ProjectConfig.create("demo-app", tmp_path, PackageManager.PNPM)
        args = scaffold_args(ToolConfig(), project)
        assert args[:3] == ["npx", "create-next-app@latest", "demo-app"]
        for flag in ("--ts", "--tailwind", "--eslint", "--app", "--no-src-dir", "--use-pnpm", "--yes"):
            assert flag in args
        assert args[args.index("--import-alias") + 1] == "@/*"


class TestVerifyScaffold:
    @pytest.mark.unit
    def test_missing_directory(self, tmp_path: Path):
        assert verify_scaffold(tmp_path / "nope") == [str(tmp_path / "nope")]

    @pytest.mark.unit
    def test_empty_directory(self, tmp_project_dir: Path):
        assert len(verify_scaffold(tmp_project_dir)) == 3

    @pytest.mark.unit
    def test_src_app_counts(self, tmp_project_dir: Path):
        (tmp_project_dir / "src" / "app").mkdir(parents=True)
        (tmp_project_dir / "package.json").write_text("{}", encoding="utf-8")
        (tmp_project_dir / "next.config.mjs").write_text("", encoding="utf-8")
        assert verify_scaffold(tmp_project_dir) == []


class TestScaffoldRunner:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_verified_success(self, fake_runner, scaffold_effect, demo_project, default_features):
        fake_runner.on("npx", "create-next-app@latest", effect=scaffold_effect)
        result = await ScaffoldRunner(ToolConfig()).create(demo_project, default_features)
        assert result.outcome is InstallOutcome.SUCCEEDED
        call = fake_runner.calls[0]
        assert call.cwd == demo_project.parent_directory
        assert call.env == {"NEXT_TELEMETRY_DISABLED": "1"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_absent_binary_builds_skeleton(self, fake_runner, demo_project, default_features):
        result = await ScaffoldRunner(ToolConfig()).create(demo_project, default_features)
        assert result.outcome is InstallOutcome.SUCCEEDED_VIA_FALLBACK
        assert "npx" in result.detail
        assert verify_scaffold(demo_project.app_directory) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_zero_exit_without_files_builds_skeleton(self, fake_runner, demo_project, default_features):
        fake_runner.on("npx", "create-next-app@latest")
        result = await ScaffoldRunner(ToolConfig()).create(demo_project, default_features)
        assert result.outcome is InstallOutcome.SUCCEEDED_VIA_FALLBACK
        assert "missing" in result.detail
        assert (demo_project.app_directory / "package.json").is_file()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_builds_skeleton(self, fake_runner, demo_project, default_features):
        fake_runner.on("npx", "create-next-app@latest", returncode=-1)
        result = await ScaffoldRunner(ToolConfig(scaffold_timeout=30)).create(demo_project, default_features)
        assert result.outcome is InstallOutcome.SUCCEEDED_VIA_FALLBACK
        assert "timed out after 30s" in result.detail

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unwritable_target_fails(self, fake_runner, tmp_path: Path, default_features):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        project = ProjectConfig.create("app", blocker, PackageManager.NPM)
        result = await ScaffoldRunner(ToolConfig()).create(project, default_features)
        assert result.outcome is InstallOutcome.FAILED
        assert "manual skeleton failed" in result.detail
