"""Shared pytest fixtures for the nextstarter test suite.

Provides reusable fixtures for:
- Temporary working directories and configs
- Mock subprocess helpers
- A fake ``run_command`` routed by argv prefix, patched into the tool adapters
- Scripted answers for the pipeline's interactive decisions
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from nextstarter.catalog import DEFAULT_COMPONENTS, ComponentSelection, SelectionStrategy
from nextstarter.config import Config, FeatureSet, PackageManager, ProjectConfig, ToolConfig
from nextstarter.pipeline import CollisionChoice, GateChoice
from nextstarter.utils import COMMAND_NOT_FOUND


# ---------------------------------------------------------------------------
# Paths & Config
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary directory for a generated project (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config rooted at ``tmp_path`` with fast timeouts."""
    return Config(
        cwd=tmp_path,
        tools=ToolConfig(
            scaffold_timeout=10,
            install_timeout=10,
            component_timeout=10,
            probe_timeout=1,
        ),
    )


@pytest.fixture
def demo_project(tmp_path: Path) -> ProjectConfig:
    return ProjectConfig.create("demo-app", tmp_path, PackageManager.NPM)


@pytest.fixture
def default_selection() -> ComponentSelection:
    return ComponentSelection(strategy=SelectionStrategy.CUSTOM, components=DEFAULT_COMPONENTS)


@pytest.fixture
def default_features() -> FeatureSet:
    return FeatureSet()


# ---------------------------------------------------------------------------
# Mock subprocess
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


# ---------------------------------------------------------------------------
# Fake run_command
# ---------------------------------------------------------------------------

@dataclass
class FakeCall:
    cmd: list[str]
    cwd: Path | None
    env: dict[str, str] | None


@dataclass
class _Rule:
    prefix: list[str]
    result: tuple[int, str, str]
    effect: Callable[[list[str], Path | None], None] | None = None
    remaining: int | None = None


@dataclass
class FakeRunner:
    """Stand-in for ``run_command``.

    Commands are matched against registered argv prefixes, most recently
    registered first.  Anything unmatched behaves like a missing binary.
    """

    calls: list[FakeCall] = field(default_factory=list)
    rules: list[_Rule] = field(default_factory=list)

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Callable[[list[str], Path | None], None] | None = None,
        times: int | None = None,
    ) -> "FakeRunner":
        self.rules.insert(0, _Rule(list(prefix), (returncode, stdout, stderr), effect, times))
        return self

    async def __call__(
        self,
        cmd: list[str],
        cwd: Any = None,
        timeout: int = 120,
        env: dict[str, str] | None = None,
    ) -> tuple[int, str, str]:
        self.calls.append(FakeCall(list(cmd), Path(cwd) if cwd else None, env))
        for rule in self.rules:
            if cmd[: len(rule.prefix)] != rule.prefix:
                continue
            if rule.remaining is not None:
                if rule.remaining <= 0:
                    continue
                rule.remaining -= 1
            if rule.effect is not None:
                rule.effect(list(cmd), Path(cwd) if cwd else None)
            return rule.result
        return (COMMAND_NOT_FOUND, "", f"Command not found: {cmd[0]}")

    def commands(self, *prefix: str) -> list[list[str]]:
        return [c.cmd for c in self.calls if c.cmd[: len(prefix)] == list(prefix)]


@pytest.fixture
def fake_runner(monkeypatch) -> FakeRunner:
    """A :class:`FakeRunner` patched into every tool adapter."""
    runner = FakeRunner()
    for module in (
        "nextstarter.tools.package_manager",
        "nextstarter.tools.scaffold",
        "nextstarter.tools.components",
    ):
        monkeypatch.setattr(f"{module}.run_command", runner)
    return runner


def write_scaffold(cmd: list[str], cwd: Path | None) -> None:
    """Side effect mimicking a successful ``create-next-app`` run."""
    project_dir = Path(cwd) / cmd[2]
    (project_dir / "app").mkdir(parents=True, exist_ok=True)
    (project_dir / "package.json").write_text(
        '{"name": "%s", "dependencies": {"next": "15.0.0"}}\n' % cmd[2], encoding="utf-8"
    )
    (project_dir / "tsconfig.json").write_text("{}\n", encoding="utf-8")
    (project_dir / "app" / "layout.tsx").write_text("// generated\n", encoding="utf-8")


# ---------------------------------------------------------------------------
# Scripted prompts
# ---------------------------------------------------------------------------

@dataclass
class ScriptedPrompts:
    """Answers the pipeline's questions from preset values."""

    collision: tuple[CollisionChoice, str | None] = (CollisionChoice.CANCEL, None)
    gate: GateChoice = GateChoice.EXIT
    asked: list[str] = field(default_factory=list)

    async def resolve_collision(self, project: ProjectConfig) -> tuple[CollisionChoice, str | None]:
        self.asked.append("collision")
        return self.collision

    async def resolve_missing_project(self, error) -> GateChoice:
        self.asked.append("gate")
        return self.gate


@pytest.fixture
def prompts() -> ScriptedPrompts:
    return ScriptedPrompts()


@pytest.fixture
def scaffold_effect() -> Callable[[list[str], Path | None], None]:
    return write_scaffold
