"""Tests for package-manager detection and installs (nextstarter.tools.package_manager).

Covers:
- Probe order and the npm default
- add/install argument builders
- PackageInstaller fallback to npm and the manager switch
"""

from __future__ import annotations

from pathlib import Path

import pytest

from nextstarter.config import PackageManager
from nextstarter.tools.base import InstallOutcome
from nextstarter.tools.package_manager import (
    FAST_ENV,
    PackageInstaller,
    add_args,
    detect_package_manager,
    install_args,
    resolve_package_manager,
)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


class TestDetection:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nothing_installed_means_npm(self, fake_runner):
        assert await detect_package_manager() is PackageManager.NPM
        assert fake_runner.commands("pnpm") == [["pnpm", "--version"]]
        assert fake_runner.commands("yarn") == [["yarn", "--version"]]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_pnpm_wins(self, fake_runner):
        fake_runner.on("pnpm", "--version", stdout="9.0.0")
        fake_runner.on("yarn", "--version", stdout="1.22.0")
        assert await detect_package_manager() is PackageManager.PNPM
        assert fake_runner.commands("yarn") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_yarn_when_no_pnpm(self, fake_runner):
        fake_runner.on("yarn", "--version", stdout="1.22.0")
        assert await detect_package_manager() is PackageManager.YARN

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_broken_probe_is_negative(self, fake_runner):
        fake_runner.on("pnpm", "--version", returncode=1, stderr="corrupt install")
        assert await detect_package_manager() is PackageManager.NPM

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_resolve_keeps_explicit_choice(self, fake_runner):
        assert await resolve_package_manager(PackageManager.YARN) is PackageManager.YARN
        assert fake_runner.calls == []


# ---------------------------------------------------------------------------
# Argument builders
# ---------------------------------------------------------------------------


class TestArgs:
    @pytest.mark.unit
    def test_add_args(self):
        assert add_args(PackageManager.NPM, ["clsx"]) == ["npm", "install", "clsx"]
        assert add_args(PackageManager.PNPM, ["prisma"], dev=True) == ["pnpm", "add", "-D", "prisma"]
        assert add_args(PackageManager.YARN, ["a", "b"]) == ["yarn", "add", "a", "b"]

    @pytest.mark.unit
    def test_install_args(self):
        assert install_args(PackageManager.NPM) == ["npm", "install"]
        assert install_args(PackageManager.PNPM) == ["pnpm", "install", "--prefer-offline"]


# ---------------------------------------------------------------------------
# PackageInstaller
# ---------------------------------------------------------------------------


class TestPackageInstaller:
    @pytest.mark.unit
    def test_auto_rejected(self, tmp_path: Path):
        with pytest.raises(ValueError):
            PackageInstaller(PackageManager.AUTO, tmp_path)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success_with_active_manager(self, fake_runner, tmp_path: Path):
        fake_runner.on("pnpm", "add")
        installer = PackageInstaller(PackageManager.PNPM, tmp_path, fast=True)
        result = await installer.add(["clsx"])
        assert result.outcome is InstallOutcome.SUCCEEDED
        assert installer.manager is PackageManager.PNPM
        call = fake_runner.calls[0]
        assert call.cwd == tmp_path
        assert call.env == FAST_ENV

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fallback_to_npm_switches_manager(self, fake_runner, tmp_path: Path):
        fake_runner.on("pnpm", returncode=1, stderr="ERR_PNPM")
        fake_runner.on("npm")
        installer = PackageInstaller(PackageManager.PNPM, tmp_path)
        result = await installer.add(["clsx"], label="core")
        assert result.outcome is InstallOutcome.SUCCEEDED_VIA_FALLBACK
        assert result.attempts == ["pnpm add clsx", "npm install clsx"]
        assert installer.manager is PackageManager.NPM

        await installer.install()
        assert fake_runner.calls[-1].cmd == ["npm", "install"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_both_fail(self, fake_runner, tmp_path: Path):
        fake_runner.on("yarn", returncode=1, stderr="yarn broke")
        fake_runner.on("npm", returncode=1, stderr="npm broke")
        installer = PackageInstaller(PackageManager.YARN, tmp_path)
        result = await installer.install()
        assert result.outcome is InstallOutcome.FAILED
        assert "npm broke" in result.detail
        assert installer.manager is PackageManager.YARN

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_npm_failure_has_no_fallback(self, fake_runner, tmp_path: Path):
        installer = PackageInstaller(PackageManager.NPM, tmp_path)
        result = await installer.add(["clsx"])
        assert result.outcome is InstallOutcome.FAILED
        assert len(fake_runner.calls) == 1
