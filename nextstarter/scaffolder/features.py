"""File-level effects of the optional features.

Each ``apply_*`` / ``write_*`` method renders a template bundle into the
project, merges the feature's dependencies into ``package.json``, and, where
the feature touches the root layout, registers a wrapper on the
:class:`LayoutDocument`.  Nothing here runs external commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from nextstarter.catalog import ComponentSelection
from nextstarter.config import FeatureSet, ProjectConfig
from nextstarter.utils import ensure_dir

from .generator import update_manifest
from .layout import AUTH_WRAPPER, THEME_WRAPPER, LayoutDocument
from .templates import TemplateStore, build_context

THEME_DEPENDENCIES: dict[str, str] = {"next-themes": "latest"}

AUTH_DEPENDENCIES: dict[str, str] = {
    "next-auth": "^4.24.5",
    "@auth/mongodb-adapter": "^2.0.0",
    "mongodb": "^6.3.0",
}

DATABASE_DEPENDENCIES: dict[str, str] = {
    "@prisma/client": "latest",
    "mongodb": "latest",
}

DATABASE_DEV_DEPENDENCIES: dict[str, str] = {"prisma": "latest"}

# Packages pnpm may run install scripts for.
PNPM_BUILT_DEPENDENCIES: list[str] = [
    "sharp",
    "@prisma/engines",
    "prisma",
    "@prisma/client",
    "esbuild",
    "next-auth",
    "next-themes",
]

PROJECT_DIRS: tuple[str, ...] = ("components/ui", "lib")

# Tailwind setup the generated pages and components rely on.
STYLING_ARTIFACTS: tuple[str, ...] = ("tailwind_config", "postcss_config", "globals_css")


class FeatureWriter:
    """Writes feature files into one project directory.

    ``project`` may be replaced while the pipeline runs (for instance when
    the package manager falls back to npm); every render uses the current
    value.
    """

    def __init__(
        self,
        project: ProjectConfig,
        features: FeatureSet,
        selection: ComponentSelection | None = None,
        *,
        secret: str = "",
        store: TemplateStore | None = None,
    ) -> None:
        self.project = project
        self.features = features
        self.selection = selection
        self.secret = secret
        self.store = store or TemplateStore()

    @property
    def project_dir(self) -> Path:
        return self.project.app_directory

    def context(self, **extra: Any) -> dict[str, Any]:
        ctx = build_context(self.project, self.features, self.selection, secret=self.secret)
        ctx.update(extra)
        return ctx

    # -- Always-on files ---------------------------------------------------

    def create_project_dirs(self) -> list[Path]:
        created = []
        for rel in PROJECT_DIRS:
            created.append(ensure_dir(self.project_dir / rel))
        return created

    async def configure_pnpm(self) -> dict[str, Any]:
        """Allow the usual native/postinstall packages to build under pnpm."""
        return await update_manifest(
            self.project_dir,
            extra={"pnpm": {"onlyBuiltDependencies": list(PNPM_BUILT_DEPENDENCIES)}},
        )

    async def write_env(self) -> list[Path]:
        """Write ``.env``; with auth or database also ``.env.example``.

        Rewriting replaces the previous files, so calling this from several
        stages never duplicates variables.
        """
        written = [await self.store.write("env", self.project_dir, self.context(example=False))]
        if self.features.needs_env_secrets:
            written.append(
                await self.store.write("env_example", self.project_dir, self.context(example=True))
            )
        return written

    async def write_styling(self) -> list[Path]:
        """Tailwind config, PostCSS config and the theme variables in ``globals.css``.

        Overwrites whatever create-next-app put there.
        """
        ctx = self.context()
        return [await self.store.write(name, self.project_dir, ctx) for name in STYLING_ARTIFACTS]

    async def write_readme(self) -> Path:
        return await self.store.write("readme", self.project_dir, self.context())

    async def write_entry_page(self) -> Path:
        name = "showcase_page" if self.features.install_components else "landing_page"
        return await self.store.write(name, self.project_dir, self.context())

    # -- Components ----------------------------------------------------------

    async def write_component_config(self) -> list[Path]:
        """``components.json`` for the shadcn CLI plus the ``cn()`` helper."""
        ctx = self.context()
        return [
            await self.store.write("components_json", self.project_dir, ctx),
            await self.store.write("utils", self.project_dir, ctx),
        ]

    async def write_custom_component(self, component: str) -> Path:
        return await self.store.write_custom_component(component, self.project_dir, self.context())

    # -- Optional features ---------------------------------------------------

    async def apply_theme(self, layout: LayoutDocument) -> list[Path]:
        written = await self.store.write_bundle("theme", self.project_dir, self.context())
        layout.add_wrapper(THEME_WRAPPER)
        await update_manifest(self.project_dir, dependencies=THEME_DEPENDENCIES)
        return written

    async def apply_auth(self, layout: LayoutDocument) -> list[Path]:
        written = await self.store.write_bundle("auth", self.project_dir, self.context())
        layout.add_wrapper(AUTH_WRAPPER)
        await update_manifest(self.project_dir, dependencies=AUTH_DEPENDENCIES)
        written.extend(await self.write_env())
        return written

    async def apply_database(self) -> list[Path]:
        written = await self.store.write_bundle("database", self.project_dir, self.context())
        await update_manifest(
            self.project_dir,
            dependencies=DATABASE_DEPENDENCIES,
            dev_dependencies=DATABASE_DEV_DEPENDENCIES,
        )
        written.extend(await self.write_env())
        return written

    async def write_docs(self) -> list[Path]:
        return await self.store.write_bundle("docs", self.project_dir, self.context())

    async def write_responsive(self) -> list[Path]:
        return await self.store.write_bundle("responsive", self.project_dir, self.context())

    # -- Final pass ----------------------------------------------------------

    async def apply_typescript_fixups(self, layout: LayoutDocument) -> list[Path]:
        """Typed provider components and declarations, then the layout.

        The layout document is rendered here, once, after every stage that
        contributes a wrapper has run.
        """
        written: list[Path] = []
        ctx = self.context()
        if self.features.theme_switch:
            written.append(await self.store.write("theme_provider", self.project_dir, ctx))
        if self.features.auth:
            written.append(await self.store.write("auth_provider", self.project_dir, ctx))
        if not self.store.output_path("next_env", self.project_dir).exists():
            written.append(await self.store.write("next_env", self.project_dir, ctx))
        if self.features.auth:
            written.append(await self.store.write("next_auth_types", self.project_dir, ctx))
        written.append(await layout.write(self.store.renderer, self.project_dir))
        return written
