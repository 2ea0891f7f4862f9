"""Manual project skeleton.

Writes the minimal Next.js + Tailwind project that ``create-next-app`` would
otherwise produce.  Used when the scaffold generator is missing, fails, times
out, or leaves a directory that does not look like a project.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from nextstarter.catalog import ComponentSelection
from nextstarter.config import FeatureSet, ProjectConfig
from nextstarter.utils import load_json, save_json

from .layout import LayoutDocument
from .templates import TemplateStore, build_context, slugify

# ---------------------------------------------------------------------------
# Manifest defaults
# ---------------------------------------------------------------------------

SCRIPTS: dict[str, str] = {
    "dev": "next dev",
    "build": "next build",
    "start": "next start",
    "lint": "next lint",
}

BASE_DEPENDENCIES: dict[str, str] = {
    "next": "latest",
    "react": "latest",
    "react-dom": "latest",
}

BASE_DEV_DEPENDENCIES: dict[str, str] = {
    "typescript": "latest",
    "@types/node": "latest",
    "@types/react": "latest",
    "@types/react-dom": "latest",
    "@tailwindcss/postcss": "latest",
    "tailwindcss": "latest",
    "postcss": "latest",
    "autoprefixer": "latest",
    "eslint": "latest",
    "eslint-config-next": "latest",
}

# Static files of the skeleton, besides the manifest, entry page and layout.
SKELETON_ARTIFACTS: tuple[str, ...] = (
    "next_config",
    "tsconfig",
    "postcss_config",
    "tailwind_config",
    "globals_css",
    "next_env",
)

SKELETON_DIRS: tuple[str, ...] = ("app", "public")


def build_manifest(project_name: str) -> dict[str, Any]:
    """The ``package.json`` contents of a fresh skeleton."""
    return {
        "name": slugify(project_name) or "my-next-app",
        "version": "0.1.0",
        "private": True,
        "scripts": dict(SCRIPTS),
        "dependencies": dict(BASE_DEPENDENCIES),
        "devDependencies": dict(BASE_DEV_DEPENDENCIES),
    }


async def update_manifest(
    project_dir: Path,
    dependencies: dict[str, str] | None = None,
    dev_dependencies: dict[str, str] | None = None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Merge dependency entries (and top-level keys) into ``package.json``.

    Existing keys are overwritten, so repeating an update is harmless.

    Raises:
        FileNotFoundError: If the project has no manifest.
    """
    manifest_path = project_dir / "package.json"
    manifest = load_json(manifest_path)
    if dependencies:
        manifest.setdefault("dependencies", {}).update(dependencies)
    if dev_dependencies:
        manifest.setdefault("devDependencies", {}).update(dev_dependencies)
    for key, value in (extra or {}).items():
        if isinstance(value, dict) and isinstance(manifest.get(key), dict):
            manifest[key].update(value)
        else:
            manifest[key] = value
    await save_json(manifest, manifest_path)
    return manifest


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Writes a project skeleton and its entry page from templates."""

    def __init__(self, store: TemplateStore | None = None) -> None:
        self.store = store or TemplateStore()

    async def generate_skeleton(
        self,
        project: ProjectConfig,
        features: FeatureSet,
        selection: ComponentSelection | None = None,
    ) -> Path:
        """Generate the manual project structure.

        Returns:
            Path to the project root.
        """
        project_root = project.app_directory
        await asyncio.to_thread(project_root.mkdir, parents=True, exist_ok=True)

        context = build_context(project, features, selection)

        # 1. Directory structure
        await self._create_directory_structure(project_root)

        # 2. Manifest
        await save_json(build_manifest(project.name), project_root / "package.json")

        # 3. Config files and global stylesheet
        for name in SKELETON_ARTIFACTS:
            await self.store.write(name, project_root, context)

        # 4. Entry page and base layout
        await self._write_entry_page(project_root, context)
        await LayoutDocument.for_project(project.name).write(self.store.renderer, project_root)

        return project_root

    async def _write_entry_page(self, project_dir: Path, context: dict[str, Any]) -> Path:
        """Components showcase when components are enabled, landing page otherwise."""
        features: FeatureSet = context["features"]
        name = "showcase_page" if features.install_components else "landing_page"
        return await self.store.write(name, project_dir, context)

    async def _create_directory_structure(self, root: Path) -> None:
        await asyncio.gather(
            *(
                asyncio.to_thread((root / d).mkdir, parents=True, exist_ok=True)
                for d in SKELETON_DIRS
            )
        )
