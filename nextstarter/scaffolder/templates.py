"""Jinja2 templates for the generated Next.js project.

``TemplateRenderer`` turns ``*.j2`` files under ``scaffolder/templates/`` into
project files.  ``TemplateStore`` sits on top of it and knows where each named
artifact (entry page, config files, providers, feature bundles, custom
components) lands inside the project.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from nextstarter.catalog import ComponentSelection
from nextstarter.config import FeatureSet, ProjectConfig

TEMPLATE_SUFFIX = ".j2"

_PACKAGED_TEMPLATES = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Jinja2 environment rooted at a template directory.

    TSX and JSON output must not be HTML-escaped, so autoescaping is off for
    every extension.  ``slugify`` and ``pascal_case`` are available as filters.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self.template_dir = Path(template_dir or _PACKAGED_TEMPLATES)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters.update(slugify=slugify, pascal_case=pascal_case)

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        return self.env.get_template(template_path).render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render *template_path* over *output_path*, creating parent directories."""
        out = Path(output_path)
        await asyncio.to_thread(write_file, out, self.render(template_path, context))
        return out

    async def render_tree(
        self,
        template_prefix: str,
        output_dir: str | Path,
        context: dict[str, Any],
    ) -> list[Path]:
        """Mirror every template under *template_prefix* into *output_dir*.

        ``auth/lib/auth.ts.j2`` rendered with ``template_prefix="auth"`` lands
        at ``<output_dir>/lib/auth.ts``.  An unknown prefix renders nothing.
        """
        written: list[Path] = []
        for template in self.list_templates(template_prefix):
            rel = template[len(template_prefix) + 1 : -len(TEMPLATE_SUFFIX)]
            written.append(await self.render_to_file(template, Path(output_dir) / rel, context))
        return written

    def list_templates(self, prefix: str = "") -> list[str]:
        """Sorted template paths (relative, POSIX-style) under *prefix*."""
        root = self.template_dir / prefix if prefix else self.template_dir
        if not root.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix() for p in root.rglob(f"*{TEMPLATE_SUFFIX}")
        )


# ---------------------------------------------------------------------------
# Artifact registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Artifact:
    """A named generated file: which template renders it and where it lands."""

    template: str
    output: str


ARTIFACTS: dict[str, Artifact] = {
    "landing_page": Artifact("app/page.tsx.j2", "app/page.tsx"),
    "showcase_page": Artifact("app/showcase-page.tsx.j2", "app/page.tsx"),
    "layout": Artifact("app/layout.tsx.j2", "app/layout.tsx"),
    "globals_css": Artifact("app/globals.css.j2", "app/globals.css"),
    "next_config": Artifact("next.config.js.j2", "next.config.js"),
    "tsconfig": Artifact("tsconfig.json.j2", "tsconfig.json"),
    "postcss_config": Artifact("postcss.config.mjs.j2", "postcss.config.mjs"),
    "tailwind_config": Artifact("tailwind.config.ts.j2", "tailwind.config.ts"),
    "next_env": Artifact("next-env.d.ts.j2", "next-env.d.ts"),
    "utils": Artifact("lib/utils.ts.j2", "lib/utils.ts"),
    "components_json": Artifact("components.json.j2", "components.json"),
    "env": Artifact("env.j2", ".env"),
    "env_example": Artifact("env.j2", ".env.example"),
    "readme": Artifact("README.md.j2", "README.md"),
    "next_auth_types": Artifact("types/next-auth.d.ts.j2", "types/next-auth.d.ts"),
    "theme_provider": Artifact(
        "theme/components/theme/theme-provider.tsx.j2", "components/theme/theme-provider.tsx"
    ),
    "auth_provider": Artifact(
        "auth/components/auth/auth-provider.tsx.j2", "components/auth/auth-provider.tsx"
    ),
}

# Feature bundles are template trees mirrored into the project root.
BUNDLES: tuple[str, ...] = ("theme", "auth", "database", "docs", "responsive")

CUSTOM_COMPONENT_DIR = "components/custom"


def custom_component_artifact(component: str) -> Artifact:
    """Custom components render to ``components/<id>.tsx``."""
    return Artifact(f"{CUSTOM_COMPONENT_DIR}/{component}.tsx.j2", f"components/{component}.tsx")


class TemplateStore:
    """Named artifacts rendered through a :class:`TemplateRenderer`."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    def render(self, name: str, context: dict[str, Any]) -> str:
        return self.renderer.render(ARTIFACTS[name].template, context)

    def output_path(self, name: str, project_dir: Path) -> Path:
        return project_dir / ARTIFACTS[name].output

    async def write(self, name: str, project_dir: Path, context: dict[str, Any]) -> Path:
        """Render artifact *name* into *project_dir*, overwriting any existing file."""
        artifact = ARTIFACTS[name]
        return await self.renderer.render_to_file(
            artifact.template, project_dir / artifact.output, context
        )

    async def write_bundle(
        self, bundle: str, project_dir: Path, context: dict[str, Any]
    ) -> list[Path]:
        if bundle not in BUNDLES:
            raise KeyError(f"Unknown template bundle: {bundle}")
        return await self.renderer.render_tree(bundle, project_dir, context)

    async def write_custom_component(
        self, component: str, project_dir: Path, context: dict[str, Any]
    ) -> Path:
        artifact = custom_component_artifact(component)
        return await self.renderer.render_to_file(
            artifact.template, project_dir / artifact.output, context
        )


def build_context(
    project: ProjectConfig,
    features: FeatureSet,
    selection: ComponentSelection | None = None,
    *,
    secret: str = "",
) -> dict[str, Any]:
    """Template variables shared by every artifact."""
    components = list(selection.components) if selection else []
    return {
        "project_name": project.name,
        "package_name": slugify(project.name) or "my-next-app",
        "package_manager": project.package_manager.value,
        "dev_command": project.package_manager.dev_command,
        "features": features,
        "feature_labels": features.labels(),
        "components": components,
        "library_components": selection.library if selection else [],
        "custom_components": selection.custom if selection else [],
        "nextauth_secret": secret,
        "app_url": "http://localhost:3000",
    }


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------


def slugify(value: str) -> str:
    """Convert a string to an npm-package-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def pascal_case(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word.capitalize() for word in parts if word)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
