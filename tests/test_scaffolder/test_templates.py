"""Unit tests for the template renderer and artifact store (nextstarter.scaffolder.templates).

Tests cover:
- TemplateRenderer: render, render_to_file, render_tree, list_templates
- Every registered artifact renders
- Feature bundles and custom components
- build_context and the slugify / pascal_case filters
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from nextstarter.catalog import CUSTOM_COMPONENTS, ComponentSelection, SelectionStrategy
from nextstarter.config import FeatureSet, PackageManager, ProjectConfig
from nextstarter.scaffolder.templates import (
    ARTIFACTS,
    BUNDLES,
    TemplateRenderer,
    TemplateStore,
    build_context,
    custom_component_artifact,
    pascal_case,
    slugify,
)


@pytest.fixture
def store() -> TemplateStore:
    return TemplateStore()


@pytest.fixture
def context(demo_project: ProjectConfig, default_selection: ComponentSelection) -> dict:
    return build_context(demo_project, FeatureSet(auth=True), default_selection, secret="s3cret")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TestTemplateRenderer:
    @pytest.mark.unit
    def test_filters_are_registered(self, tmp_path: Path):
        (tmp_path / "f.j2").write_text("{{ name | pascal_case }}/{{ name | slugify }}", encoding="utf-8")
        assert TemplateRenderer(tmp_path).render("f.j2", {"name": "file-tree"}) == "FileTree/file-tree"

    @pytest.mark.unit
    def test_custom_template_dir(self, tmp_path: Path):
        (tmp_path / "hello.txt.j2").write_text("Hello {{ who }}\n", encoding="utf-8")
        renderer = TemplateRenderer(tmp_path)
        assert renderer.render("hello.txt.j2", {"who": "world"}) == "Hello world\n"
        assert renderer.list_templates() == ["hello.txt.j2"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_render_to_file_overwrites(self, tmp_path: Path):
        (tmp_path / "t.j2").write_text("{{ n }}", encoding="utf-8")
        renderer = TemplateRenderer(tmp_path)
        out = tmp_path / "out" / "file.txt"
        await renderer.render_to_file("t.j2", out, {"n": 1})
        await renderer.render_to_file("t.j2", out, {"n": 2})
        assert out.read_text(encoding="utf-8") == "2"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_render_tree_preserves_structure(self, tmp_path: Path):
        templates = tmp_path / "templates"
        (templates / "bundle" / "lib").mkdir(parents=True)
        (templates / "bundle" / "lib" / "a.ts.j2").write_text("a", encoding="utf-8")
        (templates / "bundle" / "b.md.j2").write_text("b", encoding="utf-8")
        renderer = TemplateRenderer(templates)
        written = await renderer.render_tree("bundle", tmp_path / "project", {})
        assert sorted(p.relative_to(tmp_path / "project").as_posix() for p in written) == [
            "b.md",
            "lib/a.ts",
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_render_tree_missing_prefix(self, tmp_path: Path):
        assert await TemplateRenderer(tmp_path).render_tree("nope", tmp_path, {}) == []


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


class TestArtifacts:
    @pytest.mark.unit
    @pytest.mark.parametrize("name", sorted(set(ARTIFACTS) - {"layout"}))
    def test_every_artifact_renders(self, store: TemplateStore, context: dict, name: str):
        assert store.render(name, context).strip()

    @pytest.mark.unit
    def test_components_json_is_valid(self, store: TemplateStore, context: dict):
        data = json.loads(store.render("components_json", context))
        assert data["aliases"]["components"] == "@/components"
        assert data["tailwind"]["css"] == "app/globals.css"

    @pytest.mark.unit
    def test_tsconfig_is_valid_json(self, store: TemplateStore, context: dict):
        data = json.loads(store.render("tsconfig", context))
        assert data["compilerOptions"]["paths"]["@/*"] == ["./*"]

    @pytest.mark.unit
    def test_env_always_has_example_var(self, store: TemplateStore, demo_project):
        ctx = build_context(demo_project, FeatureSet())
        text = store.render("env", ctx)
        assert "NEXT_PUBLIC_EXAMPLE=demo-app" in text
        assert "NEXTAUTH_SECRET" not in text

    @pytest.mark.unit
    def test_env_example_blanks_secret(self, store: TemplateStore, context: dict):
        env = store.render("env", {**context, "example": False})
        example = store.render("env_example", {**context, "example": True})
        assert "NEXTAUTH_SECRET=s3cret" in env
        assert "NEXTAUTH_SECRET=\n" in example
        assert "DATABASE_URL=" in example

    @pytest.mark.unit
    def test_showcase_imports_only_selected(self, store: TemplateStore, demo_project):
        selection = ComponentSelection(strategy=SelectionStrategy.CUSTOM, components=["button", "rating"])
        ctx = build_context(demo_project, FeatureSet(), selection)
        page = store.render("showcase_page", ctx)
        assert '@/components/ui/button"' in page
        assert "@/components/ui/card" not in page
        assert "@/components/rating" in page
        assert "ThemeToggle" in page

    @pytest.mark.unit
    def test_landing_without_theme_has_no_toggle(self, store: TemplateStore, demo_project):
        ctx = build_context(demo_project, FeatureSet(install_components=False, theme_switch=False))
        assert "ThemeToggle" not in store.render("landing_page", ctx)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_write_uses_output_path(self, store: TemplateStore, context: dict, tmp_path: Path):
        path = await store.write("readme", tmp_path, context)
        assert path == store.output_path("readme", tmp_path) == tmp_path / "README.md"
        assert "demo-app" in path.read_text(encoding="utf-8")


class TestBundles:
    @pytest.mark.unit
    def test_every_bundle_has_templates(self):
        renderer = TemplateRenderer()
        for bundle in BUNDLES:
            assert renderer.list_templates(bundle), bundle

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_auth_bundle_paths(self, store: TemplateStore, context: dict, tmp_path: Path):
        written = await store.write_bundle("auth", tmp_path, context)
        rel = {p.relative_to(tmp_path).as_posix() for p in written}
        assert "app/api/auth/[...nextauth]/route.ts" in rel
        assert "components/auth/auth-provider.tsx" in rel
        assert "lib/auth.ts" in rel

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_bundle(self, store: TemplateStore, tmp_path: Path):
        with pytest.raises(KeyError):
            await store.write_bundle("blockchain", tmp_path, {})

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("component", CUSTOM_COMPONENTS)
    async def test_custom_components_render(self, store: TemplateStore, context: dict, tmp_path: Path, component: str):
        path = await store.write_custom_component(component, tmp_path, context)
        assert path == tmp_path / custom_component_artifact(component).output
        assert path.read_text(encoding="utf-8").strip()


# ---------------------------------------------------------------------------
# Context & filters
# ---------------------------------------------------------------------------


class TestBuildContext:
    @pytest.mark.unit
    def test_keys(self, tmp_path: Path):
        project = ProjectConfig.create("My App", tmp_path, PackageManager.PNPM)
        selection = ComponentSelection(strategy=SelectionStrategy.CUSTOM, components=["button", "rating"])
        ctx = build_context(project, FeatureSet(), selection, secret="x")
        assert ctx["project_name"] == "My App"
        assert ctx["package_name"] == "my-app"
        assert ctx["dev_command"] == "pnpm dev"
        assert ctx["library_components"] == ["button"]
        assert ctx["custom_components"] == ["rating"]
        assert ctx["nextauth_secret"] == "x"

    @pytest.mark.unit
    def test_without_selection(self, demo_project):
        ctx = build_context(demo_project, FeatureSet())
        assert ctx["components"] == []


class TestFilters:
    @pytest.mark.unit
    def test_slugify(self):
        assert slugify("My Cool App!") == "my-cool-app"
        assert slugify("---") == ""

    @pytest.mark.unit
    def test_pascal_case(self):
        assert pascal_case("copy-button") == "CopyButton"
        assert pascal_case("file_tree") == "FileTree"
