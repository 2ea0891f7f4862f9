"""Structured model of the generated root layout (``app/layout.tsx``).

Optional stages do not edit layout source text.  They register imports and
body wrappers on a :class:`LayoutDocument`, which is rendered to disk once.
Wrapper order is decided by the document: the theme provider is always the
outer wrapper and the auth provider sits inside it, whichever stage ran first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .templates import ARTIFACTS, TemplateRenderer

BASE_IMPORTS: tuple[str, ...] = (
    'import type { Metadata } from "next";',
    'import { Inter } from "next/font/google";',
    'import "./globals.css";',
)

_BODY_INDENT = " " * 8
_STEP = "  "


@dataclass(frozen=True)
class Wrapper:
    """A provider component wrapped around ``{children}``.

    ``depth`` orders wrappers: a lower value wraps a higher one.
    """

    key: str
    component: str
    import_line: str
    props: tuple[tuple[str, str | None], ...] = ()
    depth: int = 0

    def opening_tag(self) -> str:
        if not self.props:
            return f"<{self.component}>"
        attrs = " ".join(name if value is None else f"{name}={value}" for name, value in self.props)
        return f"<{self.component} {attrs}>"

    def closing_tag(self) -> str:
        return f"</{self.component}>"


THEME_WRAPPER = Wrapper(
    key="theme",
    component="ThemeProvider",
    import_line='import { ThemeProvider } from "@/components/theme/theme-provider";',
    props=(
        ("attribute", '"class"'),
        ("defaultTheme", '"system"'),
        ("enableSystem", None),
        ("disableTransitionOnChange", None),
    ),
    depth=0,
)

AUTH_WRAPPER = Wrapper(
    key="auth",
    component="AuthProvider",
    import_line='import { AuthProvider } from "@/components/auth/auth-provider";',
    depth=10,
)


@dataclass
class LayoutDocument:
    """Imports plus a stack of body wrappers, outermost first."""

    title: str
    description: str = "A modern Next.js application"
    imports: list[str] = field(default_factory=lambda: list(BASE_IMPORTS))
    wrappers: list[Wrapper] = field(default_factory=list)

    @classmethod
    def for_project(cls, project_name: str) -> "LayoutDocument":
        return cls(title=project_name, description=f"{project_name}: built with Next.js and shadcn/ui")

    def has_wrapper(self, key: str) -> bool:
        return any(w.key == key for w in self.wrappers)

    def add_import(self, line: str) -> None:
        if line not in self.imports:
            self.imports.append(line)

    def add_wrapper(self, wrapper: Wrapper) -> None:
        """Register *wrapper*, nesting it inside every shallower wrapper present.

        Adding a wrapper twice is a no-op.
        """
        if self.has_wrapper(wrapper.key):
            return
        self.add_import(wrapper.import_line)
        position = len(self.wrappers)
        for index, existing in enumerate(self.wrappers):
            if existing.depth > wrapper.depth:
                position = index
                break
        self.wrappers.insert(position, wrapper)

    def render_body(self) -> str:
        """JSX for the contents of ``<body>``, indented for the layout template."""
        lines: list[str] = []
        for level, wrapper in enumerate(self.wrappers):
            lines.append(_BODY_INDENT + _STEP * level + wrapper.opening_tag())
        lines.append(_BODY_INDENT + _STEP * len(self.wrappers) + "{children}")
        for level, wrapper in reversed(list(enumerate(self.wrappers))):
            lines.append(_BODY_INDENT + _STEP * level + wrapper.closing_tag())
        return "\n".join(lines)

    def _context(self) -> dict[str, object]:
        return {
            "imports": self.imports,
            "title": self.title,
            "description": self.description,
            "body": self.render_body(),
        }

    def render(self, renderer: TemplateRenderer) -> str:
        return renderer.render(ARTIFACTS["layout"].template, self._context())

    async def write(self, renderer: TemplateRenderer, project_dir: Path) -> Path:
        """Render the document to ``app/layout.tsx``, replacing whatever is there."""
        return await renderer.render_to_file(
            ARTIFACTS["layout"].template,
            project_dir / ARTIFACTS["layout"].output,
            self._context(),
        )
