"""nextstarter configuration.

Typed models for everything a single run carries around: the project being
generated, the feature toggles chosen in the wizard, and the tuning knobs for
the external generators.  All settings use Pydantic v2 models so they are
validated at construction time.
"""

from __future__ import annotations

import os
import shlex
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PackageManager(str, Enum):
    """Node package managers the generated project can be driven with."""

    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"
    AUTO = "auto"

    @property
    def add_subcommand(self) -> str:
        """Subcommand that adds a dependency (``npm install`` vs ``pnpm add``)."""
        return "install" if self is PackageManager.NPM else "add"

    @property
    def dev_command(self) -> str:
        """Command line that starts the Next.js dev server."""
        if self is PackageManager.YARN:
            return "yarn dev"
        if self is PackageManager.PNPM:
            return "pnpm dev"
        return "npm run dev"

    @property
    def create_flag(self) -> str:
        """``create-next-app`` flag selecting this manager."""
        concrete = PackageManager.NPM if self is PackageManager.AUTO else self
        return f"--use-{concrete.value}"


class FeatureSet(BaseModel):
    """Independent feature toggles collected by the wizard."""

    install_components: bool = Field(default=True, description="Install UI components")
    fast_mode: bool = Field(default=True, description="Batch installs with CI-style env")
    theme_switch: bool = Field(default=True, description="Light/dark theme switcher")
    database: bool = Field(default=False, description="Prisma + MongoDB wiring")
    auth: bool = Field(default=False, description="NextAuth wiring")
    include_docs: bool = Field(default=False, description="Project documentation")
    responsive: bool = Field(default=False, description="Responsive layout helpers")

    LABELS: ClassVar[dict[str, str]] = {
        "install_components": "UI Components",
        "fast_mode": "Fast Mode",
        "theme_switch": "Theme Switcher",
        "database": "Prisma Database",
        "auth": "Authentication",
        "include_docs": "Documentation",
        "responsive": "Responsive Layout",
    }

    def enabled(self) -> list[str]:
        """Field names of every enabled feature, in declaration order."""
        return [name for name in type(self).model_fields if getattr(self, name)]

    def labels(self) -> list[str]:
        """Human-readable names of every enabled feature."""
        return [self.LABELS[name] for name in self.enabled()]

    @property
    def needs_env_secrets(self) -> bool:
        return self.auth or self.database


class ProjectConfig(BaseModel):
    """The project being generated.

    Frozen after the wizard; the only permitted rewrite is a single rename
    when the user resolves a directory collision, plus swapping in a
    concrete package manager.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Project directory / package name")
    package_manager: PackageManager = Field(default=PackageManager.AUTO)
    app_directory: Path = Field(..., description="Absolute path of the project root")
    was_renamed: bool = Field(default=False)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Project name cannot be empty")
        return value

    @field_validator("app_directory")
    @classmethod
    def _absolute_directory(cls, value: Path) -> Path:
        return Path(value).resolve()

    @classmethod
    def create(
        cls,
        name: str,
        parent: str | Path,
        package_manager: PackageManager = PackageManager.AUTO,
    ) -> "ProjectConfig":
        """Build a config whose directory is ``parent / name``."""
        name = name.strip()
        return cls(
            name=name,
            package_manager=package_manager,
            app_directory=Path(parent) / name,
        )

    @property
    def parent_directory(self) -> Path:
        return self.app_directory.parent

    def renamed(self, new_name: str) -> "ProjectConfig":
        """Return a copy pointing at ``parent / new_name``.

        Raises:
            ValueError: If the project was already renamed once.
        """
        if self.was_renamed:
            raise ValueError(f"Project '{self.name}' has already been renamed once")
        new_name = new_name.strip()
        return ProjectConfig(
            name=new_name,
            package_manager=self.package_manager,
            app_directory=self.parent_directory / new_name,
            was_renamed=True,
        )

    def with_package_manager(self, manager: PackageManager) -> "ProjectConfig":
        return self.model_copy(update={"package_manager": manager})


class ToolConfig(BaseModel):
    """Tuning knobs for the external generators and package managers."""

    scaffold_timeout: int = Field(default=180, ge=10, description="create-next-app timeout (s)")
    install_timeout: int = Field(default=600, ge=10, description="Dependency install timeout (s)")
    component_timeout: int = Field(default=300, ge=10, description="shadcn add timeout (s)")
    probe_timeout: int = Field(default=15, ge=1, description="`<pm> --version` timeout (s)")
    batch_size: int = Field(default=5, ge=1, description="Components per batched shadcn call")
    scaffold_command: list[str] = Field(
        default_factory=lambda: ["npx", "create-next-app@latest"]
    )
    component_command: list[str] = Field(
        default_factory=lambda: ["npx", "shadcn@latest", "add"]
    )


class Config(BaseModel):
    """Global nextstarter configuration.

    Created once by the CLI entry point and passed to the wizard and the
    pipeline.
    """

    cwd: Path = Field(default_factory=Path.cwd, description="Directory projects are created in")
    tools: ToolConfig = Field(default_factory=ToolConfig)
    step_delay: float = Field(default=0.0, ge=0.0, description="Pause between pipeline steps (s)")

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            NEXTSTARTER_CWD, NEXTSTARTER_STEP_DELAY,
            NEXTSTARTER_SCAFFOLD_TIMEOUT, NEXTSTARTER_INSTALL_TIMEOUT,
            NEXTSTARTER_COMPONENT_TIMEOUT, NEXTSTARTER_PROBE_TIMEOUT,
            NEXTSTARTER_BATCH_SIZE, NEXTSTARTER_SCAFFOLD_COMMAND,
            NEXTSTARTER_COMPONENT_COMMAND.
        """
        tool_kwargs: dict[str, Any] = {}
        for field_name in (
            "scaffold_timeout",
            "install_timeout",
            "component_timeout",
            "probe_timeout",
            "batch_size",
        ):
            raw = os.environ.get(f"NEXTSTARTER_{field_name.upper()}")
            if raw:
                tool_kwargs[field_name] = int(raw)
        if os.environ.get("NEXTSTARTER_SCAFFOLD_COMMAND"):
            tool_kwargs["scaffold_command"] = shlex.split(os.environ["NEXTSTARTER_SCAFFOLD_COMMAND"])
        if os.environ.get("NEXTSTARTER_COMPONENT_COMMAND"):
            tool_kwargs["component_command"] = shlex.split(
                os.environ["NEXTSTARTER_COMPONENT_COMMAND"]
            )

        kwargs: dict[str, Any] = {"tools": ToolConfig(**tool_kwargs)}
        if os.environ.get("NEXTSTARTER_CWD"):
            kwargs["cwd"] = Path(os.environ["NEXTSTARTER_CWD"])
        if os.environ.get("NEXTSTARTER_STEP_DELAY"):
            kwargs["step_delay"] = float(os.environ["NEXTSTARTER_STEP_DELAY"])

        return cls(**kwargs)
