"""Interactive configuration wizard.

Collects a :class:`ProjectConfig`, a :class:`FeatureSet` and a
:class:`ComponentSelection` through questionary prompts, shows a summary and
asks for confirmation.  Also provides the interactive answers the pipeline
needs when the target directory collides or the scaffold gate fails.

Every prompt is awaited with ``ask_async``; an answer of ``None`` means the
user pressed Ctrl-C or closed the input, which becomes :class:`AbortRequested`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import questionary
from questionary import Choice, Separator

from nextstarter.catalog import (
    CATEGORIES,
    DEFAULT_COMPONENTS,
    PRECHECKED_COMPONENTS,
    ComponentSelection,
    SelectionStrategy,
    display_name,
    resolve_selection,
)
from nextstarter.config import Config, FeatureSet, PackageManager, ProjectConfig
from nextstarter.errors import AbortRequested, RestartRequested, StructuralError
from nextstarter.pipeline import CollisionChoice, GateChoice
from nextstarter.tools.package_manager import resolve_package_manager
from nextstarter.utils import (
    console,
    is_directory_available,
    print_header,
    print_panel,
    print_summary_table,
    print_warning,
    summarize_list,
)

DEFAULT_PROJECT_NAME = "my-next-app"

ABOUT_TEXT = (
    "nextstarter creates a Next.js application with TypeScript, Tailwind CSS\n"
    "and shadcn/ui components, and can wire in a theme switcher, NextAuth,\n"
    "Prisma with MongoDB, project docs and responsive layout helpers."
)

MENU_CREATE = "create"
MENU_ABOUT = "about"
MENU_EXIT = "exit"


def validate_project_name(name: str, cwd: str | Path) -> bool | str:
    """Return ``True`` for a usable project name, else the reason it is not.

    The name must be non-blank, and ``cwd / name`` must either not exist or be
    an empty directory.
    """
    name = (name or "").strip()
    if not name:
        return "Project name cannot be empty"
    target = Path(cwd) / name
    if target.exists() and not target.is_dir():
        return f"A file named '{name}' already exists"
    if not is_directory_available(target):
        return f"Directory '{name}' already exists and is not empty"
    return True


async def _ask(question: Any) -> Any:
    answer = await question.ask_async()
    if answer is None:
        raise AbortRequested(1, "Cancelled by user")
    return answer


def feature_choices(defaults: FeatureSet | None = None) -> list[Choice]:
    defaults = defaults or FeatureSet()
    return [
        Choice(title=label, value=name, checked=getattr(defaults, name))
        for name, label in FeatureSet.LABELS.items()
    ]


def component_choices() -> list[Choice | Separator]:
    """Checkbox entries grouped by category with the default subset pre-checked."""
    choices: list[Choice | Separator] = []
    for category, components in CATEGORIES.items():
        choices.append(Separator(f"== {category} =="))
        choices.extend(
            Choice(title=display_name(c), value=c, checked=c in PRECHECKED_COMPONENTS)
            for c in components
        )
    return choices


class Wizard:
    """One pass of the interactive questions."""

    def __init__(self, config: Config) -> None:
        self.config = config

    async def welcome_menu(self) -> None:
        """Show the welcome menu until the user chooses to create an app.

        Raises:
            AbortRequested: With exit code 0 when the user picks Exit.
        """
        print_header("nextstarter")
        while True:
            choice = await _ask(
                questionary.select(
                    "What would you like to do?",
                    choices=[
                        Choice("Create a new Next.js app", value=MENU_CREATE),
                        Choice("About", value=MENU_ABOUT),
                        Choice("Exit", value=MENU_EXIT),
                    ],
                )
            )
            if choice == MENU_CREATE:
                return
            if choice == MENU_ABOUT:
                print_panel(ABOUT_TEXT, title="About")
                continue
            raise AbortRequested(0, "Goodbye")

    async def ask_project_name(self) -> str:
        name = await _ask(
            questionary.text(
                "Project name:",
                default=DEFAULT_PROJECT_NAME,
                validate=lambda text: validate_project_name(text, self.config.cwd),
            )
        )
        return name.strip()

    async def ask_package_manager(self) -> PackageManager:
        choice = await _ask(
            questionary.select(
                "Package manager:",
                choices=[
                    Choice("auto (detect)", value=PackageManager.AUTO.value),
                    Choice("npm", value=PackageManager.NPM.value),
                    Choice("pnpm", value=PackageManager.PNPM.value),
                    Choice("yarn", value=PackageManager.YARN.value),
                ],
            )
        )
        manager = await resolve_package_manager(
            PackageManager(choice), self.config.tools.probe_timeout
        )
        if choice == PackageManager.AUTO.value:
            console.print(f"[dim]Detected package manager: {manager.value}[/dim]")
        return manager

    async def ask_features(self) -> FeatureSet:
        chosen = await _ask(
            questionary.checkbox("Select features:", choices=feature_choices())
        )
        return FeatureSet(**{name: name in chosen for name in FeatureSet.LABELS})

    async def ask_components(self, features: FeatureSet) -> ComponentSelection:
        if not features.install_components:
            return ComponentSelection(
                strategy=SelectionStrategy.ESSENTIAL, components=DEFAULT_COMPONENTS
            )

        strategy = await _ask(
            questionary.select(
                "Which components should be installed?",
                choices=[
                    Choice("Choose components", value=SelectionStrategy.CUSTOM.value),
                    Choice("All components", value=SelectionStrategy.ALL.value),
                    Choice("Essential components", value=SelectionStrategy.ESSENTIAL.value),
                ],
            )
        )
        chosen: list[str] = []
        if strategy == SelectionStrategy.CUSTOM.value:
            chosen = await _ask(
                questionary.checkbox("Select components:", choices=component_choices())
            )
            if not chosen:
                print_warning("No components selected; using the default set.")
        return resolve_selection(strategy, chosen)

    async def confirm(
        self,
        project: ProjectConfig,
        features: FeatureSet,
        selection: ComponentSelection,
    ) -> None:
        """Show the summary table and ask to proceed.

        Raises:
            RestartRequested: If the user declines.
        """
        components = (
            summarize_list(list(selection.components))
            if features.install_components
            else "None"
        )
        print_summary_table(
            {
                "Project": project.name,
                "Location": str(project.app_directory),
                "Package manager": project.package_manager.value,
                "Features": ", ".join(features.labels()) or "None",
                "Components": components,
            },
            title="Project summary",
        )
        proceed = await _ask(questionary.confirm("Create this project?", default=True))
        if not proceed:
            raise RestartRequested()

    async def collect(self) -> tuple[ProjectConfig, FeatureSet, ComponentSelection]:
        """Ask every question and return the confirmed answers."""
        await self.welcome_menu()
        name = await self.ask_project_name()
        manager = await self.ask_package_manager()
        features = await self.ask_features()
        selection = await self.ask_components(features)
        project = ProjectConfig.create(name, self.config.cwd, manager)
        await self.confirm(project, features, selection)
        return project, features, selection


class InteractivePrompts:
    """Questionary answers for the decisions the pipeline cannot make alone."""

    async def resolve_collision(
        self, project: ProjectConfig
    ) -> tuple[CollisionChoice, str | None]:
        print_warning(f"Directory '{project.app_directory}' is not empty.")
        choices = [
            Choice("Delete it and start fresh", value=CollisionChoice.DELETE.value),
            Choice("Cancel", value=CollisionChoice.CANCEL.value),
        ]
        if not project.was_renamed:
            choices.insert(0, Choice("Use a different name", value=CollisionChoice.RENAME.value))

        choice = await self._ask_or_cancel(questionary.select("What should happen?", choices=choices))
        if choice is None:
            return CollisionChoice.CANCEL, None

        if choice == CollisionChoice.RENAME.value:
            new_name = await self._ask_or_cancel(
                questionary.text(
                    "New project name:",
                    default=f"{project.name}-2",
                    validate=lambda text: validate_project_name(text, project.parent_directory),
                )
            )
            if new_name is None:
                return CollisionChoice.CANCEL, None
            return CollisionChoice.RENAME, new_name.strip()

        if choice == CollisionChoice.DELETE.value:
            sure = await self._ask_or_cancel(
                questionary.confirm(
                    f"Permanently delete {project.app_directory}?", default=False
                )
            )
            if sure:
                return CollisionChoice.DELETE, None
        return CollisionChoice.CANCEL, None

    async def resolve_missing_project(self, error: StructuralError) -> GateChoice:
        choice = await _ask(
            questionary.select(
                f"The project directory is incomplete ({error.missing} missing).",
                choices=[
                    Choice("Create the project manually", value=GateChoice.CREATE_MANUALLY.value),
                    Choice("Start over", value=GateChoice.RETRY.value),
                    Choice("Exit", value=GateChoice.EXIT.value),
                ],
            )
        )
        return GateChoice(choice)

    @staticmethod
    async def _ask_or_cancel(question: Any) -> Any:
        return await question.ask_async()
