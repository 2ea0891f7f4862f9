"""What to do with the project once it has been generated."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import questionary
from questionary import Choice

from nextstarter.errors import AbortRequested, RestartRequested
from nextstarter.pipeline import PipelineResult
from nextstarter.tools.launcher import (
    LaunchResult,
    open_directory,
    open_editor,
    start_dev_server,
)
from nextstarter.utils import print_info, print_panel, print_success, print_warning


class PostAction(str, Enum):
    CREATE_ANOTHER = "restart"
    OPEN_PROJECT = "open"
    OPEN_EDITOR = "editor"
    EDITOR_AND_SERVER = "editor+dev"
    EXIT = "exit"


class EditorFallback(str, Enum):
    OPEN_DIRECTORY = "directory"
    DEV_SERVER = "dev"
    CONTINUE = "continue"


def manual_instructions(result: PipelineResult) -> str:
    return f"cd {result.project.name}\n{result.dev_command}"


class PostRunActions:
    """The menu shown after a successful run.

    Launchers never raise for a missing binary; they report a negative
    :class:`LaunchResult` which is turned into a warning or manual
    instructions here.
    """

    def __init__(self, result: PipelineResult) -> None:
        self.result = result

    @property
    def project_dir(self) -> Path:
        return self.result.project.app_directory

    async def choose(self) -> PostAction:
        answer = await questionary.select(
            "What next?",
            choices=[
                Choice("Create another app", value=PostAction.CREATE_ANOTHER.value),
                Choice("Open the project and run the dev server", value=PostAction.OPEN_PROJECT.value),
                Choice("Open in editor", value=PostAction.OPEN_EDITOR.value),
                Choice("Open in editor and run the dev server", value=PostAction.EDITOR_AND_SERVER.value),
                Choice("Exit", value=PostAction.EXIT.value),
            ],
        ).ask_async()
        if answer is None:
            return PostAction.EXIT
        return PostAction(answer)

    async def run(self) -> PostAction:
        """Perform the chosen action.

        Raises:
            RestartRequested: When the user wants another app.
            AbortRequested: With exit code 0 when the user exits.
        """
        action = await self.choose()
        if action is PostAction.CREATE_ANOTHER:
            raise RestartRequested()
        if action is PostAction.EXIT:
            raise AbortRequested(0, "Goodbye")

        if action is PostAction.OPEN_PROJECT:
            self.open_directory()
            self.start_dev_server()
        elif action is PostAction.OPEN_EDITOR:
            await self.open_editor()
        else:
            if await self.open_editor():
                self.start_dev_server()
        return action

    def open_directory(self) -> LaunchResult:
        launched = open_directory(self.project_dir)
        if launched.ok:
            print_success(f"Opened {self.project_dir}")
        else:
            print_warning(f"Could not open a file manager ({launched.error}).")
        return launched

    def start_dev_server(self) -> LaunchResult:
        launched = start_dev_server(self.project_dir, self.result.dev_command)
        if launched.ok:
            print_success(f"Started `{self.result.dev_command}` in a new terminal")
        else:
            print_warning("Could not open a terminal. Start the dev server yourself:")
            print_panel(manual_instructions(self.result), title="Run", style="yellow")
        return launched

    async def open_editor(self) -> bool:
        """Open the project in an editor, offering alternatives when none starts."""
        launched = open_editor(self.project_dir)
        if launched.ok:
            print_success(f"Opened {self.project_dir} in {launched.argv[0]}")
            return True

        print_warning(f"No editor found (tried {', '.join(launched.tried)}).")
        answer = await questionary.select(
            "What instead?",
            choices=[
                Choice("Open the project directory", value=EditorFallback.OPEN_DIRECTORY.value),
                Choice("Start the dev server", value=EditorFallback.DEV_SERVER.value),
                Choice("Continue", value=EditorFallback.CONTINUE.value),
            ],
        ).ask_async()
        fallback = EditorFallback(answer) if answer else EditorFallback.CONTINUE
        if fallback is EditorFallback.OPEN_DIRECTORY:
            self.open_directory()
        elif fallback is EditorFallback.DEV_SERVER:
            self.start_dev_server()
        else:
            print_info(manual_instructions(self.result))
        return False
