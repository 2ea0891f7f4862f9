"""nextstarter command-line entry point.

The whole session is one explicit loop: wizard, pipeline, post-run menu.
``RestartRequested`` goes back to the top of the loop and
``AbortRequested`` leaves it with its exit code.  Anything unexpected is
shown in a red panel with the choice to try again, see the traceback, or
exit.
"""

from __future__ import annotations

import asyncio
import sys
import traceback

import questionary
from questionary import Choice

from nextstarter.actions import PostRunActions
from nextstarter.config import Config
from nextstarter.errors import AbortRequested, RestartRequested
from nextstarter.pipeline import Pipeline
from nextstarter.utils import console, print_error, print_panel
from nextstarter.wizard import InteractivePrompts, Wizard

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

RECOVER_RETRY = "retry"
RECOVER_DETAILS = "details"
RECOVER_EXIT = "exit"


async def session(config: Config) -> None:
    """One wizard + pipeline + post-run pass.

    Returns normally only if the post-run menu does; control otherwise leaves
    through ``RestartRequested`` or ``AbortRequested``.
    """
    project, features, selection = await Wizard(config).collect()
    pipeline = Pipeline(config, project, features, selection, InteractivePrompts())
    result = await pipeline.run()

    actions = PostRunActions(result)
    while True:
        await actions.run()


async def recover(exc: BaseException) -> bool:
    """Ask what to do after an unexpected error.  ``True`` means try again."""
    print_panel(f"{type(exc).__name__}: {exc}", title="Error", style="bold red")
    details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    while True:
        answer = await questionary.select(
            "What would you like to do?",
            choices=[
                Choice("Try again", value=RECOVER_RETRY),
                Choice("Show detailed error", value=RECOVER_DETAILS),
                Choice("Exit", value=RECOVER_EXIT),
            ],
        ).ask_async()
        if answer == RECOVER_DETAILS:
            console.print(f"[dim]{details}[/dim]")
            continue
        return answer == RECOVER_RETRY


async def run(config: Config) -> int:
    """Run sessions until the user exits; return the process exit code."""
    while True:
        try:
            await session(config)
        except RestartRequested:
            console.print()
            continue
        except AbortRequested as exc:
            if exc.exit_code:
                print_error(str(exc))
            return exc.exit_code
        except Exception as exc:
            if await recover(exc):
                continue
            return EXIT_FAILURE


def main() -> None:
    """CLI entry point for ``nextstarter`` and ``python -m nextstarter``."""
    try:
        config = Config.from_env()
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid configuration: {exc}")
        sys.exit(EXIT_FAILURE)

    try:
        code = asyncio.run(run(config))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        code = EXIT_INTERRUPTED
    sys.exit(code)


if __name__ == "__main__":
    main()
