"""Shared utility functions for nextstarter.

Provides async command execution, JSON manifest I/O, directory checks, secret
generation, and Rich-based console reporting.  Command execution never raises
for a missing executable: the caller gets a non-zero return code instead, so
every external tool can be treated as an optional capability.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
import secrets
import signal
import subprocess
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.rule import Rule
from rich.table import Table

console = Console()

COMMAND_NOT_FOUND = 127

IS_WINDOWS = sys.platform.startswith("win")

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run *cmd* (an argv list, never a shell string) in *cwd*.

    ``env`` entries are layered over the current environment.  The child runs
    in its own process group so that a timeout stops everything it spawned,
    not just the direct child (``npx`` leaves node and npm processes behind).

    Returns:
        ``(returncode, stdout, stderr)``.  ``127`` means the executable could
        not be started; ``-1`` means it was killed after *timeout* seconds.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    display = " ".join(cmd)
    if IS_WINDOWS:
        group_kwargs: dict[str, Any] = {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    else:
        group_kwargs = {"start_new_session": True}

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
            **group_kwargs,
        )
    except FileNotFoundError:
        return (COMMAND_NOT_FOUND, "", f"Command not found: {cmd[0]}")
    except OSError as exc:
        return (COMMAND_NOT_FOUND, "", f"Could not start {cmd[0]}: {exc}")

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        await kill_process_tree(process)
        return (-1, "", f"Command timed out after {timeout}s: {display}")
    except asyncio.CancelledError:
        await kill_process_tree(process)
        raise

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


async def kill_process_tree(process: asyncio.subprocess.Process) -> None:
    """Kill *process* and every descendant in its process group, then reap it."""
    if IS_WINDOWS:
        with contextlib.suppress(OSError):
            killer = await asyncio.create_subprocess_exec(
                "taskkill", "/T", "/F", "/PID", str(process.pid),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await killer.wait()
    else:
        with contextlib.suppress(ProcessLookupError, PermissionError):
            os.killpg(process.pid, signal.SIGKILL)
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    await process.wait()


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Read a JSON object such as ``package.json``.

    Raises:
        FileNotFoundError: The file is missing.
        ValueError: The file is not JSON, or its top level is not an object.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Write *data* with two-space indentation, the way npm formats manifests."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    await asyncio.to_thread(file_path.write_text, content, "utf-8")


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist."""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path.resolve()


def is_directory_available(path: str | Path) -> bool:
    """Return ``True`` if *path* does not exist or is an empty directory."""
    target = Path(path)
    if not target.exists():
        return True
    if not target.is_dir():
        return False
    return not any(target.iterdir())


def generate_secret(num_bytes: int = 32) -> str:
    """Random URL-safe token for ``NEXTAUTH_SECRET``."""
    return secrets.token_urlsafe(num_bytes)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """``3.7`` -> ``"3.7s"``, ``65.2`` -> ``"1m 5s"``."""
    seconds = max(seconds, 0.0)
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, rest = divmod(int(seconds), 60)
    return f"{minutes}m {rest}s"


def summarize_list(items: list[str], limit: int = 5) -> str:
    """Comma-join *items*, eliding everything past *limit*."""
    if not items:
        return "None"
    shown = ", ".join(items[:limit])
    return f"{shown}, ..." if len(items) > limit else shown


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str, style: str = "bright_cyan") -> None:
    """Print a full-width rule announcing a section of output."""
    console.print()
    console.print(Rule(f"[bold {style}] {title} [/bold {style}]", style=style))
    console.print()


def print_panel(body: str, title: str, style: str = "bright_cyan") -> None:
    console.print(Panel(body, title=f"[bold]{title}[/bold]", border_style=style))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Setting / value table used by the wizard summary and the final report."""
    table = Table(title=title, header_style="bold cyan", title_justify="left")
    table.add_column("Setting", style="dim", no_wrap=True)
    table.add_column("Value", overflow="fold")
    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    console.print(f"[green]\u2714[/green] {message}")


def print_error(message: str) -> None:
    console.print(f"[bold red]\u2716 {message}[/bold red]")


def print_warning(message: str) -> None:
    console.print(f"[yellow]! {message}[/yellow]")


def print_info(message: str) -> None:
    console.print(f"[dim]{message}[/dim]")


def create_progress() -> Progress:
    """Step counter shown while the pipeline runs; one task per run."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )
