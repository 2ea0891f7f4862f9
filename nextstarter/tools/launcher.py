"""Open the generated project in a file manager, an editor, or a terminal.

Every launcher is a prioritised list of candidate command lines built by a
pure function of the platform and the project.  Candidates whose executable
is not on ``PATH`` are skipped; the first one that starts wins.  When none
does, the caller gets a negative :class:`LaunchResult`, never an exception.
"""

from __future__ import annotations

import shlex
import shutil
import subprocess
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

WINDOWS = "windows"
MACOS = "macos"
LINUX = "linux"

LINUX_FILE_MANAGERS: tuple[str, ...] = (
    "xdg-open",
    "nautilus",
    "dolphin",
    "thunar",
    "nemo",
    "caja",
    "pcmanfm",
)

EDITORS: tuple[str, ...] = ("code", "code-insiders", "codium", "vscodium")

# How each terminal is told to run a command.
LINUX_TERMINALS: dict[str, tuple[str, ...]] = {
    "gnome-terminal": ("--",),
    "konsole": ("-e",),
    "xterm": ("-e",),
    "xfce4-terminal": ("-x",),
    "terminator": ("-x",),
    "alacritty": ("-e",),
    "kitty": (),
}


@dataclass
class LaunchResult:
    ok: bool
    argv: list[str] | None = None
    tried: list[str] = field(default_factory=list)
    error: str = ""


def platform_family(platform: str | None = None) -> str:
    """Map ``sys.platform`` values onto windows / macos / linux."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        return WINDOWS
    if platform == "darwin":
        return MACOS
    return LINUX


# ---------------------------------------------------------------------------
# Candidate builders
# ---------------------------------------------------------------------------


def file_manager_candidates(project_dir: Path, platform: str | None = None) -> list[list[str]]:
    family = platform_family(platform)
    target = str(project_dir)
    if family == WINDOWS:
        return [["explorer.exe", target]]
    if family == MACOS:
        return [["open", target]]
    return [[binary, target] for binary in LINUX_FILE_MANAGERS]


def editor_candidates(project_dir: Path, platform: str | None = None) -> list[list[str]]:
    family = platform_family(platform)
    binaries: list[str] = []
    for editor in EDITORS:
        if family == WINDOWS:
            binaries.append(f"{editor}.cmd")
        binaries.append(editor)
    return [[binary, "--new-window", str(project_dir)] for binary in binaries]


def _applescript_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def terminal_candidates(
    project_dir: Path, command: str, platform: str | None = None
) -> list[list[str]]:
    """Command lines that open a new terminal running *command* in *project_dir*.

    The Windows candidate carries no path: it is started with
    ``cwd=project_dir`` in a console of its own, since cmd.exe does not
    understand the backslash-escaped quotes ``subprocess`` would put around
    an embedded path.
    """
    family = platform_family(platform)
    if family == WINDOWS:
        return [["cmd.exe", "/k", command]]
    if family == MACOS:
        script = f"cd {shlex.quote(str(project_dir))} && {command}"
        return [
            [
                "osascript",
                "-e",
                f'tell application "Terminal" to do script "{_applescript_string(script)}"',
                "-e",
                'tell application "Terminal" to activate',
            ]
        ]
    shell_script = f"cd {shlex.quote(str(project_dir))} && {command}; exec bash"
    return [
        [terminal, *flags, "bash", "-c", shell_script]
        for terminal, flags in LINUX_TERMINALS.items()
    ]


# ---------------------------------------------------------------------------
# Probing and spawning
# ---------------------------------------------------------------------------


def spawn_detached(argv: list[str], cwd: Path | None = None, new_console: bool = False) -> None:
    """Start *argv* in *cwd* without waiting for it or sharing our terminal.

    On Windows ``new_console`` opens a visible console window for the child
    instead of detaching it.

    Raises:
        OSError: If the process cannot be started.
    """
    kwargs: dict[str, object] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
    }
    if sys.platform.startswith("win"):
        window = subprocess.CREATE_NEW_CONSOLE if new_console else subprocess.DETACHED_PROCESS
        kwargs["creationflags"] = window | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True
    subprocess.Popen(argv, cwd=str(cwd) if cwd else None, **kwargs)


def launch_first(
    candidates: list[list[str]],
    *,
    cwd: Path | None = None,
    new_console: bool = False,
    which: Callable[[str], str | None] = shutil.which,
    spawn: Callable[..., None] = spawn_detached,
) -> LaunchResult:
    """Start the first candidate whose executable exists, in *cwd*."""
    tried: list[str] = []
    error = "no candidate found on PATH"
    for argv in candidates:
        tried.append(argv[0])
        if which(argv[0]) is None:
            continue
        try:
            spawn(argv, cwd=cwd, new_console=new_console)
        except OSError as exc:
            error = f"{argv[0]}: {exc}"
            continue
        return LaunchResult(True, argv, tried)
    return LaunchResult(False, None, tried, error)


def open_directory(project_dir: Path, platform: str | None = None) -> LaunchResult:
    return launch_first(file_manager_candidates(project_dir, platform), cwd=project_dir)


def open_editor(project_dir: Path, platform: str | None = None) -> LaunchResult:
    return launch_first(editor_candidates(project_dir, platform), cwd=project_dir)


def start_dev_server(project_dir: Path, command: str, platform: str | None = None) -> LaunchResult:
    return launch_first(
        terminal_candidates(project_dir, command, platform), cwd=project_dir, new_console=True
    )
