"""Exceptions shared by the wizard, the generation pipeline and the CLI loop."""

from __future__ import annotations

from pathlib import Path


class PipelineError(Exception):
    """Raised when a generation stage fails irrecoverably."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"Stage '{stage}': {message}")


class StructuralError(PipelineError):
    """The project directory is missing or lacks its package manifest."""

    def __init__(self, project_dir: Path, missing: str) -> None:
        self.project_dir = project_dir
        self.missing = missing
        super().__init__("chdir", f"{missing} not found in {project_dir}")


class RestartRequested(Exception):
    """Discard the current answers and start the wizard from scratch."""


class AbortRequested(Exception):
    """Leave the wizard loop and exit with ``exit_code``."""

    def __init__(self, exit_code: int = 1, message: str = "Aborted") -> None:
        self.exit_code = exit_code
        super().__init__(message)
