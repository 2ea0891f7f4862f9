"""Result types shared by the external tool adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class InstallOutcome(str, Enum):
    """How an external invocation ended."""

    SUCCEEDED = "succeeded"
    SUCCEEDED_VIA_FALLBACK = "succeeded_via_fallback"
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        return self is not InstallOutcome.FAILED


@dataclass
class ToolResult:
    """Record of one component, dependency set, or scaffold attempt."""

    name: str
    outcome: InstallOutcome
    detail: str = ""
    skipped: bool = False
    attempts: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    def summary(self) -> str:
        label = {
            InstallOutcome.SUCCEEDED: "ok",
            InstallOutcome.SUCCEEDED_VIA_FALLBACK: "ok (fallback)",
            InstallOutcome.FAILED: "FAILED",
        }[self.outcome]
        text = f"{self.name}: {label}"
        if self.skipped:
            text += " (some files skipped)"
        if self.detail and not self.ok:
            text += f" - {self.detail.splitlines()[-1][:200]}"
        return text
