"""
Evaluation context — the resolved inputs shared by every component.

One context is built per evaluation and passed explicitly into each
component's entry point.  It is never looked up globally:

    - CLI:          main.py  → use_cases.evaluate.open_session(...)
    - Tests:        EvaluationContext(toolchain=..., packages=..., ...)

Design notes:
    - Frozen dataclass: the toolchain is shared, read-only, and exactly
      one is active per evaluation.
    - ``cancel`` is the only mutable member.  Setting it asks in-flight
      builds started for this evaluation to stop.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path

from aichat_deploy.core.models.package import PackageIndex
from aichat_deploy.core.models.toolchain import ToolchainSpec


@dataclass(frozen=True)
class EvaluationContext:
    """Everything a component needs besides its own settings."""

    toolchain: ToolchainSpec
    packages: PackageIndex
    system: str = "x86_64-linux"
    root: Path = field(default_factory=Path.cwd)
    cancel: threading.Event = field(default_factory=threading.Event, compare=False)

    @property
    def platform(self) -> str:
        """Target triple the evaluation builds for."""
        return self.toolchain.target

    @property
    def cancelled(self) -> bool:
        return self.cancel.is_set()

    def abort(self) -> None:
        """Request cancellation of builds started for this evaluation."""
        self.cancel.set()
