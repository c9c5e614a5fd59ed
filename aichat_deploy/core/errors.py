"""
Error taxonomy — every failure the composition layer can surface.

Each error names the component that failed and the input that caused
it.  Errors are raised, never collected: the first failure aborts the
evaluation and propagates to the caller.

    DeployError
    ├── ConfigError                 descriptor / manifest unreadable or invalid
    ├── UnresolvableToolchain       channel, version or platform not in the catalog
    ├── MissingDependency           build input or source tree cannot be resolved
    ├── BuildFailure                backend (compiler) reported failure
    │   └── BuildCancelled          evaluation aborted while building
    ├── UnresolvedPackagePath       binding rule names a package outside the tool set
    ├── BindingConflict             two binding rules target one variable (strict mode)
    └── PropagatedUpstreamFailure   service unit refused because the artifact failed
"""

from __future__ import annotations

from typing import Any


class DeployError(Exception):
    """Base class for structured composition errors.

    Attributes:
        component: Which component failed (``toolchain``, ``builder``, ...).
        subject:   The input that caused the failure (file, package, variable).
        message:   Human-readable description.
    """

    kind = "deploy_error"
    default_component = "deploy"

    def __init__(
        self,
        message: str,
        *,
        component: str | None = None,
        subject: str = "",
    ) -> None:
        self.message = message
        self.component = component or self.default_component
        self.subject = subject
        super().__init__(str(self))

    def __str__(self) -> str:
        where = f"{self.component}"
        if self.subject:
            where += f": {self.subject}"
        return f"[{where}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "component": self.component,
            "subject": self.subject,
            "message": self.message,
        }


class ConfigError(DeployError):
    """Raised when the descriptor or a manifest is invalid or missing."""

    kind = "config_error"
    default_component = "config"


class UnresolvableToolchain(DeployError):
    kind = "unresolvable_toolchain"
    default_component = "toolchain"


class MissingDependency(DeployError):
    kind = "missing_dependency"
    default_component = "builder"


class BuildFailure(DeployError):
    """The build backend reported a failed build.

    ``returncode`` and ``output`` carry what the compiler said, trimmed
    to the last lines.
    """

    kind = "build_failure"
    default_component = "builder"

    def __init__(
        self,
        message: str,
        *,
        subject: str = "",
        returncode: int | None = None,
        output: str = "",
    ) -> None:
        self.returncode = returncode
        self.output = output
        super().__init__(message, subject=subject)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["returncode"] = self.returncode
        data["output"] = self.output
        return data


class BuildCancelled(BuildFailure):
    kind = "build_cancelled"


class UnresolvedPackagePath(DeployError):
    kind = "unresolved_package_path"
    default_component = "devshell"


class BindingConflict(DeployError):
    kind = "binding_conflict"
    default_component = "devshell"


class PropagatedUpstreamFailure(DeployError):
    """The service unit was not emitted because its artifact failed.

    The original error is kept as ``upstream`` (and as ``__cause__``).
    """

    kind = "propagated_upstream_failure"
    default_component = "service"

    def __init__(self, upstream: DeployError, *, subject: str = "") -> None:
        self.upstream = upstream
        super().__init__(
            f"refusing to define service unit: {upstream}",
            subject=subject,
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["upstream"] = self.upstream.to_dict()
        return data
