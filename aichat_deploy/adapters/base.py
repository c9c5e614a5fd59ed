"""
Build backend base — the contract between the package builder and a compiler.

The builder never calls a compiler directly.  It hands a ``BuildRequest``
to a backend and gets a ``BuildReceipt`` back.  Backends NEVER raise:
failures (including cancellation) are captured in the receipt and turned
into structured errors by the builder.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from aichat_deploy.core.models.package import PackageRef
from aichat_deploy.core.models.toolchain import ToolchainSpec


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class BuildRequest(BaseModel):
    """Everything a backend needs to produce one package.

    ``out_dir`` is the staging directory; the backend must leave the
    executable at ``<out_dir>/bin/<binary>``.
    """

    pname: str
    version: str
    binary: str
    source: str
    out_dir: str
    toolchain: ToolchainSpec
    build_inputs: list[PackageRef] = Field(default_factory=list)
    cargo_flags: list[str] = Field(default_factory=list)
    timeout: float = 3600.0

    @property
    def bin_dir(self) -> str:
        return f"{self.out_dir}/bin"


class BuildReceipt(BaseModel):
    """Outcome of one backend build."""

    backend: str
    status: Literal["ok", "failed", "cancelled"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    returncode: int | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def success(cls, backend: str, output: str = "", **kwargs: Any) -> BuildReceipt:
        return cls(backend=backend, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, backend: str, error: str, **kwargs: Any) -> BuildReceipt:
        return cls(backend=backend, status="failed", error=error, **kwargs)

    @classmethod
    def cancelled(cls, backend: str, **kwargs: Any) -> BuildReceipt:
        return cls(backend=backend, status="cancelled", error="build cancelled", **kwargs)


class BuildBackend(ABC):
    """Abstract base class for build backends.

    To create a new backend:
        1. Subclass BuildBackend
        2. Implement name, is_available, validate, build
        3. Register it in the BackendRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The backend identifier (e.g., 'cargo', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying tool exists.  Fast, never raises."""

    @abstractmethod
    def validate(self, request: BuildRequest) -> tuple[bool, str]:
        """Validate that the request can be built.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def build(self, request: BuildRequest, cancel: threading.Event) -> BuildReceipt:
        """Run the build into ``request.out_dir``.

        MUST never raise.  Must return a ``cancelled`` receipt promptly
        once ``cancel`` is set.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
