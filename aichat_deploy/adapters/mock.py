"""
Mock backend — stand-in compiler for dry runs and tests.

Writes a small launcher script as the "built" executable without
invoking any toolchain.  Configurable to fail, and to block on a gate
so tests can hold a build in flight.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path

from aichat_deploy.adapters.base import BuildBackend, BuildReceipt, BuildRequest


class MockBuildBackend(BuildBackend):
    """Universal mock backend.

    By default every build succeeds.  ``set_failure`` makes the next
    builds fail; ``gate`` (if given) holds each build until it is set.
    ``started`` is set as soon as a build begins.
    """

    def __init__(
        self,
        backend_name: str = "mock",
        available: bool = True,
        gate: threading.Event | None = None,
        delay: float = 0.0,
    ):
        self._name = backend_name
        self._available = available
        self._gate = gate
        self._delay = delay
        self._failure: str | None = None
        self._lock = threading.Lock()
        self._call_log: list[BuildRequest] = []
        self.started = threading.Event()

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[BuildRequest]:
        """All requests this mock has received."""
        with self._lock:
            return list(self._call_log)

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def set_failure(self, error: str = "mock build failure") -> None:
        self._failure = error

    def clear_failure(self) -> None:
        self._failure = None

    def validate(self, request: BuildRequest) -> tuple[bool, str]:
        if not self._available:
            return False, f"{self._name} backend is not available"
        if not Path(request.source).is_dir():
            return False, f"Source tree does not exist: {request.source}"
        return True, ""

    def build(self, request: BuildRequest, cancel: threading.Event) -> BuildReceipt:
        with self._lock:
            self._call_log.append(request)
        self.started.set()

        if self._gate is not None:
            while not self._gate.wait(timeout=0.05):
                if cancel.is_set():
                    return BuildReceipt.cancelled(backend=self._name)
        if self._delay:
            time.sleep(self._delay)
        if cancel.is_set():
            return BuildReceipt.cancelled(backend=self._name)

        if self._failure is not None:
            return BuildReceipt.failure(
                backend=self._name,
                error=self._failure,
                returncode=101,
                output=f"error: could not compile `{request.pname}`",
            )

        bin_dir = Path(request.bin_dir)
        bin_dir.mkdir(parents=True, exist_ok=True)
        exe = bin_dir / request.binary
        exe.write_text(
            "#!/bin/sh\n"
            f"# {request.pname} {request.version} ({request.toolchain.name})\n"
            f'echo "{request.binary} [mock build]" "$@"\n',
            encoding="utf-8",
        )
        exe.chmod(0o755)
        return BuildReceipt.success(
            backend=self._name,
            output=f"[mock] built {request.pname} {request.version}",
            returncode=0,
            metadata={"mock": True},
        )
