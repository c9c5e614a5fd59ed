"""
Cargo backend — build the package with the pinned Rust toolchain.

Runs ``cargo build --release`` out-of-tree (a private target directory,
so the source tree is never written to), then copies the release
executable into ``<out_dir>/bin``.  Fetching is disabled: the source tree
must already carry everything the build needs.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
import threading
import time
from pathlib import Path

from aichat_deploy.adapters.base import BuildBackend, BuildReceipt, BuildRequest

logger = logging.getLogger(__name__)

# Seconds between checks for cancellation while cargo runs
_POLL_INTERVAL = 0.2

# Lines of compiler output kept in a failure receipt
_OUTPUT_TAIL = 40


def _tail(text: str, lines: int = _OUTPUT_TAIL) -> str:
    return "\n".join(text.strip().splitlines()[-lines:])


class CargoBackend(BuildBackend):
    """Build with cargo.

    Environment handed to cargo:
        PATH              toolchain bin, then each build input's bin
        PKG_CONFIG_PATH   each build input's lib/pkgconfig
        LIBRARY_PATH      each build input's lib
        RUSTUP_TOOLCHAIN  the pinned version
        CARGO_TARGET_DIR  a private temporary directory
        SOURCE_DATE_EPOCH fixed, for reproducible timestamps
    """

    def __init__(self, cargo: str = "cargo") -> None:
        self._cargo = cargo

    @property
    def name(self) -> str:
        return "cargo"

    def is_available(self) -> bool:
        return shutil.which(self._cargo) is not None

    def validate(self, request: BuildRequest) -> tuple[bool, str]:
        source = Path(request.source)
        if not (source / "Cargo.toml").is_file():
            return False, f"No Cargo.toml in source tree: {source}"
        if not self.is_available():
            return False, f"'{self._cargo}' not found on PATH"
        return True, ""

    def build_command(self, request: BuildRequest) -> list[str]:
        command = [
            self._cargo,
            "build",
            "--release",
            "--offline",
            "--target", request.toolchain.target,
            "--bin", request.binary,
        ]
        if (Path(request.source) / "Cargo.lock").is_file():
            command.append("--locked")
        command.extend(request.cargo_flags)
        return command

    def build_env(self, request: BuildRequest, target_dir: str) -> dict[str, str]:
        inputs = request.build_inputs
        path_entries = [f"{request.toolchain.path}/bin"] + [p.bin_dir for p in inputs]
        env = dict(os.environ)
        env.update({
            "PATH": os.pathsep.join(path_entries + [env.get("PATH", "")]),
            "PKG_CONFIG_PATH": os.pathsep.join(p.pkgconfig_dir for p in inputs),
            "LIBRARY_PATH": os.pathsep.join(p.lib_dir for p in inputs),
            "RUSTUP_TOOLCHAIN": request.toolchain.version,
            "CARGO_TARGET_DIR": target_dir,
            "SOURCE_DATE_EPOCH": "1",
        })
        return env

    def build(self, request: BuildRequest, cancel: threading.Event) -> BuildReceipt:
        command = self.build_command(request)
        start = time.monotonic()
        logger.debug("Executing: %s (cwd=%s)", " ".join(command), request.source)

        try:
            with tempfile.TemporaryDirectory(prefix="aichat-target-") as target_dir, \
                    tempfile.TemporaryFile(mode="w+", encoding="utf-8") as log:
                proc = subprocess.Popen(
                    command,
                    cwd=request.source,
                    env=self.build_env(request, target_dir),
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    text=True,
                )
                returncode = self._wait(proc, cancel, start, request.timeout)
                log.seek(0)
                output = log.read()
                elapsed_ms = int((time.monotonic() - start) * 1000)

                if returncode is None:
                    if cancel.is_set():
                        return BuildReceipt.cancelled(
                            backend=self.name, duration_ms=elapsed_ms, output=_tail(output),
                        )
                    return BuildReceipt.failure(
                        backend=self.name,
                        error=f"cargo timed out after {request.timeout}s",
                        duration_ms=elapsed_ms,
                        output=_tail(output),
                    )

                if returncode != 0:
                    return BuildReceipt.failure(
                        backend=self.name,
                        error=f"cargo exited with code {returncode}",
                        returncode=returncode,
                        duration_ms=elapsed_ms,
                        output=_tail(output),
                        metadata={"command": command},
                    )

                built = Path(target_dir) / request.toolchain.target / "release" / request.binary
                if not built.is_file():
                    return BuildReceipt.failure(
                        backend=self.name,
                        error=f"cargo succeeded but produced no '{request.binary}' executable",
                        returncode=returncode,
                        duration_ms=elapsed_ms,
                        output=_tail(output),
                    )

                bin_dir = Path(request.bin_dir)
                bin_dir.mkdir(parents=True, exist_ok=True)
                shutil.copy2(built, bin_dir / request.binary)
                (bin_dir / request.binary).chmod(0o755)

                return BuildReceipt.success(
                    backend=self.name,
                    output=_tail(output),
                    returncode=returncode,
                    duration_ms=elapsed_ms,
                    metadata={"command": command},
                )

        except OSError as e:
            return BuildReceipt.failure(
                backend=self.name,
                error=f"cargo execution error: {e}",
                metadata={"command": command},
            )

    def _wait(
        self,
        proc: subprocess.Popen,
        cancel: threading.Event,
        start: float,
        timeout: float,
    ) -> int | None:
        """Wait for cargo; None means it was stopped (cancel or timeout)."""
        while True:
            try:
                return proc.wait(timeout=_POLL_INTERVAL)
            except subprocess.TimeoutExpired:
                pass
            if cancel.is_set() or time.monotonic() - start > timeout:
                logger.info("Stopping cargo (pid %d)", proc.pid)
                proc.terminate()
                try:
                    proc.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    proc.kill()
                    proc.wait()
                return None
