"""
Built-in package index — the default snapshot of the package repository.

Pure data, no logic.  Keys are package names as referenced from
``package.build_inputs``, ``devshell.packages`` and binding rules.
A descriptor can replace the snapshot (``packages: index.yml``) or add
entries inline (``index:``).
"""

from __future__ import annotations

_ROOT = "/opt/aichat/pkgs"


DEFAULT_PACKAGES: dict[str, dict[str, str]] = {
    # ── Build inputs ────────────────────────────────────────────
    "openssl": {"version": "3.3.2", "path": f"{_ROOT}/openssl-3.3.2"},
    "pkg-config": {"version": "0.29.2", "path": f"{_ROOT}/pkg-config-0.29.2"},
    "sqlite": {"version": "3.46.1", "path": f"{_ROOT}/sqlite-3.46.1"},
    "zlib": {"version": "1.3.1", "path": f"{_ROOT}/zlib-1.3.1"},

    # ── Compiler support ────────────────────────────────────────
    "clang": {"version": "18.1.8", "path": f"{_ROOT}/clang-18.1.8"},
    "libclang": {"version": "18.1.8", "path": f"{_ROOT}/libclang-18.1.8"},
    "llvm": {"version": "18.1.8", "path": f"{_ROOT}/llvm-18.1.8"},
    "mold": {"version": "2.34.1", "path": f"{_ROOT}/mold-2.34.1"},

    # ── Developer tools ─────────────────────────────────────────
    "rust-analyzer": {"version": "2024-10-14", "path": f"{_ROOT}/rust-analyzer-2024-10-14"},
    "cargo-watch": {"version": "8.5.3", "path": f"{_ROOT}/cargo-watch-8.5.3"},
    "cargo-nextest": {"version": "0.9.81", "path": f"{_ROOT}/cargo-nextest-0.9.81"},
    "git": {"version": "2.46.1", "path": f"{_ROOT}/git-2.46.1"},
    "just": {"version": "1.36.0", "path": f"{_ROOT}/just-1.36.0"},
    "zsh": {"version": "5.9", "path": f"{_ROOT}/zsh-5.9"},
}
