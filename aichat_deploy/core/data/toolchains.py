"""
Built-in toolchain catalog — releases, channel aliases, platforms.

Pure data, no logic.  A descriptor can replace it with its own YAML
catalog (``toolchain.catalog``); the shape is the same.
"""

from __future__ import annotations

# Host system (as written in descriptors) → default target triple
SYSTEM_TRIPLES: dict[str, str] = {
    "x86_64-linux": "x86_64-unknown-linux-gnu",
    "aarch64-linux": "aarch64-unknown-linux-gnu",
    "x86_64-darwin": "x86_64-apple-darwin",
    "aarch64-darwin": "aarch64-apple-darwin",
}

_TIER1_PLATFORMS: list[str] = [
    "x86_64-unknown-linux-gnu",
    "aarch64-unknown-linux-gnu",
    "x86_64-apple-darwin",
    "aarch64-apple-darwin",
    "x86_64-unknown-linux-musl",
    "aarch64-unknown-linux-musl",
    "wasm32-unknown-unknown",
]

# Components installed by each rustup profile
PROFILE_COMPONENTS: dict[str, list[str]] = {
    "minimal": ["rustc", "cargo", "rust-std"],
    "default": ["rustc", "cargo", "rust-std", "rustfmt", "clippy", "rust-docs"],
    "complete": [
        "rustc", "cargo", "rust-std", "rustfmt", "clippy", "rust-docs",
        "rust-src", "rust-analyzer", "llvm-tools",
    ],
}

_ALL_COMPONENTS: list[str] = PROFILE_COMPONENTS["complete"]


TOOLCHAIN_CATALOG: dict = {
    "root": "/opt/rust/toolchains",
    "aliases": {
        "stable": "1.82.0",
        "beta": "1.83.0-beta.3",
        "nightly": "nightly-2024-10-18",
    },
    "default_components": PROFILE_COMPONENTS["default"],
    "releases": {
        "1.78.0": {"platforms": _TIER1_PLATFORMS, "components": _ALL_COMPONENTS},
        "1.79.0": {"platforms": _TIER1_PLATFORMS, "components": _ALL_COMPONENTS},
        "1.80.0": {"platforms": _TIER1_PLATFORMS, "components": _ALL_COMPONENTS},
        "1.80.1": {"platforms": _TIER1_PLATFORMS, "components": _ALL_COMPONENTS},
        "1.81.0": {"platforms": _TIER1_PLATFORMS, "components": _ALL_COMPONENTS},
        "1.82.0": {"platforms": _TIER1_PLATFORMS, "components": _ALL_COMPONENTS},
        "1.83.0-beta.3": {"platforms": _TIER1_PLATFORMS, "components": _ALL_COMPONENTS},
        "nightly-2024-10-18": {
            "platforms": _TIER1_PLATFORMS,
            "components": _ALL_COMPONENTS + ["miri"],
        },
    },
}
