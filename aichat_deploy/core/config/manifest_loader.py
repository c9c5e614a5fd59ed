"""
Toolchain manifest loader — reads rust-toolchain.toml into a request.

Two on-disk formats are accepted, as rustup does::

    # rust-toolchain.toml
    [toolchain]
    channel = "1.82.0"
    components = ["rustfmt", "clippy"]
    targets = ["x86_64-unknown-linux-gnu"]
    profile = "minimal"

    # rust-toolchain (legacy: a single channel line)
    1.82.0
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from pydantic import ValidationError

from aichat_deploy.core.config.loader import resolve_relative
from aichat_deploy.core.errors import ConfigError
from aichat_deploy.core.models.deploy import ToolchainSettings
from aichat_deploy.core.models.toolchain import ToolchainManifest

logger = logging.getLogger(__name__)

MANIFEST_FILES = ("rust-toolchain.toml", "rust-toolchain")


def parse_manifest(text: str, source: str = "<manifest>") -> ToolchainManifest:
    """Parse manifest text in either the TOML or the legacy format."""
    stripped = text.strip()
    if not stripped:
        raise ConfigError("empty toolchain manifest", subject=source)

    # Legacy: one non-comment line with just the channel
    lines = [
        ln.strip()
        for ln in stripped.splitlines()
        if ln.strip() and not ln.strip().startswith("#")
    ]
    if len(lines) == 1 and "=" not in lines[0] and not lines[0].startswith("["):
        return ToolchainManifest(channel=lines[0])

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid TOML: {e}", subject=source) from e

    table = data.get("toolchain")
    if not isinstance(table, dict):
        raise ConfigError("missing [toolchain] table", subject=source)

    if "path" in table:
        raise ConfigError("custom toolchain paths are not reproducible", subject=source)

    for key in ("targets", "components"):
        if not isinstance(table.get(key, []), list):
            raise ConfigError(f"[toolchain] {key} must be a list of strings", subject=source)

    try:
        return ToolchainManifest(
            channel=table.get("channel", "stable"),
            targets=tuple(table.get("targets", ())),
            components=tuple(table.get("components", ())),
            profile=table.get("profile", "default"),
        )
    except ValidationError as e:
        raise ConfigError(f"invalid [toolchain] table: {e}", subject=source) from e


def load_manifest(path: Path) -> ToolchainManifest:
    """Read and parse a toolchain manifest file.

    Raises:
        ConfigError: If the file is missing, unreadable or malformed.
    """
    if not path.is_file():
        raise ConfigError("toolchain manifest not found", subject=str(path))
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read manifest: {e}", subject=str(path)) from e

    manifest = parse_manifest(text, source=str(path))
    logger.debug("Toolchain manifest %s → channel=%s", path, manifest.channel)
    return manifest


def manifest_for(settings: ToolchainSettings, root: Path) -> ToolchainManifest:
    """The toolchain request for a descriptor.

    Uses ``settings.manifest`` when set, otherwise a manifest file found
    in the descriptor directory, otherwise the inline settings.
    """
    if settings.manifest:
        return load_manifest(resolve_relative(root, settings.manifest))

    for filename in MANIFEST_FILES:
        candidate = root / filename
        if candidate.is_file():
            return load_manifest(candidate)

    return settings.inline_manifest()
