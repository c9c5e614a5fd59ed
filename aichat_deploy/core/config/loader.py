"""
Configuration loader — reads deploy.yml into domain models.

This is the primary entry point for loading a deployment descriptor.
It reads YAML, validates against Pydantic schemas, and returns
typed domain objects.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from aichat_deploy.core.errors import ConfigError
from aichat_deploy.core.models.deploy import DeployConfig

logger = logging.getLogger(__name__)

# Default descriptor filename
DESCRIPTOR_FILE = "deploy.yml"
_ALT_DESCRIPTOR_FILE = "deploy.yaml"

__all__ = [
    "DESCRIPTOR_FILE",
    "ConfigError",
    "descriptor_root",
    "find_descriptor_file",
    "load_descriptor",
    "read_yaml_mapping",
    "resolve_relative",
]


def find_descriptor_file(start_dir: Path | None = None) -> Path | None:
    """Search for deploy.yml starting from the given directory, walking up.

    This allows running commands from subdirectories of the source tree
    and still finding the descriptor.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to deploy.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        for filename in (DESCRIPTOR_FILE, _ALT_DESCRIPTOR_FILE):
            candidate = current / filename
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def read_yaml_mapping(path: Path) -> dict:
    """Read a YAML file that must contain a mapping.

    Raises:
        ConfigError: If the file is missing, unreadable, invalid YAML,
            or not a mapping.
    """
    if not path.is_file():
        raise ConfigError("file not found", subject=str(path))

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read file: {e}", subject=str(path)) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}", subject=str(path)) from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"expected a YAML mapping, got {type(data).__name__}",
            subject=str(path),
        )
    return data


def load_descriptor(path: Path | None = None) -> DeployConfig:
    """Load and validate a deployment descriptor.

    Args:
        path: Explicit path to deploy.yml. If None, searches upward.

    Returns:
        Validated DeployConfig model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_descriptor_file()

    if path is None:
        raise ConfigError(
            f"no {DESCRIPTOR_FILE} found; create one or pass --config",
            subject=str(Path.cwd()),
        )

    logger.debug("Loading descriptor from %s", path)
    data = read_yaml_mapping(path)

    # The YAML may wrap the descriptor under a "deploy" key or be flat
    if "deploy" in data and isinstance(data["deploy"], dict):
        data = {**{k: v for k, v in data.items() if k != "deploy"}, **data["deploy"]}

    try:
        config = DeployConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid descriptor: {e}", subject=str(path)) from e

    logger.info(
        "Loaded descriptor '%s' (system=%s, service=%s)",
        config.name,
        config.system,
        "enabled" if config.service.enable else "disabled",
    )
    return config


def descriptor_root(config_path: Path) -> Path:
    """Get the directory relative paths in the descriptor are resolved against."""
    return config_path.parent.resolve()


def resolve_relative(root: Path, value: str) -> Path:
    """Resolve a descriptor path value against the descriptor root."""
    path = Path(value).expanduser()
    return path if path.is_absolute() else (root / path).resolve()
