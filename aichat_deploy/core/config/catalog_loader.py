"""
Catalog loader — the toolchain catalog and the package index.

Both have a built-in default in ``aichat_deploy.core.data``; a
descriptor may point at a YAML file that replaces it.  The package
index additionally merges inline ``index:`` entries from the descriptor.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from aichat_deploy.core.config.loader import read_yaml_mapping, resolve_relative
from aichat_deploy.core.data import DEFAULT_PACKAGES, TOOLCHAIN_CATALOG
from aichat_deploy.core.errors import ConfigError
from aichat_deploy.core.models.deploy import DeployConfig
from aichat_deploy.core.models.package import PackageIndex, PackageRef
from aichat_deploy.core.models.toolchain import ToolchainCatalog

logger = logging.getLogger(__name__)


def load_catalog(path: Path | None = None) -> ToolchainCatalog:
    """Load a toolchain catalog from YAML, or the built-in one.

    Args:
        path: Catalog file. None selects the built-in catalog.

    Raises:
        ConfigError: If the file is missing or does not validate.
    """
    if path is None:
        return ToolchainCatalog.model_validate(TOOLCHAIN_CATALOG)

    data = read_yaml_mapping(path)
    try:
        catalog = ToolchainCatalog.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid toolchain catalog: {e}", subject=str(path)) from e

    logger.debug(
        "Loaded toolchain catalog %s: %d releases, aliases=%s",
        path, len(catalog.releases), list(catalog.aliases),
    )
    return catalog


def _index_from_mapping(data: dict, source: str) -> PackageIndex:
    packages: dict[str, PackageRef] = {}
    for name, entry in data.items():
        if not isinstance(entry, dict):
            raise ConfigError(
                f"package entry must be a mapping, got {type(entry).__name__}",
                subject=f"{source}:{name}",
            )
        try:
            packages[name] = PackageRef(name=name, **entry)
        except (TypeError, ValidationError) as e:
            raise ConfigError(f"invalid package entry: {e}", subject=f"{source}:{name}") from e
    return PackageIndex(packages=packages)


def load_package_index(path: Path | None = None) -> PackageIndex:
    """Load a package index from YAML, or the built-in snapshot.

    The YAML is either a flat ``name: {version, path}`` mapping or the
    same mapping nested under a ``packages:`` key.
    """
    if path is None:
        return _index_from_mapping(DEFAULT_PACKAGES, "builtin")

    data = read_yaml_mapping(path)
    if isinstance(data.get("packages"), dict):
        data = data["packages"]
    index = _index_from_mapping(data, str(path))
    logger.debug("Loaded package index %s: %d packages", path, len(index.packages))
    return index


def index_for(config: DeployConfig, root: Path) -> PackageIndex:
    """The package index a descriptor evaluates against."""
    base_path = resolve_relative(root, config.packages) if config.packages else None
    index = load_package_index(base_path)

    if config.index:
        extra = {
            name: PackageRef(name=name, version=entry.version, path=entry.path)
            for name, entry in config.index.items()
        }
        index = index.merged(extra)
    return index


def catalog_for(config: DeployConfig, root: Path) -> ToolchainCatalog:
    """The toolchain catalog a descriptor resolves against."""
    if config.toolchain.catalog:
        return load_catalog(resolve_relative(root, config.toolchain.catalog))
    return load_catalog(None)
