"""
Config check use case — validate deploy.yml without building anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from aichat_deploy.core.config.loader import resolve_relative
from aichat_deploy.core.errors import DeployError
from aichat_deploy.core.models.deploy import DeployConfig
from aichat_deploy.core.models.environment import ConflictPolicy
from aichat_deploy.core.models.toolchain import ToolchainSpec
from aichat_deploy.core.use_cases.evaluate import open_session


@dataclass
class ConfigCheckResult:
    """Result of descriptor validation."""

    valid: bool = False
    config: DeployConfig | None = None
    config_path: Path | None = None
    toolchain: ToolchainSpec | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "name": self.config.name if self.config else None,
            "toolchain": self.toolchain.name if self.toolchain else None,
            "service_enabled": self.config.service.enable if self.config else False,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate a descriptor and report issues.

    Loading and toolchain resolution failures are errors.  Everything a
    build or composition would trip over later is reported here too.
    """
    result = ConfigCheckResult(config_path=config_path)

    try:
        session = open_session(config_path)
    except DeployError as e:
        result.errors.append(str(e))
        return result

    config = session.config
    index = session.context.packages
    result.config = config
    result.config_path = session.config_path
    result.toolchain = session.context.toolchain

    # Package build
    for name in config.package.build_inputs:
        if index.get(name) is None:
            result.errors.append(f"Build input '{name}' is not in the package index")

    source = resolve_relative(session.root, config.package.src)
    if not source.is_dir():
        result.errors.append(f"Source tree does not exist: {config.package.src}")
    elif config.package.backend == "cargo" and not (source / "Cargo.toml").is_file():
        result.warnings.append(f"No Cargo.toml in source tree: {config.package.src}")

    # Devshell
    tool_names = set(session.context.toolchain.components)
    for name in config.devshell.packages:
        if index.get(name) is None and name not in tool_names:
            result.errors.append(f"Devshell package '{name}' is not in the package index")
        tool_names.add(name)

    seen: set[str] = set()
    for rule in config.devshell.env:
        for pkg in rule.package_names():
            if pkg not in tool_names:
                result.errors.append(
                    f"Variable {rule.name} references '{pkg}', which is not a devshell package"
                )
        if rule.name in seen:
            if config.devshell.on_conflict == ConflictPolicy.ERROR:
                result.errors.append(f"Variable {rule.name} is set by more than one rule")
            else:
                result.warnings.append(
                    f"Variable {rule.name} is set by more than one rule; the last one wins"
                )
        seen.add(rule.name)

    # Service
    if config.service.enable and not config.package.binary_name:
        result.errors.append("Service enabled but the package declares no binary")
    if not config.service.enable and (config.service.args or config.service.description):
        result.warnings.append("Service settings present but service.enable is false")

    result.valid = len(result.errors) == 0
    return result
