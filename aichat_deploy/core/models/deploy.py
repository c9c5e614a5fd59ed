"""
Descriptor model — the root of a deployment, loaded from deploy.yml.

This is the canonical truth about what gets built, which tools the
development shell carries, and whether a service unit is emitted.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from aichat_deploy.core.models.environment import DevShellSettings
from aichat_deploy.core.models.package import PackageRecipe
from aichat_deploy.core.models.service import ServiceSettings
from aichat_deploy.core.models.toolchain import ToolchainManifest


class ToolchainSettings(BaseModel):
    """Where the toolchain request comes from.

    ``manifest`` points at a rust-toolchain(.toml) file; when it is not
    set the inline ``channel``/``targets``/``components`` are used.
    ``catalog`` optionally replaces the built-in toolchain catalog.
    """

    manifest: str | None = None
    channel: str = "stable"
    targets: list[str] = Field(default_factory=list)
    components: list[str] = Field(default_factory=list)
    profile: str = "default"
    catalog: str | None = None

    def inline_manifest(self) -> ToolchainManifest:
        return ToolchainManifest(
            channel=self.channel,
            targets=tuple(self.targets),
            components=tuple(self.components),
            profile=self.profile,
        )


class IndexEntry(BaseModel):
    """An inline package index entry."""

    version: str = ""
    path: str


class StoreSettings(BaseModel):
    root: str = ".aichat-store"


class DeployConfig(BaseModel):
    """Root descriptor — loaded from deploy.yml."""

    version: int = 1

    name: str
    description: str = ""
    system: str = "x86_64-linux"

    toolchain: ToolchainSettings = Field(default_factory=ToolchainSettings)
    package: PackageRecipe = Field(default_factory=PackageRecipe)
    devshell: DevShellSettings = Field(default_factory=DevShellSettings)
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)

    # Package index: optional YAML file, plus inline entries on top
    packages: str | None = None
    index: dict[str, IndexEntry] = Field(default_factory=dict)
