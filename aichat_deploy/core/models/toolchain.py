"""
Toolchain models — what was asked for, what is available, what was pinned.

A ``ToolchainManifest`` is the request (read from ``rust-toolchain.toml``
or declared inline).  A ``ToolchainCatalog`` is the configured source of
toolchains.  A ``ToolchainSpec`` is the resolved, immutable result that
every other component consumes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from aichat_deploy.core.hashing import content_hash
from aichat_deploy.core.models.package import PackageRef


class ToolchainManifest(BaseModel):
    """A toolchain request as declared by the project."""

    model_config = ConfigDict(frozen=True)

    channel: str = "stable"
    targets: tuple[str, ...] = ()
    components: tuple[str, ...] = ()
    profile: str = "default"

    @property
    def digest(self) -> str:
        """Stable hash of the request, used as a resolver cache key."""
        return content_hash(self.model_dump(mode="json"))


class ToolchainRelease(BaseModel):
    """One installable toolchain version in the catalog."""

    version: str = ""
    platforms: list[str] = Field(default_factory=list)
    components: list[str] = Field(default_factory=list)


class ToolchainCatalog(BaseModel):
    """The configured source of toolchains.

    ``aliases`` maps floating channel names (stable, beta, nightly) to a
    concrete release version.  ``root`` is where installed toolchains live.
    """

    root: str = "/opt/rust/toolchains"
    aliases: dict[str, str] = Field(default_factory=dict)
    releases: dict[str, ToolchainRelease] = Field(default_factory=dict)
    default_components: list[str] = Field(default_factory=list)

    @property
    def digest(self) -> str:
        return content_hash(self.model_dump(mode="json"))

    def get_release(self, version: str) -> ToolchainRelease | None:
        return self.releases.get(version)


class ToolchainSpec(BaseModel):
    """A resolved toolchain — exactly one is active per evaluation."""

    model_config = ConfigDict(frozen=True)

    channel: str
    version: str
    target: str
    components: tuple[str, ...] = ()
    profile: str = "default"
    path: str = ""

    @property
    def identity(self) -> str:
        """Content hash of everything that affects build output.

        The install path is excluded so the identity is the same on
        every machine, and so is the requested channel: an alias and the
        version it resolves to name the same toolchain.
        """
        return content_hash({
            "version": self.version,
            "target": self.target,
            "components": sorted(self.components),
            "profile": self.profile,
        })

    @property
    def name(self) -> str:
        return f"{self.version}-{self.target}"

    def tools(self) -> list[PackageRef]:
        """Each component as a package living under the toolchain path."""
        return [
            PackageRef(name=component, version=self.version, path=self.path)
            for component in self.components
        ]
