"""
Package models — references into the package index, build recipes,
and the content-addressed artifacts the builder produces.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PackageRef(BaseModel):
    """A package available from the package index (or the toolchain).

    Only the path is ever shared with other components; the package
    itself is owned by whatever produced it.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str = ""
    path: str

    @property
    def bin_dir(self) -> str:
        return f"{self.path}/bin"

    @property
    def lib_dir(self) -> str:
        return f"{self.path}/lib"

    @property
    def pkgconfig_dir(self) -> str:
        return f"{self.path}/lib/pkgconfig"

    def subpath(self, subdir: str = "") -> str:
        """Path of a subdirectory, or the package root if empty."""
        subdir = subdir.strip("/")
        return f"{self.path}/{subdir}" if subdir else self.path


class PackageIndex(BaseModel):
    """Snapshot of the external package repository: name → package."""

    packages: dict[str, PackageRef] = Field(default_factory=dict)

    def get(self, name: str) -> PackageRef | None:
        return self.packages.get(name)

    def names(self) -> list[str]:
        return sorted(self.packages)

    def merged(self, extra: dict[str, PackageRef]) -> PackageIndex:
        """A new index with ``extra`` entries overriding same-named ones."""
        return PackageIndex(packages={**self.packages, **extra})


class PackageRecipe(BaseModel):
    """How to build the default package."""

    pname: str = "aichat"
    version: str = "0.1.0"
    src: str = "."
    binary: str = ""
    build_inputs: list[str] = Field(default_factory=list)
    backend: str = "cargo"
    cargo_flags: list[str] = Field(default_factory=list)

    @property
    def binary_name(self) -> str:
        """Executable produced by the build (defaults to the pname)."""
        return self.binary or self.pname


class PackageArtifact(BaseModel):
    """A built, immutable output identified by the hash of its inputs."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    out_path: str
    input_hash: str
    platform: str
    toolchain: str
    binary: str
    build_inputs: tuple[PackageRef, ...] = ()

    @property
    def bin_dir(self) -> str:
        return f"{self.out_path}/bin"

    @property
    def executable(self) -> str:
        return f"{self.out_path}/bin/{self.binary}"
