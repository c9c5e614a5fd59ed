"""
Development environment models — binding rules and the composed shell.

Binding rules are a tagged union on ``kind``::

    - kind: literal          RUST_LOG=debug
      name: RUST_LOG
      value: debug
    - kind: join             LIBCLANG_PATH=<clang>/lib:<llvm>/lib
      name: LIBCLANG_PATH
      packages: [clang, llvm]
    - kind: path             OPENSSL_DIR=<openssl>
      name: OPENSSL_DIR
      package: openssl

Rules are applied in declaration order.  What happens when two rules
target the same variable is decided by ``DevShellSettings.on_conflict``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from aichat_deploy.core.models.package import PackageRef


# Shell-exportable variable name
VarName = Annotated[str, Field(pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")]


class ConflictPolicy(StrEnum):
    """What to do when two binding rules set the same variable."""

    OVERRIDE = "override"   # last-write-wins, logged
    ERROR = "error"         # raise BindingConflict


class LiteralBinding(BaseModel):
    kind: Literal["literal"] = "literal"
    name: VarName
    value: str

    def package_names(self) -> list[str]:
        return []


class JoinBinding(BaseModel):
    """Join one subdirectory of several packages with a separator."""

    kind: Literal["join"] = "join"
    name: VarName
    packages: list[str] = Field(default_factory=list)
    subdir: str = "lib"
    separator: str = ":"

    def package_names(self) -> list[str]:
        return list(self.packages)


class PathBinding(BaseModel):
    """The path of a single package, optionally a subdirectory of it."""

    kind: Literal["path"] = "path"
    name: VarName
    package: str
    subdir: str = ""

    def package_names(self) -> list[str]:
        return [self.package]


BindingRule = Annotated[
    Union[LiteralBinding, JoinBinding, PathBinding],
    Field(discriminator="kind"),
]


class DevShellSettings(BaseModel):
    """The ``devshell`` section of the descriptor."""

    packages: list[str] = Field(default_factory=list)
    env: list[BindingRule] = Field(default_factory=list)
    on_conflict: ConflictPolicy = ConflictPolicy.OVERRIDE
    shell_hook: str | None = None


class DevEnvironment(BaseModel):
    """A composed development environment, ready for the host shell."""

    model_config = ConfigDict(frozen=True)

    tools: tuple[PackageRef, ...] = ()
    variables: dict[str, str] = Field(default_factory=dict)
    startup_command: str | None = None

    @property
    def tool_names(self) -> list[str]:
        return [t.name for t in self.tools]

    def path_entries(self) -> list[str]:
        """Distinct ``bin`` directories of the tools, in listing order."""
        return list(dict.fromkeys(t.bin_dir for t in self.tools))
