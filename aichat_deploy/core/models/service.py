"""
Service models — the supervised-service unit and its flag-gated presence.

A service is either ``ServiceAbsent`` (flag off, nothing emitted) or
``ServiceDefined`` carrying a fully populated ``ServiceUnit``.  The absent
variant has no unit fields at all.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class RestartPolicy(StrEnum):
    """Restart behaviour handed to the service manager."""

    NEVER = "no"
    ON_FAILURE = "on-failure"
    ALWAYS = "always"


class ServiceSettings(BaseModel):
    """The ``service`` section of the descriptor."""

    enable: bool = False
    name: str = ""
    description: str = ""
    args: list[str] = Field(default_factory=list)
    after: list[str] = Field(default_factory=lambda: ["network.target"])
    wanted_by: list[str] = Field(default_factory=lambda: ["multi-user.target"])
    restart: RestartPolicy = RestartPolicy.ALWAYS


class ServiceUnit(BaseModel):
    """A declarative unit for the host service manager."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    exec_start: str
    after: tuple[str, ...] = ("network.target",)
    wanted_by: tuple[str, ...] = ("multi-user.target",)
    restart: RestartPolicy = RestartPolicy.ALWAYS

    @property
    def unit_name(self) -> str:
        return f"{self.name}.service"


class ServiceAbsent(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal["absent"] = "absent"

    @property
    def defined(self) -> bool:
        return False


class ServiceDefined(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal["defined"] = "defined"
    unit: ServiceUnit

    @property
    def defined(self) -> bool:
        return True


ServiceDeclaration = Annotated[
    Union[ServiceAbsent, ServiceDefined],
    Field(discriminator="state"),
]
