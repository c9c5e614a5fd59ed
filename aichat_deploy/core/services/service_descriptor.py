"""
Service descriptor — the flag-gated supervised-service unit.

Two states, fixed at composition time:
    Absent    service.enable is false; nothing is emitted and the
              artifact is never requested.
    Defined   service.enable is true; the unit starts
              <artifact>/bin/<binary>, after network.target, wanted by
              multi-user.target, restarting always.

If the artifact cannot be produced the unit is not defined at all:
the upstream error is re-raised as PropagatedUpstreamFailure.
"""

from __future__ import annotations

import logging
import shlex
from typing import Callable

from aichat_deploy.core.errors import DeployError, PropagatedUpstreamFailure
from aichat_deploy.core.models.package import PackageArtifact, PackageRecipe
from aichat_deploy.core.models.service import (
    ServiceAbsent,
    ServiceDeclaration,
    ServiceDefined,
    ServiceSettings,
    ServiceUnit,
)

logger = logging.getLogger(__name__)

SERVICE_ABSENT = ServiceAbsent()


def exec_start_for(artifact: PackageArtifact, args: list[str]) -> str:
    """Start command: the artifact's executable plus quoted arguments."""
    return shlex.join([artifact.executable, *args])


def describe_service(
    settings: ServiceSettings,
    recipe: PackageRecipe,
    artifact: Callable[[], PackageArtifact],
    enable: bool | None = None,
) -> ServiceDeclaration:
    """Decide whether a service unit exists and, if so, populate it.

    Args:
        settings: The descriptor's service section.
        recipe: The package recipe (names the unit and the binary).
        artifact: Produces the built artifact; only called when enabled.
        enable: Overrides ``settings.enable`` when not None.

    Raises:
        PropagatedUpstreamFailure: If enabled and ``artifact()`` fails.
    """
    enabled = settings.enable if enable is None else enable
    if not enabled:
        logger.debug("Service disabled — no unit emitted")
        return SERVICE_ABSENT

    name = settings.name or recipe.pname
    try:
        built = artifact()
    except DeployError as e:
        logger.error("Service '%s' not defined: %s", name, e)
        raise PropagatedUpstreamFailure(e, subject=name) from e

    unit = ServiceUnit(
        name=name,
        description=settings.description or f"{recipe.pname} server",
        exec_start=exec_start_for(built, settings.args),
        after=tuple(settings.after),
        wanted_by=tuple(settings.wanted_by),
        restart=settings.restart,
    )
    logger.info("Defined service %s → %s", unit.unit_name, unit.exec_start)
    return ServiceDefined(unit=unit)
