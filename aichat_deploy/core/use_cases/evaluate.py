"""
Evaluate use case — run the whole composition, all-or-nothing.

Flow:
    descriptor → toolchain → {service (builds if enabled), artifact, devshell}

Every component fails fast; the first error aborts the evaluation and
nothing partial is returned.  ``run_evaluation`` wraps ``evaluate`` for
front-ends and turns the error into a structured value.
"""

from __future__ import annotations

import functools
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from aichat_deploy.adapters.base import BuildBackend
from aichat_deploy.adapters.registry import BackendRegistry, default_registry
from aichat_deploy.core.config.catalog_loader import catalog_for, index_for
from aichat_deploy.core.config.loader import (
    descriptor_root,
    find_descriptor_file,
    load_descriptor,
    resolve_relative,
)
from aichat_deploy.core.config.manifest_loader import manifest_for
from aichat_deploy.core.context import EvaluationContext
from aichat_deploy.core.errors import ConfigError, DeployError
from aichat_deploy.core.models.deploy import DeployConfig
from aichat_deploy.core.models.environment import DevEnvironment
from aichat_deploy.core.models.package import PackageArtifact
from aichat_deploy.core.models.service import ServiceDeclaration
from aichat_deploy.core.models.toolchain import ToolchainSpec
from aichat_deploy.core.persistence.build_store import BuildStore
from aichat_deploy.core.services.env_composer import compose_environment
from aichat_deploy.core.services.package_builder import PackageBuilder
from aichat_deploy.core.services.service_descriptor import describe_service
from aichat_deploy.core.services.toolchain_resolver import ToolchainResolver

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """A loaded descriptor plus its resolved evaluation context."""

    config: DeployConfig
    config_path: Path
    context: EvaluationContext

    @property
    def root(self) -> Path:
        return self.context.root

    def store(self, store_root: Path | None = None) -> BuildStore:
        return BuildStore(store_root or resolve_relative(self.root, self.config.store.root))


@dataclass
class Composition:
    """The composed configuration of one evaluation."""

    toolchain: ToolchainSpec
    artifact: PackageArtifact
    environment: DevEnvironment
    service: ServiceDeclaration

    def to_dict(self) -> dict[str, Any]:
        return {
            "toolchain": {
                **self.toolchain.model_dump(mode="json"),
                "identity": self.toolchain.identity,
            },
            "artifact": self.artifact.model_dump(mode="json"),
            "environment": self.environment.model_dump(mode="json"),
            "service": self.service.model_dump(mode="json"),
        }


def open_session(
    config_path: Path | None = None,
    cancel: threading.Event | None = None,
) -> Session:
    """Load the descriptor and resolve its toolchain.

    Raises:
        ConfigError: If the descriptor, manifest, catalog or index is invalid.
        UnresolvableToolchain: If the toolchain cannot be pinned.
    """
    if config_path is None:
        config_path = find_descriptor_file()
    if config_path is None:
        raise ConfigError("no deploy.yml found", subject=str(Path.cwd()))

    config = load_descriptor(config_path)
    root = descriptor_root(config_path)

    manifest = manifest_for(config.toolchain, root)
    resolver = ToolchainResolver(catalog_for(config, root))
    toolchain = resolver.resolve(manifest, config.system)

    context = EvaluationContext(
        toolchain=toolchain,
        packages=index_for(config, root),
        system=config.system,
        root=root,
        cancel=cancel or threading.Event(),
    )
    return Session(config=config, config_path=config_path, context=context)


def make_builder(
    session: Session,
    backend: BuildBackend | None = None,
    store_root: Path | None = None,
    registry: BackendRegistry | None = None,
) -> PackageBuilder:
    """A builder for a session; a forced ``backend`` overrides the recipe's."""
    backends: BackendRegistry | BuildBackend = backend or registry or default_registry()
    return PackageBuilder(session.store(store_root), backends)


def evaluate(
    session: Session,
    builder: PackageBuilder,
    enable_service: bool | None = None,
) -> Composition:
    """Compose toolchain, artifact, devshell and service.

    Raises:
        DeployError: The first failure of any component.  When the
            service is enabled a failed build surfaces as
            ``PropagatedUpstreamFailure``.
    """
    ctx = session.context
    config = session.config

    build_artifact = functools.cache(lambda: builder.build(ctx, config.package))

    service = describe_service(config.service, config.package, build_artifact, enable_service)
    artifact = build_artifact()
    environment = compose_environment(ctx, config.devshell)

    logger.info(
        "Evaluated '%s': %s, service %s",
        config.name, artifact.out_path, service.state,
    )
    return Composition(
        toolchain=ctx.toolchain,
        artifact=artifact,
        environment=environment,
        service=service,
    )


@dataclass
class EvaluationResult:
    """Outcome of a front-end evaluation: a composition or one error."""

    name: str = ""
    config_path: Path | None = None
    composition: Composition | None = None
    error: DeployError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.composition is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "name": self.name,
            "config_path": str(self.config_path) if self.config_path else None,
            "composition": self.composition.to_dict() if self.composition else None,
            "error": self.error.to_dict() if self.error else None,
        }


def run_evaluation(
    config_path: Path | None = None,
    backend: BuildBackend | None = None,
    enable_service: bool | None = None,
    store_root: Path | None = None,
) -> EvaluationResult:
    """Evaluate a descriptor, capturing the first error as a value."""
    result = EvaluationResult(config_path=config_path)
    try:
        session = open_session(config_path)
        result.name = session.config.name
        result.config_path = session.config_path
        builder = make_builder(session, backend=backend, store_root=store_root)
        result.composition = evaluate(session, builder, enable_service)
    except DeployError as e:
        logger.debug("Evaluation failed: %s", e)
        result.error = e
    return result
