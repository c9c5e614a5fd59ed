"""
Package builder — toolchain + source tree → one content-addressed artifact.

Flow:
    plan    resolve inputs → hash source tree → input hash → output path
    build   store hit? return it : coalesce per input hash → stage →
            backend build → publish (atomic rename)

The output path is a pure function of the toolchain identity, the source
tree digest, the resolved build inputs and the recipe.  Identical inputs
never build twice: a published output is reused, and concurrent requests
for the same hash share a single backend execution.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from aichat_deploy.adapters.base import BuildBackend, BuildRequest
from aichat_deploy.adapters.registry import BackendRegistry
from aichat_deploy.core.config.loader import resolve_relative
from aichat_deploy.core.context import EvaluationContext
from aichat_deploy.core.errors import BuildCancelled, BuildFailure, MissingDependency
from aichat_deploy.core.hashing import content_hash
from aichat_deploy.core.models.package import PackageArtifact, PackageRecipe, PackageRef
from aichat_deploy.core.persistence.build_store import BuildStore
from aichat_deploy.core.services.build_coalescer import BuildCoalescer
from aichat_deploy.core.services.source_tree import hash_source_tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildPlan:
    """Everything that determines an artifact, computed without building."""

    recipe: PackageRecipe
    source: Path
    source_hash: str
    inputs: tuple[PackageRef, ...]
    input_hash: str
    out_path: Path

    def to_dict(self) -> dict[str, Any]:
        return {
            "pname": self.recipe.pname,
            "version": self.recipe.version,
            "source": str(self.source),
            "source_hash": self.source_hash,
            "inputs": [p.name for p in self.inputs],
            "input_hash": self.input_hash,
            "out_path": str(self.out_path),
        }


def resolve_build_inputs(ctx: EvaluationContext, names: list[str]) -> tuple[PackageRef, ...]:
    """Look up declared build inputs in the package index.

    Raises:
        MissingDependency: On the first name the index does not know.
    """
    resolved = []
    for name in dict.fromkeys(names):
        ref = ctx.packages.get(name)
        if ref is None:
            raise MissingDependency(
                "build input not found in package index",
                subject=name,
            )
        resolved.append(ref)
    return tuple(resolved)


def compute_input_hash(
    ctx: EvaluationContext,
    recipe: PackageRecipe,
    source_hash: str,
    inputs: tuple[PackageRef, ...],
) -> str:
    """The content address of a build."""
    return content_hash({
        "toolchain": ctx.toolchain.identity,
        "platform": ctx.platform,
        "source": source_hash,
        "inputs": sorted(
            ({"name": p.name, "version": p.version, "path": p.path} for p in inputs),
            key=lambda d: d["name"],
        ),
        "pname": recipe.pname,
        "version": recipe.version,
        "binary": recipe.binary_name,
        "backend": recipe.backend,
        "cargo_flags": recipe.cargo_flags,
    })


class PackageBuilder:
    """Builds the default package into a content-addressed store.

    Args:
        store: Where outputs are published.
        backends: A registry (backend chosen by ``recipe.backend``) or a
            single backend used for every recipe.
    """

    def __init__(
        self,
        store: BuildStore,
        backends: BackendRegistry | BuildBackend,
    ) -> None:
        self._store = store
        self._backends = backends
        self._coalescer: BuildCoalescer[PackageArtifact] = BuildCoalescer()

    @property
    def store(self) -> BuildStore:
        return self._store

    @property
    def coalescer(self) -> BuildCoalescer[PackageArtifact]:
        return self._coalescer

    def _backend_for(self, recipe: PackageRecipe) -> BuildBackend:
        if isinstance(self._backends, BackendRegistry):
            return self._backends.get(recipe.backend)
        return self._backends

    def plan(self, ctx: EvaluationContext, recipe: PackageRecipe) -> BuildPlan:
        """Compute the output path for a recipe without building.

        Raises:
            MissingDependency: If the source tree or a build input is missing.
        """
        inputs = resolve_build_inputs(ctx, recipe.build_inputs)

        source = resolve_relative(ctx.root, recipe.src)
        if not source.is_dir():
            raise MissingDependency("source tree not found", subject=str(source))
        source_hash = hash_source_tree(source, extra_ignores={self._store.root})

        input_hash = compute_input_hash(ctx, recipe, source_hash, inputs)
        out_path = self._store.out_path(input_hash, recipe.pname, recipe.version)
        logger.debug("Planned %s → %s", recipe.pname, out_path)
        return BuildPlan(
            recipe=recipe,
            source=source,
            source_hash=source_hash,
            inputs=inputs,
            input_hash=input_hash,
            out_path=out_path,
        )

    def build(self, ctx: EvaluationContext, recipe: PackageRecipe) -> PackageArtifact:
        """Return the artifact for a recipe, building it only if needed.

        Raises:
            MissingDependency: If an input cannot be resolved.
            BuildFailure: If the backend fails (``BuildCancelled`` if the
                evaluation was aborted).
        """
        plan = self.plan(ctx, recipe)

        existing = self._store.lookup(plan.out_path)
        if existing is not None:
            logger.info("Reusing %s (cached)", plan.out_path)
            return existing

        while True:
            try:
                return self._coalescer.run(plan.input_hash, lambda: self._realize(ctx, plan))
            except BuildCancelled:
                # Joined a flight whose own evaluation was aborted
                if ctx.cancelled:
                    raise
                logger.info("Shared build of %s was cancelled elsewhere, retrying", recipe.pname)

    def _realize(self, ctx: EvaluationContext, plan: BuildPlan) -> PackageArtifact:
        # A flight that landed between our lookup and joining may have published
        existing = self._store.lookup(plan.out_path)
        if existing is not None:
            return existing

        recipe = plan.recipe
        backend = self._backend_for(recipe)
        subject = f"{recipe.pname}-{recipe.version}"

        with self._store.staging() as stage:
            request = BuildRequest(
                pname=recipe.pname,
                version=recipe.version,
                binary=recipe.binary_name,
                source=str(plan.source),
                out_dir=str(stage),
                toolchain=ctx.toolchain,
                build_inputs=list(plan.inputs),
                cargo_flags=recipe.cargo_flags,
            )

            valid, error = backend.validate(request)
            if not valid:
                raise BuildFailure(error, subject=subject)
            if ctx.cancelled:
                raise BuildCancelled("evaluation aborted before build", subject=subject)

            logger.info("Building %s with %s backend", subject, backend.name)
            receipt = backend.build(request, ctx.cancel)

            if receipt.status == "cancelled":
                raise BuildCancelled("evaluation aborted during build", subject=subject)
            if not receipt.ok:
                raise BuildFailure(
                    receipt.error or "build failed",
                    subject=subject,
                    returncode=receipt.returncode,
                    output=receipt.output,
                )

            if not (stage / "bin" / recipe.binary_name).is_file():
                raise BuildFailure(
                    f"build produced no bin/{recipe.binary_name}",
                    subject=subject,
                )

            artifact = PackageArtifact(
                name=recipe.pname,
                version=recipe.version,
                out_path=str(plan.out_path),
                input_hash=plan.input_hash,
                platform=ctx.platform,
                toolchain=ctx.toolchain.identity,
                binary=recipe.binary_name,
                build_inputs=plan.inputs,
            )
            logger.info("Built %s in %dms", subject, receipt.duration_ms)
            return self._store.publish(stage, artifact)
