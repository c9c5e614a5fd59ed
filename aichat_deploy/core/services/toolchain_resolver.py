"""
Toolchain resolver — pin an exact toolchain from a manifest.

Resolution:
    1. Floating channels (stable, beta, nightly) → concrete release via
       the catalog's aliases; explicit versions must be listed as-is.
    2. Target platform = first manifest target, else the system's triple.
    3. The release must support the platform and every requested component.

Same manifest + catalog + system always yields the same ToolchainSpec.
Results are cached per resolver instance.
"""

from __future__ import annotations

import logging
import threading

from aichat_deploy.core.data.toolchains import PROFILE_COMPONENTS, SYSTEM_TRIPLES
from aichat_deploy.core.errors import UnresolvableToolchain
from aichat_deploy.core.models.toolchain import (
    ToolchainCatalog,
    ToolchainManifest,
    ToolchainSpec,
)

logger = logging.getLogger(__name__)


def target_for_system(system: str) -> str:
    """Default target triple for a descriptor ``system`` value."""
    triple = SYSTEM_TRIPLES.get(system)
    if triple is None:
        raise UnresolvableToolchain(
            f"no target triple known for system '{system}' "
            f"(known: {', '.join(sorted(SYSTEM_TRIPLES))})",
            subject=system,
        )
    return triple


def _resolve_version(channel: str, catalog: ToolchainCatalog) -> str:
    version = catalog.aliases.get(channel, channel)
    if catalog.get_release(version) is None:
        raise UnresolvableToolchain(
            f"channel '{channel}' not found in catalog",
            subject=channel,
        )
    return version


def _resolve_components(
    manifest: ToolchainManifest,
    catalog: ToolchainCatalog,
    available: list[str],
) -> tuple[str, ...]:
    if manifest.profile == "default" and catalog.default_components:
        base = catalog.default_components
    elif manifest.profile in PROFILE_COMPONENTS:
        base = PROFILE_COMPONENTS[manifest.profile]
    else:
        raise UnresolvableToolchain(
            f"unknown profile '{manifest.profile}'",
            subject=manifest.channel,
        )

    wanted = list(dict.fromkeys([*base, *manifest.components]))
    if available:
        missing = [c for c in wanted if c not in available]
        if missing:
            raise UnresolvableToolchain(
                f"components not available: {', '.join(missing)}",
                subject=manifest.channel,
            )
    return tuple(wanted)


def resolve_toolchain(
    manifest: ToolchainManifest,
    catalog: ToolchainCatalog,
    system: str,
) -> ToolchainSpec:
    """Resolve a manifest against a catalog.

    Raises:
        UnresolvableToolchain: If the channel/version, platform or a
            component cannot be located.  No partial spec is produced.
    """
    version = _resolve_version(manifest.channel, catalog)
    release = catalog.releases[version]

    target = manifest.targets[0] if manifest.targets else target_for_system(system)
    if release.platforms and target not in release.platforms:
        raise UnresolvableToolchain(
            f"release {version} is not available for {target}",
            subject=manifest.channel,
        )

    components = _resolve_components(manifest, catalog, release.components)

    spec = ToolchainSpec(
        channel=manifest.channel,
        version=version,
        target=target,
        components=components,
        profile=manifest.profile,
        path=f"{catalog.root.rstrip('/')}/{version}-{target}",
    )
    logger.info(
        "Resolved toolchain %s → %s (%s)",
        manifest.channel, spec.name, spec.identity[:12],
    )
    return spec


class ToolchainResolver:
    """Caching front for ``resolve_toolchain``.

    Keyed by (manifest digest, catalog digest, system).  Failures are
    not cached.
    """

    def __init__(self, catalog: ToolchainCatalog) -> None:
        self._catalog = catalog
        self._catalog_digest = catalog.digest
        self._cache: dict[tuple[str, str, str], ToolchainSpec] = {}
        self._lock = threading.Lock()

    @property
    def catalog(self) -> ToolchainCatalog:
        return self._catalog

    def resolve(self, manifest: ToolchainManifest, system: str) -> ToolchainSpec:
        key = (manifest.digest, self._catalog_digest, system)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            logger.debug("toolchain cache HIT for %s", manifest.channel)
            return cached

        spec = resolve_toolchain(manifest, self._catalog, system)
        with self._lock:
            self._cache.setdefault(key, spec)
            return self._cache[key]

    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)
