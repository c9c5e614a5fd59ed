"""
Backend registry — lookup of build backends by name.

The package recipe names its backend (``package.backend``); the builder
resolves it here.  The CLI can force a backend (``--backend mock``).
"""

from __future__ import annotations

import logging

from aichat_deploy.adapters.base import BuildBackend
from aichat_deploy.core.errors import ConfigError

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Central registry of build backends."""

    def __init__(self) -> None:
        self._backends: dict[str, BuildBackend] = {}

    def register(self, backend: BuildBackend) -> None:
        name = backend.name
        if name in self._backends:
            logger.warning("Overwriting existing backend: %s", name)
        self._backends[name] = backend
        logger.debug("Registered backend: %s", name)

    def get(self, name: str) -> BuildBackend:
        """Look up a backend by name.

        Raises:
            ConfigError: If no backend is registered under ``name``.
        """
        backend = self._backends.get(name)
        if backend is None:
            raise ConfigError(
                f"no build backend '{name}' (available: {', '.join(self.list_backends())})",
                subject="package.backend",
            )
        return backend

    def list_backends(self) -> list[str]:
        return sorted(self._backends)


def default_registry() -> BackendRegistry:
    """A registry with the cargo and mock backends."""
    from aichat_deploy.adapters.cargo import CargoBackend
    from aichat_deploy.adapters.mock import MockBuildBackend

    registry = BackendRegistry()
    registry.register(CargoBackend())
    registry.register(MockBuildBackend())
    return registry
