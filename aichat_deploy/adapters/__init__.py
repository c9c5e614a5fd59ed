"""Build backends — bindings to the external compiler.

Public re-exports for convenient access.
"""

from aichat_deploy.adapters.base import BuildBackend, BuildReceipt, BuildRequest
from aichat_deploy.adapters.mock import MockBuildBackend
from aichat_deploy.adapters.registry import BackendRegistry, default_registry

__all__ = [
    "BackendRegistry",
    "BuildBackend",
    "BuildReceipt",
    "BuildRequest",
    "MockBuildBackend",
    "default_registry",
]
