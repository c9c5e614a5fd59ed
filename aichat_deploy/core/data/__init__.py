"""
Static catalogs — the built-in toolchain catalog and package index.

Both are plain dicts; loaders in ``aichat_deploy.core.config`` turn
them (or a YAML replacement) into validated models.
"""

from aichat_deploy.core.data.packages import DEFAULT_PACKAGES
from aichat_deploy.core.data.toolchains import (
    PROFILE_COMPONENTS,
    SYSTEM_TRIPLES,
    TOOLCHAIN_CATALOG,
)

__all__ = [
    "DEFAULT_PACKAGES",
    "PROFILE_COMPONENTS",
    "SYSTEM_TRIPLES",
    "TOOLCHAIN_CATALOG",
]
