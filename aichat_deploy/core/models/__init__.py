"""
Domain models — Pydantic types for the deployment descriptor.

All models are re-exported here for convenient access:

    from aichat_deploy.core.models import DeployConfig, ToolchainSpec, PackageArtifact
"""

from aichat_deploy.core.models.deploy import (
    DeployConfig,
    IndexEntry,
    StoreSettings,
    ToolchainSettings,
)
from aichat_deploy.core.models.environment import (
    BindingRule,
    ConflictPolicy,
    DevEnvironment,
    DevShellSettings,
    JoinBinding,
    LiteralBinding,
    PathBinding,
)
from aichat_deploy.core.models.package import (
    PackageArtifact,
    PackageIndex,
    PackageRecipe,
    PackageRef,
)
from aichat_deploy.core.models.service import (
    RestartPolicy,
    ServiceAbsent,
    ServiceDeclaration,
    ServiceDefined,
    ServiceSettings,
    ServiceUnit,
)
from aichat_deploy.core.models.template import GeneratedFile
from aichat_deploy.core.models.toolchain import (
    ToolchainCatalog,
    ToolchainManifest,
    ToolchainRelease,
    ToolchainSpec,
)

__all__ = [
    "BindingRule",
    "ConflictPolicy",
    # deploy.py
    "DeployConfig",
    # environment.py
    "DevEnvironment",
    "DevShellSettings",
    "GeneratedFile",
    "IndexEntry",
    "JoinBinding",
    "LiteralBinding",
    # package.py
    "PackageArtifact",
    "PackageIndex",
    "PackageRecipe",
    "PackageRef",
    "PathBinding",
    # service.py
    "RestartPolicy",
    "ServiceAbsent",
    "ServiceDeclaration",
    "ServiceDefined",
    "ServiceSettings",
    "ServiceUnit",
    "StoreSettings",
    # toolchain.py
    "ToolchainCatalog",
    "ToolchainManifest",
    "ToolchainRelease",
    "ToolchainSettings",
    "ToolchainSpec",
]
