"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from aichat_deploy.adapters.mock import MockBuildBackend
from aichat_deploy.core.config.catalog_loader import load_package_index
from aichat_deploy.core.context import EvaluationContext
from aichat_deploy.core.models.package import PackageIndex, PackageRecipe
from aichat_deploy.core.models.toolchain import ToolchainSpec
from aichat_deploy.core.persistence.build_store import BuildStore
from aichat_deploy.core.services.package_builder import PackageBuilder

DEPLOY_YML = textwrap.dedent("""\
    name: aichat
    description: "aichat server"
    system: x86_64-linux

    toolchain:
      channel: "1.82.0"
      components: [rust-analyzer]

    package:
      pname: aichat
      version: 0.1.0
      backend: mock
      build_inputs: [openssl, pkg-config]

    devshell:
      packages: [openssl, pkg-config, clang, llvm, just]
      env:
        - kind: path
          name: OPENSSL_DIR
          package: openssl
        - kind: join
          name: LIBCLANG_PATH
          packages: [clang, llvm]
        - kind: literal
          name: RUST_LOG
          value: info
      shell_hook: echo ready

    service:
      enable: true
      args: ["--serve", "0.0.0.0:8000"]
""")


def write_source_tree(root: Path) -> Path:
    """A minimal cargo project."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "Cargo.toml").write_text(
        '[package]\nname = "aichat"\nversion = "0.1.0"\nedition = "2021"\n'
    )
    (root / "src").mkdir(exist_ok=True)
    (root / "src" / "main.rs").write_text('fn main() { println!("aichat"); }\n')
    return root


@pytest.fixture
def make_source_tree():
    """Factory for cargo source trees at arbitrary locations."""
    return write_source_tree


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A source tree with a deploy.yml at its root."""
    root = write_source_tree(tmp_path / "aichat")
    (root / "deploy.yml").write_text(DEPLOY_YML)
    return root


@pytest.fixture
def deploy_yml(project_dir: Path) -> Path:
    return project_dir / "deploy.yml"


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    return write_source_tree(tmp_path / "src-tree")


@pytest.fixture
def toolchain() -> ToolchainSpec:
    return ToolchainSpec(
        channel="stable",
        version="1.82.0",
        target="x86_64-unknown-linux-gnu",
        components=("rustc", "cargo", "rust-std"),
        path="/opt/rust/toolchains/1.82.0-x86_64-unknown-linux-gnu",
    )


@pytest.fixture
def package_index() -> PackageIndex:
    return load_package_index(None)


@pytest.fixture
def context(toolchain, package_index, source_tree) -> EvaluationContext:
    return EvaluationContext(
        toolchain=toolchain,
        packages=package_index,
        system="x86_64-linux",
        root=source_tree,
    )


@pytest.fixture
def recipe() -> PackageRecipe:
    return PackageRecipe(pname="aichat", version="0.1.0", build_inputs=["openssl"])


@pytest.fixture
def mock_backend() -> MockBuildBackend:
    return MockBuildBackend()


@pytest.fixture
def store(tmp_path: Path) -> BuildStore:
    return BuildStore(tmp_path / "store")


@pytest.fixture
def builder(store, mock_backend) -> PackageBuilder:
    return PackageBuilder(store, mock_backend)
