"""
Tests for the toolchain resolver — pinning, platforms, components, caching.
"""

import pytest

from aichat_deploy.core.config.catalog_loader import load_catalog
from aichat_deploy.core.errors import UnresolvableToolchain
from aichat_deploy.core.models.toolchain import ToolchainCatalog, ToolchainManifest
from aichat_deploy.core.services.toolchain_resolver import (
    ToolchainResolver,
    resolve_toolchain,
    target_for_system,
)


@pytest.fixture
def catalog() -> ToolchainCatalog:
    return load_catalog(None)


class TestTargetForSystem:
    def test_known(self):
        assert target_for_system("x86_64-linux") == "x86_64-unknown-linux-gnu"
        assert target_for_system("aarch64-darwin") == "aarch64-apple-darwin"

    def test_unknown(self):
        with pytest.raises(UnresolvableToolchain, match="no target triple"):
            target_for_system("pdp11-unix")


class TestResolveToolchain:
    def test_stable_alias(self, catalog):
        spec = resolve_toolchain(ToolchainManifest(channel="stable"), catalog, "x86_64-linux")
        assert spec.channel == "stable"
        assert spec.version == catalog.aliases["stable"]
        assert spec.target == "x86_64-unknown-linux-gnu"
        assert spec.path == f"/opt/rust/toolchains/{spec.version}-x86_64-unknown-linux-gnu"

    def test_exact_version(self, catalog):
        spec = resolve_toolchain(ToolchainManifest(channel="1.80.1"), catalog, "x86_64-linux")
        assert spec.version == "1.80.1"

    def test_deterministic(self, catalog):
        manifest = ToolchainManifest(channel="1.82.0", components=("rust-src",))
        a = resolve_toolchain(manifest, catalog, "x86_64-linux")
        b = resolve_toolchain(manifest, catalog, "x86_64-linux")
        assert a == b
        assert a.identity == b.identity

    def test_alias_and_version_share_identity(self, catalog):
        pinned = catalog.aliases["stable"]
        via_alias = resolve_toolchain(ToolchainManifest(channel="stable"), catalog, "x86_64-linux")
        via_version = resolve_toolchain(ToolchainManifest(channel=pinned), catalog, "x86_64-linux")
        assert via_alias.channel != via_version.channel
        assert via_alias.identity == via_version.identity

    def test_nonexistent_version(self, catalog):
        with pytest.raises(UnresolvableToolchain) as exc:
            resolve_toolchain(ToolchainManifest(channel="0.0.1"), catalog, "x86_64-linux")
        assert exc.value.component == "toolchain"
        assert exc.value.subject == "0.0.1"
        assert "not found in catalog" in str(exc.value)

    def test_first_manifest_target_wins(self, catalog):
        manifest = ToolchainManifest(
            channel="1.82.0",
            targets=("x86_64-unknown-linux-musl", "wasm32-unknown-unknown"),
        )
        spec = resolve_toolchain(manifest, catalog, "x86_64-linux")
        assert spec.target == "x86_64-unknown-linux-musl"

    def test_unsupported_platform(self, catalog):
        manifest = ToolchainManifest(channel="1.82.0", targets=("riscv64gc-unknown-linux-gnu",))
        with pytest.raises(UnresolvableToolchain, match="not available for riscv64gc"):
            resolve_toolchain(manifest, catalog, "x86_64-linux")

    def test_default_profile_components(self, catalog):
        spec = resolve_toolchain(ToolchainManifest(channel="1.82.0"), catalog, "x86_64-linux")
        assert spec.components == tuple(catalog.default_components)

    def test_extra_components_appended(self, catalog):
        manifest = ToolchainManifest(channel="1.82.0", components=("rust-src", "clippy"))
        spec = resolve_toolchain(manifest, catalog, "x86_64-linux")
        assert spec.components[-1] == "rust-src"
        assert spec.components.count("clippy") == 1

    def test_minimal_profile(self, catalog):
        manifest = ToolchainManifest(channel="1.82.0", profile="minimal")
        spec = resolve_toolchain(manifest, catalog, "x86_64-linux")
        assert spec.components == ("rustc", "cargo", "rust-std")

    def test_unknown_profile(self, catalog):
        with pytest.raises(UnresolvableToolchain, match="unknown profile"):
            resolve_toolchain(
                ToolchainManifest(channel="1.82.0", profile="huge"), catalog, "x86_64-linux",
            )

    def test_component_not_in_release(self, catalog):
        manifest = ToolchainManifest(channel="stable", components=("miri",))
        with pytest.raises(UnresolvableToolchain, match="components not available: miri"):
            resolve_toolchain(manifest, catalog, "x86_64-linux")

    def test_nightly_component(self, catalog):
        manifest = ToolchainManifest(channel="nightly", components=("miri",))
        spec = resolve_toolchain(manifest, catalog, "x86_64-linux")
        assert "miri" in spec.components

    def test_release_without_component_list_accepts_any(self):
        catalog = ToolchainCatalog(releases={"2.0.0": {}}, aliases={"stable": "2.0.0"})
        manifest = ToolchainManifest(channel="stable", components=("anything",))
        spec = resolve_toolchain(manifest, catalog, "aarch64-linux")
        assert spec.target == "aarch64-unknown-linux-gnu"
        assert "anything" in spec.components


class TestToolchainResolver:
    def test_cached(self, catalog):
        resolver = ToolchainResolver(catalog)
        manifest = ToolchainManifest(channel="stable")
        first = resolver.resolve(manifest, "x86_64-linux")
        second = resolver.resolve(ToolchainManifest(channel="stable"), "x86_64-linux")
        assert first is second
        assert resolver.cache_size() == 1

    def test_system_is_part_of_key(self, catalog):
        resolver = ToolchainResolver(catalog)
        manifest = ToolchainManifest(channel="stable")
        linux = resolver.resolve(manifest, "x86_64-linux")
        mac = resolver.resolve(manifest, "aarch64-darwin")
        assert linux.target != mac.target
        assert resolver.cache_size() == 2

    def test_failures_not_cached(self, catalog):
        resolver = ToolchainResolver(catalog)
        with pytest.raises(UnresolvableToolchain):
            resolver.resolve(ToolchainManifest(channel="0.0.1"), "x86_64-linux")
        assert resolver.cache_size() == 0
