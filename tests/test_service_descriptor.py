"""
Tests for the service descriptor and the systemd / shell generators.
"""

import pytest

from aichat_deploy.core.errors import BuildFailure, PropagatedUpstreamFailure
from aichat_deploy.core.models.environment import DevEnvironment
from aichat_deploy.core.models.package import PackageArtifact, PackageRecipe, PackageRef
from aichat_deploy.core.models.service import (
    RestartPolicy,
    ServiceAbsent,
    ServiceDefined,
    ServiceSettings,
)
from aichat_deploy.core.services.generators.shell_env import (
    ACTIVATION_FILE,
    generate_activation_script,
    render_activation_script,
)
from aichat_deploy.core.services.generators.systemd_unit import generate_unit_file, render_unit
from aichat_deploy.core.services.service_descriptor import describe_service, exec_start_for

OUT = "/store/0123456789abcdef0123456789abcdef-aichat-0.1.0"

ARTIFACT = PackageArtifact(
    name="aichat",
    version="0.1.0",
    out_path=OUT,
    input_hash="0123456789abcdef" * 4,
    platform="x86_64-unknown-linux-gnu",
    toolchain="t" * 64,
    binary="aichat",
)


class Provider:
    """Artifact provider that records whether it was asked."""

    def __init__(self, artifact=ARTIFACT, error=None):
        self.artifact = artifact
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.artifact


class TestDescribeService:
    def test_disabled_is_absent(self):
        provider = Provider()
        declaration = describe_service(ServiceSettings(enable=False), PackageRecipe(), provider)
        assert isinstance(declaration, ServiceAbsent)
        assert not declaration.defined
        assert provider.calls == 0

    def test_absent_carries_no_unit_fields(self):
        declaration = describe_service(ServiceSettings(), PackageRecipe(), Provider())
        assert declaration.model_dump() == {"state": "absent"}

    def test_enabled_defines_unit(self):
        declaration = describe_service(ServiceSettings(enable=True), PackageRecipe(), Provider())
        assert isinstance(declaration, ServiceDefined)
        unit = declaration.unit
        assert unit.name == "aichat"
        assert unit.description == "aichat server"
        assert unit.exec_start == f"{OUT}/bin/aichat"
        assert unit.after == ("network.target",)
        assert unit.wanted_by == ("multi-user.target",)
        assert unit.restart == RestartPolicy.ALWAYS

    def test_enable_override(self):
        provider = Provider()
        on = describe_service(ServiceSettings(enable=False), PackageRecipe(), provider, enable=True)
        assert on.defined
        off = describe_service(ServiceSettings(enable=True), PackageRecipe(), provider, enable=False)
        assert not off.defined
        assert provider.calls == 1

    def test_custom_settings(self):
        settings = ServiceSettings(
            enable=True,
            name="aichat-api",
            description="aichat HTTP API",
            args=["--serve", "0.0.0.0:8000"],
            restart="on-failure",
        )
        unit = describe_service(settings, PackageRecipe(), Provider()).unit
        assert unit.unit_name == "aichat-api.service"
        assert unit.description == "aichat HTTP API"
        assert unit.exec_start == f"{OUT}/bin/aichat --serve 0.0.0.0:8000"
        assert unit.restart == RestartPolicy.ON_FAILURE

    def test_upstream_failure_propagates(self):
        upstream = BuildFailure("cargo exited with code 101", subject="aichat-0.1.0")
        with pytest.raises(PropagatedUpstreamFailure) as exc:
            describe_service(ServiceSettings(enable=True), PackageRecipe(), Provider(error=upstream))
        assert exc.value.upstream is upstream
        assert exc.value.__cause__ is upstream
        assert exc.value.subject == "aichat"
        assert exc.value.component == "service"

    def test_disabled_ignores_broken_build(self):
        provider = Provider(error=BuildFailure("boom"))
        declaration = describe_service(ServiceSettings(enable=False), PackageRecipe(), provider)
        assert not declaration.defined


class TestExecStart:
    def test_arguments_are_quoted(self):
        assert exec_start_for(ARTIFACT, ["--role", "two words"]) == f"{OUT}/bin/aichat --role 'two words'"


class TestSystemdUnit:
    def _unit(self, **kwargs):
        settings = ServiceSettings(enable=True, **kwargs)
        return describe_service(settings, PackageRecipe(), Provider()).unit

    def test_render(self):
        text = render_unit(self._unit(args=["--serve"]))
        assert "[Unit]\nDescription=aichat server\nAfter=network.target\n" in text
        assert f"[Service]\nExecStart={OUT}/bin/aichat --serve\nRestart=always\n" in text
        assert text.endswith("[Install]\nWantedBy=multi-user.target\n")

    def test_section_order(self):
        text = render_unit(self._unit())
        assert text.index("[Unit]") < text.index("[Service]") < text.index("[Install]")

    def test_no_install_section_without_targets(self):
        text = render_unit(self._unit(wanted_by=[]))
        assert "[Install]" not in text

    def test_generate_for_defined(self, tmp_path):
        declaration = describe_service(ServiceSettings(enable=True), PackageRecipe(), Provider())
        generated = generate_unit_file(declaration)
        assert generated.path == "aichat.service"
        target = generated.write_to(tmp_path)
        assert "ExecStart=" in target.read_text()

    def test_generate_for_absent(self):
        assert generate_unit_file(ServiceAbsent()) is None


class TestActivationScript:
    ENV = DevEnvironment(
        tools=(
            PackageRef(name="rustc", path="/tc"),
            PackageRef(name="cargo", path="/tc"),
            PackageRef(name="just", path="/pkgs/just"),
        ),
        variables={"RUST_LOG": "info", "LIBCLANG_PATH": "/pkgs/clang/lib:/pkgs/llvm/lib"},
        startup_command="echo ready",
    )

    def test_path_prefix(self):
        text = render_activation_script(self.ENV)
        assert 'export PATH=/tc/bin:/pkgs/just/bin"${PATH:+:$PATH}"' in text

    def test_exports_sorted(self):
        lines = render_activation_script(self.ENV).splitlines()
        exports = [ln for ln in lines if ln.startswith("export ") and not ln.startswith("export PATH=")]
        assert exports == [
            "export LIBCLANG_PATH=/pkgs/clang/lib:/pkgs/llvm/lib",
            "export RUST_LOG=info",
        ]

    def test_values_quoted(self):
        env = DevEnvironment(variables={"GREETING": "hello world"})
        assert "export GREETING='hello world'" in render_activation_script(env)

    def test_startup_last(self):
        assert render_activation_script(self.ENV).splitlines()[-1] == "echo ready"

    def test_generate(self):
        generated = generate_activation_script(self.ENV)
        assert generated.path == ACTIVATION_FILE
        assert generated.content == render_activation_script(self.ENV)
