"""
Tests for the environment composer — tools, bindings, conflicts, startup.
"""

import logging

import pytest

from aichat_deploy.core.errors import BindingConflict, MissingDependency, UnresolvedPackagePath
from aichat_deploy.core.models.environment import (
    ConflictPolicy,
    DevShellSettings,
    JoinBinding,
    LiteralBinding,
    PathBinding,
)
from aichat_deploy.core.models.package import PackageRef
from aichat_deploy.core.services.env_composer import (
    apply_bindings,
    collect_tools,
    compose_environment,
    evaluate_rule,
)

TOOLS = (
    PackageRef(name="clang", version="18", path="/pkgs/clang"),
    PackageRef(name="llvm", version="18", path="/pkgs/llvm"),
    PackageRef(name="openssl", version="3", path="/pkgs/openssl"),
)


class TestCollectTools:
    def test_toolchain_first_then_packages(self, context):
        tools = collect_tools(context, ["just", "git"])
        names = [t.name for t in tools]
        assert names[:3] == ["rustc", "cargo", "rust-std"]
        assert names[3:] == ["just", "git"]

    def test_deduplicated(self, context):
        tools = collect_tools(context, ["git", "cargo", "git"])
        assert [t.name for t in tools].count("git") == 1
        assert [t.name for t in tools].count("cargo") == 1

    def test_unknown_package(self, context):
        with pytest.raises(MissingDependency) as exc:
            collect_tools(context, ["emacs"])
        assert exc.value.component == "devshell"
        assert exc.value.subject == "emacs"


class TestEvaluateRule:
    def test_literal(self):
        assert evaluate_rule(LiteralBinding(name="RUST_LOG", value="debug"), {}) == "debug"

    def test_path(self):
        by_name = {t.name: t for t in TOOLS}
        assert evaluate_rule(PathBinding(name="OPENSSL_DIR", package="openssl"), by_name) == "/pkgs/openssl"
        rule = PathBinding(name="OPENSSL_LIB_DIR", package="openssl", subdir="lib")
        assert evaluate_rule(rule, by_name) == "/pkgs/openssl/lib"

    def test_join(self):
        by_name = {t.name: t for t in TOOLS}
        rule = JoinBinding(name="LIBCLANG_PATH", packages=["clang", "llvm"])
        assert evaluate_rule(rule, by_name) == "/pkgs/clang/lib:/pkgs/llvm/lib"

    def test_join_custom_separator(self):
        by_name = {t.name: t for t in TOOLS}
        rule = JoinBinding(name="X", packages=["clang", "llvm"], subdir="include", separator=";")
        assert evaluate_rule(rule, by_name) == "/pkgs/clang/include;/pkgs/llvm/include"

    def test_unresolved_package(self):
        by_name = {t.name: t for t in TOOLS}
        with pytest.raises(UnresolvedPackagePath) as exc:
            evaluate_rule(PathBinding(name="SQLITE_DIR", package="sqlite"), by_name)
        assert exc.value.subject == "SQLITE_DIR"
        assert "sqlite" in exc.value.message


class TestApplyBindings:
    def test_last_write_wins(self):
        rules = [
            LiteralBinding(name="PATH_VAR", value="/x"),
            LiteralBinding(name="PATH_VAR", value="/y"),
        ]
        assert apply_bindings(rules, TOOLS) == {"PATH_VAR": "/y"}

    def test_override_is_logged(self, caplog):
        rules = [
            LiteralBinding(name="PATH_VAR", value="/x"),
            LiteralBinding(name="PATH_VAR", value="/y"),
        ]
        with caplog.at_level(logging.WARNING, logger="aichat_deploy.core.services.env_composer"):
            apply_bindings(rules, TOOLS)
        assert "PATH_VAR" in caplog.text
        assert "overridden" in caplog.text

    def test_error_policy(self):
        rules = [
            LiteralBinding(name="A", value="1"),
            LiteralBinding(name="B", value="2"),
            LiteralBinding(name="A", value="3"),
        ]
        with pytest.raises(BindingConflict, match="rules #1 and #3 both set A"):
            apply_bindings(rules, TOOLS, ConflictPolicy.ERROR)

    def test_error_policy_without_conflict(self):
        rules = [LiteralBinding(name="A", value="1"), LiteralBinding(name="B", value="2")]
        assert apply_bindings(rules, TOOLS, ConflictPolicy.ERROR) == {"A": "1", "B": "2"}

    def test_declaration_order_kept(self):
        rules = [
            LiteralBinding(name="Z", value="1"),
            PathBinding(name="A", package="llvm"),
        ]
        assert list(apply_bindings(rules, TOOLS)) == ["Z", "A"]

    def test_no_rules(self):
        assert apply_bindings([], TOOLS) == {}


class TestComposeEnvironment:
    def test_full(self, context):
        settings = DevShellSettings(
            packages=["openssl", "clang", "llvm", "just"],
            env=[
                PathBinding(name="OPENSSL_DIR", package="openssl"),
                JoinBinding(name="LIBCLANG_PATH", packages=["clang", "llvm"]),
                LiteralBinding(name="RUST_BACKTRACE", value="1"),
            ],
            shell_hook="  echo ready\n",
        )
        env = compose_environment(context, settings)
        openssl = context.packages.get("openssl")
        assert "rustc" in env.tool_names
        assert "just" in env.tool_names
        assert env.variables["OPENSSL_DIR"] == openssl.path
        assert env.variables["LIBCLANG_PATH"].count(":") == 1
        assert env.variables["RUST_BACKTRACE"] == "1"
        assert env.startup_command == "echo ready"

    def test_binding_to_toolchain_component(self, context):
        settings = DevShellSettings(env=[PathBinding(name="RUST_SRC", package="rust-std", subdir="lib")])
        env = compose_environment(context, settings)
        assert env.variables["RUST_SRC"] == f"{context.toolchain.path}/lib"

    def test_binding_outside_tool_set(self, context):
        # zlib is in the package index but not in the devshell
        settings = DevShellSettings(env=[PathBinding(name="ZLIB_DIR", package="zlib")])
        with pytest.raises(UnresolvedPackagePath):
            compose_environment(context, settings)

    def test_blank_hook_is_none(self, context):
        env = compose_environment(context, DevShellSettings(shell_hook="   "))
        assert env.startup_command is None

    def test_empty_shell_has_toolchain(self, context):
        env = compose_environment(context, DevShellSettings())
        assert env.tool_names == ["rustc", "cargo", "rust-std"]
        assert env.variables == {}
        assert env.path_entries() == [f"{context.toolchain.path}/bin"]
