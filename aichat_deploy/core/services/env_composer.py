"""
Environment composer — assemble the development shell.

Construction:
    1. Tools: the toolchain's components, then the auxiliary packages,
       de-duplicated by name.  Listing order is kept for display only.
    2. Variables: binding rules applied in declaration order into one
       mapping.  A rule may only reference packages in the tool set.
       When two rules target the same variable the ``on_conflict``
       policy decides:
           override  the later rule wins (the overwrite is logged)
           error     BindingConflict is raised
    3. Startup: the optional shell hook, run after the environment is
       materialized and before interactive use.

Pure: nothing is spawned and nothing is written.  The host shell
materializes the result (see ``generators.shell_env``).
"""

from __future__ import annotations

import logging

from aichat_deploy.core.context import EvaluationContext
from aichat_deploy.core.errors import (
    BindingConflict,
    MissingDependency,
    UnresolvedPackagePath,
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
from aichat_deploy.core.models.package import PackageRef

logger = logging.getLogger(__name__)


def collect_tools(ctx: EvaluationContext, names: list[str]) -> tuple[PackageRef, ...]:
    """Union of toolchain components and auxiliary packages.

    Raises:
        MissingDependency: If an auxiliary package is not in the index.
    """
    tools: dict[str, PackageRef] = {t.name: t for t in ctx.toolchain.tools()}

    for name in names:
        if name in tools:
            logger.debug("Tool '%s' already provided, keeping first listing", name)
            continue
        ref = ctx.packages.get(name)
        if ref is None:
            raise MissingDependency(
                "devshell package not found in package index",
                component="devshell",
                subject=name,
            )
        tools[name] = ref

    return tuple(tools.values())


def evaluate_rule(rule: BindingRule, tools: dict[str, PackageRef]) -> str:
    """Compute one binding's value against the tool set.

    Raises:
        UnresolvedPackagePath: If the rule names a package outside the tool set.
    """
    for name in rule.package_names():
        if name not in tools:
            raise UnresolvedPackagePath(
                f"variable {rule.name} references package '{name}' "
                "which is not in the devshell tool list",
                subject=rule.name,
            )

    if isinstance(rule, LiteralBinding):
        return rule.value
    if isinstance(rule, JoinBinding):
        return rule.separator.join(tools[n].subpath(rule.subdir) for n in rule.packages)
    if isinstance(rule, PathBinding):
        return tools[rule.package].subpath(rule.subdir)
    raise TypeError(f"unknown binding rule: {rule!r}")


def apply_bindings(
    rules: list[BindingRule],
    tools: tuple[PackageRef, ...],
    policy: ConflictPolicy = ConflictPolicy.OVERRIDE,
) -> dict[str, str]:
    """Apply binding rules, in order, into one mapping.

    Order matters under ``override``: the last rule for a name wins.

    Raises:
        UnresolvedPackagePath: See ``evaluate_rule``.
        BindingConflict: Under ``error``, on the second rule for a name.
    """
    by_name = {t.name: t for t in tools}
    variables: dict[str, str] = {}
    origin: dict[str, int] = {}

    for position, rule in enumerate(rules):
        value = evaluate_rule(rule, by_name)

        if rule.name in variables:
            previous = origin[rule.name]
            if policy == ConflictPolicy.ERROR:
                raise BindingConflict(
                    f"rules #{previous + 1} and #{position + 1} both set {rule.name}",
                    subject=rule.name,
                )
            logger.warning(
                "devshell: %s set by rule #%d (%r) overridden by rule #%d (%r)",
                rule.name, previous + 1, variables[rule.name], position + 1, value,
            )

        variables[rule.name] = value
        origin[rule.name] = position

    return variables


def compose_environment(ctx: EvaluationContext, settings: DevShellSettings) -> DevEnvironment:
    """Build the DevEnvironment for a devshell section."""
    tools = collect_tools(ctx, settings.packages)
    variables = apply_bindings(settings.env, tools, settings.on_conflict)

    startup = settings.shell_hook.strip() if settings.shell_hook else None
    env = DevEnvironment(
        tools=tools,
        variables=variables,
        startup_command=startup or None,
    )
    logger.info(
        "Composed devshell: %d tools, %d variables%s",
        len(env.tools), len(env.variables),
        ", startup hook" if env.startup_command else "",
    )
    return env
