"""
aichat-deploy — CLI entrypoint.

Usage:
    python -m aichat_deploy.main --help
    aichat-deploy toolchain
    aichat-deploy build --backend mock
    aichat-deploy shell --script
    aichat-deploy service --enable --write /etc/systemd/system
    aichat-deploy eval --json
    aichat-deploy config check
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from aichat_deploy import __version__
from aichat_deploy.core.errors import DeployError
from aichat_deploy.core.observability.logging_config import (
    console_level,
    setup_logging_from_env,
)


def _fail(error: DeployError, as_json: bool) -> None:
    """Report a structured error and exit 1."""
    if as_json:
        click.echo(json.dumps({"ok": False, "error": error.to_dict()}, indent=2))
    else:
        click.secho(f"❌ {error}", fg="red")
        output = getattr(error, "output", "")
        if output:
            for line in output.splitlines()[-10:]:
                click.echo(f"   │ {line}")
    sys.exit(1)


def _forced_backend(name: str | None):
    if name is None:
        return None
    from aichat_deploy.adapters.registry import default_registry

    return default_registry().get(name)


backend_option = click.option(
    "--backend",
    type=click.Choice(["cargo", "mock"]),
    default=None,
    help="Force a build backend (default: package.backend).",
)
store_option = click.option(
    "--store",
    "store_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Build store directory (default: store.root).",
)
json_option = click.option(
    "--json-output", "--json", "as_json", is_flag=True, help="Output as JSON."
)


@click.group()
@click.version_option(version=__version__, prog_name="aichat-deploy")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to deploy.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """aichat-deploy — build, dev shell and service unit for the aichat server."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging_from_env(console_level(debug=debug, verbose=verbose, quiet=quiet))


# ── Toolchain ───────────────────────────────────────────────────


@cli.command()
@json_option
@click.pass_context
def toolchain(ctx: click.Context, as_json: bool) -> None:
    """Resolve and show the pinned toolchain."""
    from aichat_deploy.core.use_cases.evaluate import open_session

    try:
        session = open_session(ctx.obj.get("config_path"))
    except DeployError as e:
        _fail(e, as_json)
        return

    spec = session.context.toolchain
    if as_json:
        data = {**spec.model_dump(mode="json"), "identity": spec.identity}
        click.echo(json.dumps(data, indent=2))
        return

    click.secho(f"\n🦀 Toolchain: {spec.name}", fg="cyan", bold=True)
    click.echo(f"   Channel:    {spec.channel}")
    click.echo(f"   Version:    {spec.version}")
    click.echo(f"   Target:     {spec.target}")
    click.echo(f"   Profile:    {spec.profile}")
    click.echo(f"   Components: {', '.join(spec.components)}")
    click.echo(f"   Identity:   {spec.identity[:16]}")
    click.echo()


# ── Build ───────────────────────────────────────────────────────


@cli.command()
@json_option
@backend_option
@store_option
@click.option("--plan", "plan_only", is_flag=True, help="Show the output path without building.")
@click.pass_context
def build(
    ctx: click.Context,
    as_json: bool,
    backend: str | None,
    store_root: Path | None,
    plan_only: bool,
) -> None:
    """Build the default package (reuses the store when inputs are unchanged)."""
    from aichat_deploy.core.use_cases.evaluate import make_builder, open_session

    try:
        session = open_session(ctx.obj.get("config_path"))
        builder = make_builder(session, backend=_forced_backend(backend), store_root=store_root)
        if plan_only:
            plan = builder.plan(session.context, session.config.package)
            if as_json:
                click.echo(json.dumps(plan.to_dict(), indent=2))
            else:
                click.echo(str(plan.out_path))
            return
        artifact = builder.build(session.context, session.config.package)
    except DeployError as e:
        _fail(e, as_json)
        return

    if as_json:
        click.echo(json.dumps(artifact.model_dump(mode="json"), indent=2))
        return

    if not ctx.obj.get("quiet"):
        click.secho(f"✅ Built {artifact.name} {artifact.version}", fg="green", bold=True)
    click.echo(artifact.out_path)


# ── Dev shell ───────────────────────────────────────────────────


@cli.command()
@json_option
@click.option("--script", is_flag=True, help="Print the activation script for the host shell.")
@click.option(
    "--write",
    "write_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write devshell.sh into this directory.",
)
@click.pass_context
def shell(ctx: click.Context, as_json: bool, script: bool, write_dir: Path | None) -> None:
    """Compose the development environment."""
    from aichat_deploy.core.services.env_composer import compose_environment
    from aichat_deploy.core.services.generators.shell_env import (
        generate_activation_script,
        render_activation_script,
    )
    from aichat_deploy.core.use_cases.evaluate import open_session

    try:
        session = open_session(ctx.obj.get("config_path"))
        env = compose_environment(session.context, session.config.devshell)
    except DeployError as e:
        _fail(e, as_json)
        return

    if write_dir is not None:
        target = generate_activation_script(env).write_to(write_dir, overwrite=True)
        if not ctx.obj.get("quiet"):
            click.secho(f"💾 Wrote {target}", fg="cyan")

    if as_json:
        click.echo(json.dumps(env.model_dump(mode="json"), indent=2))
        return
    if script:
        click.echo(render_activation_script(env), nl=False)
        return

    click.secho(f"\n🐚 Devshell: {session.config.name}", fg="cyan", bold=True)
    click.echo(f"   Tools ({len(env.tools)}):")
    for tool in env.tools:
        version = f" {tool.version}" if tool.version else ""
        click.echo(f"     • {tool.name}{version}")
    if env.variables:
        click.echo(f"   Variables ({len(env.variables)}):")
        for name, value in env.variables.items():
            click.echo(f"     {name}={value}")
    if env.startup_command:
        click.echo(f"   Startup: {env.startup_command}")
    click.echo()


# ── Service ─────────────────────────────────────────────────────


@cli.command()
@json_option
@backend_option
@store_option
@click.option("--enable/--disable", "enable", default=None, help="Override service.enable.")
@click.option(
    "--write",
    "write_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write <name>.service into this directory.",
)
@click.option("--force", is_flag=True, help="Overwrite an existing unit file.")
@click.pass_context
def service(
    ctx: click.Context,
    as_json: bool,
    backend: str | None,
    store_root: Path | None,
    enable: bool | None,
    write_dir: Path | None,
    force: bool,
) -> None:
    """Show (and optionally write) the supervised-service unit."""
    from aichat_deploy.core.services.generators.systemd_unit import generate_unit_file
    from aichat_deploy.core.services.service_descriptor import describe_service
    from aichat_deploy.core.use_cases.evaluate import make_builder, open_session

    try:
        session = open_session(ctx.obj.get("config_path"))
        builder = make_builder(session, backend=_forced_backend(backend), store_root=store_root)
        declaration = describe_service(
            session.config.service,
            session.config.package,
            lambda: builder.build(session.context, session.config.package),
            enable,
        )
    except DeployError as e:
        _fail(e, as_json)
        return

    unit_file = generate_unit_file(declaration)

    if write_dir is not None and unit_file is not None:
        try:
            target = unit_file.write_to(write_dir, overwrite=force)
        except FileExistsError as e:
            click.secho(f"❌ {e} (use --force)", fg="red")
            sys.exit(1)
        if not ctx.obj.get("quiet") and not as_json:
            click.secho(f"💾 Wrote {target}", fg="cyan")

    if as_json:
        click.echo(json.dumps(declaration.model_dump(mode="json"), indent=2))
        return

    if unit_file is None:
        click.secho("⊘ Service absent (service.enable is false)", fg="yellow")
        return
    click.echo(unit_file.content, nl=False)


# ── Full evaluation ─────────────────────────────────────────────


@cli.command("eval")
@json_option
@backend_option
@store_option
@click.option("--enable-service/--disable-service", "enable", default=None,
              help="Override service.enable.")
@click.pass_context
def eval_cmd(
    ctx: click.Context,
    as_json: bool,
    backend: str | None,
    store_root: Path | None,
    enable: bool | None,
) -> None:
    """Evaluate everything: toolchain, package, devshell and service."""
    from aichat_deploy.core.use_cases.evaluate import run_evaluation

    try:
        forced = _forced_backend(backend)
    except DeployError as e:
        _fail(e, as_json)
        return

    result = run_evaluation(
        config_path=ctx.obj.get("config_path"),
        backend=forced,
        enable_service=enable,
        store_root=store_root,
    )

    if result.error is not None:
        _fail(result.error, as_json)
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    comp = result.composition
    assert comp is not None  # guaranteed when no error

    click.secho(f"\n⚡ {result.name}", fg="cyan", bold=True)
    click.echo(f"   Toolchain: {comp.toolchain.name}")
    click.echo(f"   Package:   {comp.artifact.out_path}")
    click.echo(
        f"   Devshell:  {len(comp.environment.tools)} tools, "
        f"{len(comp.environment.variables)} variables"
    )
    if comp.service.defined:
        click.secho(f"   Service:   {comp.service.unit.unit_name}", fg="green")
        click.echo(f"              {comp.service.unit.exec_start}")
    else:
        click.secho("   Service:   absent", fg="yellow")
    click.echo()


# ── Config ──────────────────────────────────────────────────────


@cli.group()
def config() -> None:
    """Descriptor configuration commands."""


@config.command("check")
@json_option
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate deploy.yml without building."""
    from aichat_deploy.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Name:      {result.config.name}")
        if result.toolchain:
            click.echo(f"   Toolchain: {result.toolchain.name}")
        state = "enabled" if result.config.service.enable else "disabled"
        click.echo(f"   Service:   {state}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── Register sub-command groups from aichat_deploy/ui/cli/ ──────

from aichat_deploy.ui.cli.store import store  # noqa: E402

cli.add_command(store)


if __name__ == "__main__":
    cli()
