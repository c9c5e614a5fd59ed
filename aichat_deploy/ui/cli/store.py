"""
CLI commands for the build store.

Thin wrappers over ``aichat_deploy.core.persistence.build_store``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


def _resolve_store_root(ctx: click.Context, override: Path | None) -> Path:
    """Store root from --store, else the descriptor's store.root."""
    if override is not None:
        return override

    from aichat_deploy.core.config.loader import (
        descriptor_root,
        find_descriptor_file,
        load_descriptor,
        resolve_relative,
    )
    from aichat_deploy.core.errors import DeployError

    config_path: Path | None = ctx.obj.get("config_path") or find_descriptor_file()
    if config_path is None:
        click.secho("❌ No deploy.yml found (use --store)", fg="red")
        sys.exit(1)
    try:
        config = load_descriptor(config_path)
    except DeployError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    return resolve_relative(descriptor_root(config_path), config.store.root)


store_option = click.option(
    "--store",
    "store_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Build store directory (default: store.root).",
)


@click.group()
def store() -> None:
    """Build store — list published outputs, clean stale staging."""


@store.command("list")
@store_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, store_root: Path | None, as_json: bool) -> None:
    """List published artifacts."""
    from aichat_deploy.core.persistence.build_store import BuildStore

    build_store = BuildStore(_resolve_store_root(ctx, store_root))
    artifacts = build_store.list_artifacts()

    if as_json:
        click.echo(json.dumps([a.model_dump(mode="json") for a in artifacts], indent=2))
        return

    if not artifacts:
        click.secho(f"📦 Store is empty: {build_store.root}", fg="yellow")
        return

    click.secho(f"📦 Store: {build_store.root} ({len(artifacts)})", fg="cyan", bold=True)
    for artifact in artifacts:
        click.echo(f"   {Path(artifact.out_path).name}")
        click.echo(f"      toolchain {artifact.toolchain}, {artifact.platform}")


@store.command()
@store_option
@click.pass_context
def clean(ctx: click.Context, store_root: Path | None) -> None:
    """Remove staging directories left by interrupted builds."""
    from aichat_deploy.core.persistence.build_store import BuildStore

    build_store = BuildStore(_resolve_store_root(ctx, store_root))
    removed = build_store.clean_staging()
    if removed:
        click.secho(f"🧹 Removed {removed} staging director{'y' if removed == 1 else 'ies'}", fg="green")
    else:
        click.echo("Nothing to clean")
