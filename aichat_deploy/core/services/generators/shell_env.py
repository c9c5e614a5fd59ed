"""
Shell activation generator — render a DevEnvironment for the host shell.

The script is meant to be sourced (``. ./devshell.sh``): it prefixes
PATH with every tool's bin directory, exports the variable bindings in
their final (post-conflict) form, then runs the startup command, if any.
"""

from __future__ import annotations

import shlex

from aichat_deploy.core.models.environment import DevEnvironment
from aichat_deploy.core.models.template import GeneratedFile

ACTIVATION_FILE = "devshell.sh"


def render_activation_script(env: DevEnvironment) -> str:
    lines = [
        "# Generated by aichat-deploy — source this file, do not execute it.",
    ]

    path_entries = env.path_entries()
    if path_entries:
        joined = ":".join(path_entries)
        lines.append(f'export PATH={shlex.quote(joined)}"${{PATH:+:$PATH}}"')

    for name in sorted(env.variables):
        lines.append(f"export {name}={shlex.quote(env.variables[name])}")

    if env.startup_command:
        lines.append(env.startup_command)

    return "\n".join(lines) + "\n"


def generate_activation_script(env: DevEnvironment) -> GeneratedFile:
    return GeneratedFile(
        path=ACTIVATION_FILE,
        content=render_activation_script(env),
        mode=0o644,
        reason="devshell activation for the host shell",
    )
