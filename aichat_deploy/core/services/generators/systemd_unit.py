"""
systemd unit generator — render a ServiceUnit for the host service manager.

Output for the default aichat service::

    [Unit]
    Description=aichat server
    After=network.target

    [Service]
    ExecStart=/store/<hash>-aichat-0.1.0/bin/aichat --serve
    Restart=always

    [Install]
    WantedBy=multi-user.target
"""

from __future__ import annotations

from aichat_deploy.core.models.service import ServiceDeclaration, ServiceUnit
from aichat_deploy.core.models.template import GeneratedFile

_HEADER = "# Generated by aichat-deploy. Do not edit; re-run `aichat-deploy service --write`.\n"


def render_unit(unit: ServiceUnit) -> str:
    """The unit file text."""
    lines = [
        "[Unit]",
        f"Description={unit.description}",
    ]
    if unit.after:
        lines.append(f"After={' '.join(unit.after)}")

    lines += [
        "",
        "[Service]",
        f"ExecStart={unit.exec_start}",
        f"Restart={unit.restart.value}",
    ]

    if unit.wanted_by:
        lines += [
            "",
            "[Install]",
            f"WantedBy={' '.join(unit.wanted_by)}",
        ]

    return _HEADER + "\n".join(lines) + "\n"


def generate_unit_file(declaration: ServiceDeclaration) -> GeneratedFile | None:
    """A ``<name>.service`` file, or None when the service is absent."""
    if not declaration.defined:
        return None
    unit = declaration.unit
    return GeneratedFile(
        path=unit.unit_name,
        content=render_unit(unit),
        mode=0o644,
        reason=f"systemd unit for {unit.name}",
    )
