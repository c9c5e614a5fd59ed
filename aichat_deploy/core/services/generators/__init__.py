"""
Generators — render composed records into files for host collaborators.

Each generator returns a ``GeneratedFile``: the service manager gets a
systemd unit, the interactive shell gets an activation script.
"""
