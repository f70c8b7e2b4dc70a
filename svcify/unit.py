"""Systemd unit file rendering."""

from .config import DESCRIPTION_PREFIX, MANAGED_MARKER
from .descriptor import ServiceDescriptor

SYSTEMD_UNIT_TEMPLATE = """\
[Unit]
Description={description}
After=network.target

[Service]
Type=simple
User={user}
WorkingDirectory={working_directory}
Environment=NODE_ENV=production
EnvironmentFile=-{env_file}
ExecStart={interpreter} {entry_file}
Restart=on-failure
RestartSec=5
StandardOutput=journal
StandardError=journal

[Install]
WantedBy=multi-user.target
"""


def description_for(name: str) -> str:
    """Return the Description= value for a managed service."""
    return f"{DESCRIPTION_PREFIX}{name}"


def render_unit(descriptor: ServiceDescriptor) -> str:
    """Render the unit file text for a resolved descriptor.

    Pure: the same descriptor always yields the same text.
    """
    return SYSTEMD_UNIT_TEMPLATE.format(
        description=description_for(descriptor.name),
        user=descriptor.user,
        working_directory=descriptor.app_dir,
        env_file=descriptor.env_file,
        interpreter=descriptor.interpreter,
        entry_file=descriptor.entry_file,
    )


def is_managed_unit(text: str, marker: str = MANAGED_MARKER) -> bool:
    """Check whether unit file text was generated by svcify."""
    return marker in text
