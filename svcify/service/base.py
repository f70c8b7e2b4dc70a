"""Shared service types and manager lookup."""

import platform
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..config import Settings


class ServiceStatus(Enum):
    """Unit states as reported by ``systemctl is-active``."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ACTIVATING = "activating"
    DEACTIVATING = "deactivating"
    RELOADING = "reloading"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "ServiceStatus":
        """Map systemctl output to a status, defaulting to UNKNOWN."""
        try:
            return cls(value.strip())
        except ValueError:
            return cls.UNKNOWN


@dataclass
class ServiceInfo:
    """Information about one managed unit.

    ``state`` is the word systemd reported, kept as-is so states this
    enum does not list (``maintenance``, ``refreshing``) still display.
    """

    name: str
    state: str
    service_file: Path | None = None

    @property
    def status(self) -> ServiceStatus:
        return ServiceStatus.parse(self.state)


def get_service_manager(settings: Settings | None = None):
    """Get the service manager for the current platform.

    Args:
        settings: Paths and markers for this invocation

    Returns:
        SystemdServiceManager instance

    Raises:
        NotImplementedError: If the current platform is not Linux
    """
    system = platform.system()

    if system == "Linux":
        from .systemd import SystemdServiceManager

        return SystemdServiceManager(settings or Settings())

    raise NotImplementedError(
        f"svcify is not supported on {system}. Supported platforms: Linux (systemd)"
    )
