"""Defaults and per-invocation settings."""

from dataclasses import dataclass
from pathlib import Path

PROG_NAME = "svcify"

DEFAULT_UNIT_DIR = Path("/etc/systemd/system")
DEFAULT_INSTALL_DIR = Path("/usr/local/bin")

UNIT_SUFFIX = ".service"

# Written into every generated unit's Description line; `list` matches on it.
DESCRIPTION_PREFIX = f"{PROG_NAME}: "
MANAGED_MARKER = f"Description={DESCRIPTION_PREFIX.rstrip()}"

UNIT_DIR_ENVVAR = "SVCIFY_UNIT_DIR"
INSTALL_DIR_ENVVAR = "SVCIFY_INSTALL_DIR"


@dataclass(frozen=True)
class Settings:
    """Settings resolved from CLI flags and environment variables."""

    unit_dir: Path = DEFAULT_UNIT_DIR
    marker: str = MANAGED_MARKER
    suffix: str = UNIT_SUFFIX

    def unit_path(self, name: str) -> Path:
        """Return the conventional unit file path for a service name."""
        return self.unit_dir / f"{name}{self.suffix}"
