"""Systemd service management for Linux."""

import os
import shutil
import subprocess
from pathlib import Path

import structlog

from ..config import Settings
from ..errors import ManagerCommandError, PreconditionError
from ..unit import is_managed_unit
from .base import ServiceInfo, ServiceStatus

log = structlog.get_logger(__name__)


class SystemdServiceManager:
    """Forwards lifecycle verbs to systemctl and journalctl.

    Holds no state beyond the settings; every query goes to systemd.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def platform_name(self) -> str:
        return "systemd"

    def unit_name(self, name: str) -> str:
        return f"{name}{self.settings.suffix}"

    def service_file_path(self, name: str) -> Path:
        return self.settings.unit_path(name)

    def require_root(self) -> None:
        """Fail unless running with root privileges."""
        if os.geteuid() != 0:
            raise PreconditionError(
                "This command requires root privileges. Re-run with sudo."
            )

    def require_systemctl(self) -> None:
        """Fail unless systemctl is on PATH."""
        if shutil.which("systemctl") is None:
            raise PreconditionError("systemctl not found. svcify requires systemd.")

    def _run_systemctl(
        self, *args: str, capture: bool = False
    ) -> subprocess.CompletedProcess:
        """Run a systemctl command.

        Without ``capture`` the output goes straight to the terminal so
        systemd's own messages reach the user unchanged.
        """
        cmd = ["systemctl", *args]
        result = subprocess.run(cmd, capture_output=capture, text=True, check=False)
        log.debug("systemctl", argv=cmd, returncode=result.returncode)
        return result

    def _run_checked(self, *args: str, ignore_errors: bool = False) -> None:
        """Run systemctl and raise on failure.

        With ``ignore_errors`` the output is swallowed and a non-zero exit
        is only logged.
        """
        result = self._run_systemctl(*args, capture=ignore_errors)
        if result.returncode != 0 and ignore_errors:
            log.debug(
                "ignored systemctl failure", argv=["systemctl", *args], stderr=result.stderr
            )
        elif result.returncode != 0:
            raise ManagerCommandError(["systemctl", *args], result.returncode)

    def daemon_reload(self) -> None:
        """Reload systemd so it sees added or removed unit files."""
        self._run_checked("daemon-reload")

    def enable_now(self, name: str) -> None:
        self._run_checked("enable", "--now", self.unit_name(name))

    def start(self, name: str) -> None:
        self._run_checked("start", self.unit_name(name))

    def stop(self, name: str, ignore_errors: bool = False) -> None:
        self._run_checked("stop", self.unit_name(name), ignore_errors=ignore_errors)

    def restart(self, name: str) -> None:
        self._run_checked("restart", self.unit_name(name))

    def disable(self, name: str, ignore_errors: bool = False) -> None:
        self._run_checked("disable", self.unit_name(name), ignore_errors=ignore_errors)

    def active_state(self, name: str) -> str:
        """Return the raw ``systemctl is-active`` state, or "unknown"."""
        result = self._run_systemctl("is-active", self.unit_name(name), capture=True)
        return (result.stdout or "").strip() or ServiceStatus.UNKNOWN.value

    def is_active(self, name: str) -> ServiceStatus:
        """Query the unit's current state."""
        return ServiceStatus.parse(self.active_state(name))

    def status(self, name: str) -> int:
        """Show ``systemctl status`` output and return its exit code.

        A non-zero code only describes the unit's state, so callers
        should not treat it as a failure.
        """
        result = self._run_systemctl("status", self.unit_name(name), "--no-pager")
        return result.returncode

    def install_unit(self, name: str, content: str) -> Path:
        """Write the unit file, reload systemd, then enable and start it.

        Returns:
            Path of the written unit file
        """
        service_file = self.service_file_path(name)
        try:
            service_file.parent.mkdir(parents=True, exist_ok=True)
            service_file.write_text(content)
        except OSError as e:
            raise PreconditionError(f"Cannot write '{service_file}': {e.strerror}") from e
        log.debug("unit written", path=str(service_file))

        self.daemon_reload()
        self.enable_now(name)
        return service_file

    def uninstall(self, name: str) -> Path | None:
        """Stop, disable and remove a unit.

        Stop and disable failures are ignored so a unit that is already
        stopped or was never installed uninstalls cleanly.

        Returns:
            Path of the removed unit file, or None if there was none
        """
        self.stop(name, ignore_errors=True)
        self.disable(name, ignore_errors=True)

        removed = None
        service_file = self.service_file_path(name)
        if service_file.is_file():
            try:
                service_file.unlink()
            except OSError as e:
                raise PreconditionError(
                    f"Cannot remove '{service_file}': {e.strerror}"
                ) from e
            removed = service_file

        self.daemon_reload()
        return removed

    def list_services(self) -> list[ServiceInfo]:
        """Find units generated by svcify and query their state."""
        unit_dir = self.settings.unit_dir
        if not unit_dir.is_dir():
            return []

        services = []
        for service_file in sorted(unit_dir.glob(f"*{self.settings.suffix}")):
            if not service_file.is_file():
                continue
            try:
                text = service_file.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                log.warning("cannot read unit file", path=str(service_file), error=str(e))
                continue
            if not is_managed_unit(text, self.settings.marker):
                continue

            name = service_file.name[: -len(self.settings.suffix)]
            services.append(
                ServiceInfo(
                    name=name,
                    state=self.active_state(name),
                    service_file=service_file,
                )
            )
        return services

    def logs(self, name: str, lines: int | None = None) -> None:
        """Follow the unit's journal; does not return.

        The process is replaced by journalctl so Ctrl+C goes straight to it.
        """
        cmd = ["journalctl", "-u", self.unit_name(name), "-f"]
        if lines is not None:
            cmd.extend(["-n", str(lines)])

        log.debug("journalctl", argv=cmd)
        try:
            os.execvp("journalctl", cmd)
        except FileNotFoundError as e:
            raise PreconditionError("journalctl not found. svcify requires systemd.") from e
