"""Tests for the systemd service manager."""

import pytest
from svcify.config import Settings
from svcify.errors import ManagerCommandError, PreconditionError
from svcify.service import ServiceStatus, get_service_manager
from svcify.service.systemd import SystemdServiceManager


@pytest.fixture
def manager(unit_dir, fake_systemd) -> SystemdServiceManager:
    return SystemdServiceManager(Settings(unit_dir=unit_dir))


def test_get_service_manager_on_linux(fake_systemd):
    assert get_service_manager().platform_name == "systemd"


def test_get_service_manager_rejects_other_platforms(monkeypatch):
    monkeypatch.setattr("svcify.service.base.platform.system", lambda: "Darwin")
    with pytest.raises(NotImplementedError, match="Darwin"):
        get_service_manager()


def test_unit_path_follows_convention(manager, unit_dir):
    assert manager.service_file_path("myapi") == unit_dir / "myapi.service"


def test_require_root(manager, as_user):
    with pytest.raises(PreconditionError, match="root privileges"):
        manager.require_root()


def test_require_systemctl_missing(manager, monkeypatch):
    monkeypatch.setattr("svcify.service.systemd.shutil.which", lambda name: None)
    with pytest.raises(PreconditionError, match="systemctl not found"):
        manager.require_systemctl()


def test_install_unit_orders_commands(manager, fake_systemd, unit_dir):
    path = manager.install_unit("myapi", "[Unit]\n")

    assert path.read_text() == "[Unit]\n"
    assert fake_systemd.calls == [
        ["systemctl", "daemon-reload"],
        ["systemctl", "enable", "--now", "myapi.service"],
    ]


def test_install_unit_stops_on_reload_failure(manager, fake_systemd):
    fake_systemd.returncodes["daemon-reload"] = 1

    with pytest.raises(ManagerCommandError) as excinfo:
        manager.install_unit("myapi", "[Unit]\n")

    assert excinfo.value.returncode == 1
    assert fake_systemd.verbs() == ["daemon-reload"]


def test_uninstall_removes_file(manager, fake_systemd, unit_dir):
    unit_dir.mkdir()
    (unit_dir / "myapi.service").write_text("[Unit]\n")

    removed = manager.uninstall("myapi")

    assert removed == unit_dir / "myapi.service"
    assert not removed.exists()
    assert fake_systemd.verbs() == ["stop", "disable", "daemon-reload"]


def test_uninstall_missing_unit_is_not_an_error(manager, fake_systemd):
    fake_systemd.returncodes["stop"] = 5
    fake_systemd.returncodes["disable"] = 1

    assert manager.uninstall("ghost") is None
    assert fake_systemd.verbs() == ["stop", "disable", "daemon-reload"]


def test_lifecycle_failure_carries_returncode(manager, fake_systemd):
    fake_systemd.returncodes["restart"] = 5

    with pytest.raises(ManagerCommandError) as excinfo:
        manager.restart("myapi")

    assert excinfo.value.returncode == 5
    assert excinfo.value.command == ["systemctl", "restart", "myapi.service"]


def test_status_returns_code_without_raising(manager, fake_systemd):
    fake_systemd.returncodes["status"] = 4

    assert manager.status("ghost") == 4
    assert fake_systemd.calls == [["systemctl", "status", "ghost.service", "--no-pager"]]


def test_is_active_parses_output(manager, fake_systemd):
    fake_systemd.stdout["is-active"] = "failed\n"
    assert manager.is_active("myapi") == ServiceStatus.FAILED


def test_is_active_unknown_output(manager, fake_systemd):
    fake_systemd.stdout["is-active"] = ""
    assert manager.is_active("myapi") == ServiceStatus.UNKNOWN


def test_list_services_only_managed(manager, fake_systemd, unit_dir):
    unit_dir.mkdir()
    (unit_dir / "web.service").write_text("[Unit]\nDescription=svcify: web\n")
    (unit_dir / "api.service").write_text("[Unit]\nDescription=svcify: api\n")
    (unit_dir / "sshd.service").write_text("[Unit]\nDescription=OpenSSH\n")
    (unit_dir / "web.timer").write_text("[Unit]\nDescription=svcify: web\n")
    fake_systemd.stdout["is-active"] = "active\n"

    services = manager.list_services()

    assert [s.name for s in services] == ["api", "web"]
    assert all(s.status == ServiceStatus.ACTIVE for s in services)


def test_list_services_missing_dir(manager):
    assert manager.list_services() == []


def test_logs_execs_journalctl(manager, monkeypatch):
    calls = []
    monkeypatch.setattr(
        "svcify.service.systemd.os.execvp", lambda file, args: calls.append((file, args))
    )

    manager.logs("myapi", lines=20)

    assert calls == [("journalctl", ["journalctl", "-u", "myapi.service", "-f", "-n", "20"])]


def test_logs_without_journalctl(manager, monkeypatch):
    def missing(file, args):
        raise FileNotFoundError(file)

    monkeypatch.setattr("svcify.service.systemd.os.execvp", missing)

    with pytest.raises(PreconditionError, match="journalctl not found"):
        manager.logs("myapi")


def test_install_unit_unwritable_dir(fake_systemd, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    manager = SystemdServiceManager(Settings(unit_dir=blocker / "sub"))

    with pytest.raises(PreconditionError, match="Cannot write"):
        manager.install_unit("myapi", "[Unit]\n")

    assert fake_systemd.calls == []


def test_disable_forwarded(manager, fake_systemd):
    manager.disable("myapi")
    assert fake_systemd.calls == [["systemctl", "disable", "myapi.service"]]


def test_disable_failure_raises(manager, fake_systemd):
    fake_systemd.returncodes["disable"] = 1

    with pytest.raises(ManagerCommandError):
        manager.disable("myapi")


def test_list_services_keeps_raw_state(manager, fake_systemd, unit_dir):
    unit_dir.mkdir()
    (unit_dir / "web.service").write_text("[Unit]\nDescription=svcify: web\n")
    fake_systemd.stdout["is-active"] = "maintenance\n"

    [info] = manager.list_services()

    assert info.state == "maintenance"
    assert info.status == ServiceStatus.UNKNOWN
