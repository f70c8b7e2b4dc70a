"""Shared pytest fixtures for svcify tests."""

import logging
import os
import shutil
import subprocess
from pathlib import Path

import pytest
from click.testing import CliRunner


class FakeSystemd:
    """Stand-in for subprocess.run that records systemctl calls."""

    def __init__(self):
        self.calls: list[list[str]] = []
        self.returncodes: dict[str, int] = {}
        self.stdout: dict[str, str] = {}

    def __call__(self, cmd, capture_output=False, text=False, check=False):
        self.calls.append(list(cmd))
        verb = cmd[1]
        return subprocess.CompletedProcess(
            cmd,
            self.returncodes.get(verb, 0),
            stdout=self.stdout.get(verb, "") if capture_output else None,
            stderr="" if capture_output else None,
        )

    def verbs(self) -> list[str]:
        return [call[1] for call in self.calls]


@pytest.fixture(autouse=True)
def _restore_logging():
    """Restore the svcify logger after each test."""
    logger = logging.getLogger("svcify")
    handlers = logger.handlers[:]
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def unit_dir(tmp_path, monkeypatch) -> Path:
    """Temporary unit directory, wired in through SVCIFY_UNIT_DIR."""
    path = tmp_path / "units"
    monkeypatch.setenv("SVCIFY_UNIT_DIR", str(path))
    return path


@pytest.fixture
def app_dir(tmp_path) -> Path:
    """Empty application directory."""
    path = tmp_path / "app"
    path.mkdir()
    return path.resolve()


@pytest.fixture
def node_bin(tmp_path) -> Path:
    """An executable file standing in for the node binary."""
    path = tmp_path / "bin" / "node"
    path.parent.mkdir()
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def fake_systemd(monkeypatch) -> FakeSystemd:
    """Intercept systemctl calls and pretend systemctl is installed."""
    fake = FakeSystemd()
    real_which = shutil.which

    def which(name, *args, **kwargs):
        if name == "systemctl":
            return "/usr/bin/systemctl"
        return real_which(name, *args, **kwargs)

    monkeypatch.setattr("svcify.service.systemd.subprocess.run", fake)
    monkeypatch.setattr("svcify.service.systemd.shutil.which", which)
    monkeypatch.setattr("svcify.service.base.platform.system", lambda: "Linux")
    monkeypatch.setenv("SUDO_USER", "deploy")
    return fake


@pytest.fixture
def as_root(monkeypatch):
    """Pretend the process runs with root privileges."""
    monkeypatch.setattr(os, "geteuid", lambda: 0)


@pytest.fixture
def as_user(monkeypatch):
    """Pretend the process runs as an unprivileged user."""
    monkeypatch.setattr(os, "geteuid", lambda: 1000)
