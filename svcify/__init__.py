"""svcify - run any Node.js application as a systemd service."""

__version__ = "0.1.0"
