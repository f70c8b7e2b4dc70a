"""Exceptions raised by svcify."""


class SvcifyError(Exception):
    """Base class for svcify errors."""


class PreconditionError(SvcifyError):
    """A required condition for the command is not met.

    Covers missing privilege, missing systemd tooling, missing paths and
    invalid service names. Reported as a one-line message with exit code 1.
    """


class EntryPointError(PreconditionError):
    """The application entry point could not be determined."""


class ManagerCommandError(SvcifyError):
    """A systemctl command exited non-zero.

    The manager has already written its own diagnostics to the terminal,
    so only the return code is carried.
    """

    def __init__(self, args: list[str], returncode: int):
        self.command = args
        self.returncode = returncode
        super().__init__(f"{' '.join(args)} exited with status {returncode}")
