"""Install the svcify executable itself."""

import os
import shutil
import sys
from pathlib import Path

import structlog

from .config import PROG_NAME
from .errors import PreconditionError

log = structlog.get_logger(__name__)


def current_executable() -> Path:
    """Locate the script that is currently running svcify.

    Raises:
        PreconditionError: If no executable file can be found
    """
    argv0 = Path(sys.argv[0]) if sys.argv and sys.argv[0] else None
    if argv0 is not None and argv0.name != "__main__.py" and argv0.is_file():
        return argv0.resolve()

    found = shutil.which(PROG_NAME)
    if found:
        return Path(found).resolve()

    raise PreconditionError(
        f"Could not find the {PROG_NAME} executable. Install the package first."
    )


def install_self(install_dir: Path, source: Path | None = None) -> Path:
    """Copy the svcify executable into ``install_dir``.

    Args:
        install_dir: Target directory, normally /usr/local/bin
        source: Executable to copy (default: the running one)

    Returns:
        Path of the installed executable
    """
    source = source or current_executable()
    target = install_dir / PROG_NAME

    if source.resolve() == target.resolve():
        log.debug("already installed", path=str(target))
        return target

    try:
        install_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
        os.chmod(target, 0o755)
    except OSError as e:
        raise PreconditionError(f"Cannot write '{target}': {e.strerror}") from e
    log.debug("executable installed", source=str(source), target=str(target))
    return target
