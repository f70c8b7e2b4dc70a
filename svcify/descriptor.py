"""Service descriptor resolution.

A descriptor holds everything needed to render a unit file. It is built from
CLI input and filesystem probing on every ``install`` and never cached.
"""

import json
import os
import re
import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path

import structlog

from .errors import EntryPointError, PreconditionError

log = structlog.get_logger(__name__)

MANIFEST_FILENAME = "package.json"
ENV_FILENAME = ".env"
DEFAULT_INTERPRETER = Path("/usr/bin/node")
INTERPRETER_NAME = "node"

# Checked in order when the manifest does not name an entry point.
FALLBACK_ENTRY_POINTS = (
    "index.js",
    "main.js",
    "app.js",
    "server.js",
    "src/index.js",
    "dist/index.js",
)

# node options whose value is the following word.
NODE_OPTIONS_WITH_VALUE = frozenset(
    {
        "-r",
        "--require",
        "--import",
        "--loader",
        "--experimental-loader",
        "--env-file",
        "-C",
        "--conditions",
        "--input-type",
        "--title",
        "--inspect-port",
        "--redirect-warnings",
        "--disable-warning",
    }
)

# With these node runs inline code, not a script file.
NODE_EVAL_OPTIONS = frozenset({"-e", "--eval", "-p", "--print"})

# Characters systemd accepts in a unit name, minus the escaping backslash.
SERVICE_NAME_RE = re.compile(r"[A-Za-z0-9:_.@-]+")
MAX_SERVICE_NAME_LENGTH = 255 - len(".service")


@dataclass(frozen=True)
class ServiceDescriptor:
    """A fully resolved service description."""

    name: str
    app_dir: Path
    entry_point: str
    interpreter: Path
    user: str
    env_file: Path

    @property
    def entry_file(self) -> Path:
        """Absolute path of the entry point inside the app directory."""
        return self.app_dir / self.entry_point


def validate_service_name(name: str) -> str:
    """Reject names that cannot be used as a unit file basename.

    The name ends up in the unit filename, the Description= line and the
    systemctl argv, so it is held to the unit-name charset and may not
    start with ``-``.

    Raises:
        PreconditionError: If the name is empty or not a valid unit name
    """
    if not name or not name.strip():
        raise PreconditionError("service_name is required.")
    if (
        name in (".", "..")
        or name.startswith("-")
        or len(name) > MAX_SERVICE_NAME_LENGTH
        or not SERVICE_NAME_RE.fullmatch(name)
    ):
        raise PreconditionError(
            f"Invalid service name {name!r}. "
            "Use letters, digits and ':_.@-', not starting with '-'."
        )
    return name


def _read_manifest(app_dir: Path) -> dict | None:
    """Load package.json from the app directory, if it parses."""
    manifest = app_dir / MANIFEST_FILENAME
    if not manifest.is_file():
        return None

    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        log.warning("manifest unreadable, ignoring", path=str(manifest), error=str(e))
        return None

    if not isinstance(data, dict):
        log.warning("manifest is not an object, ignoring", path=str(manifest))
        return None
    return data


def _entry_from_start_script(command: str) -> str | None:
    """Extract the script argument from a ``node <script>`` start command.

    Option values (``-r dotenv/config``) are skipped. Inline code
    (``node -e ...``) yields no entry.
    """
    try:
        words = shlex.split(command)
    except ValueError:
        return None

    if not words or Path(words[0]).name != INTERPRETER_NAME:
        return None

    args = iter(words[1:])
    for word in args:
        if word == "--":
            return next(args, None)
        if word in NODE_EVAL_OPTIONS:
            return None
        if word in NODE_OPTIONS_WITH_VALUE:
            next(args, None)
            continue
        if not word.startswith("-"):
            return word
    return None


def _entry_from_manifest(app_dir: Path) -> str | None:
    manifest = _read_manifest(app_dir)
    if manifest is None:
        return None

    main = manifest.get("main")
    if isinstance(main, str) and main.strip():
        log.debug("entry point from manifest main", entry=main)
        return main.strip()

    scripts = manifest.get("scripts")
    if isinstance(scripts, dict):
        start = scripts.get("start")
        if isinstance(start, str):
            entry = _entry_from_start_script(start)
            if entry:
                log.debug("entry point from manifest start script", entry=entry)
                return entry

    return None


def detect_entry_point(app_dir: Path) -> str:
    """Guess the entry point of the application in ``app_dir``.

    The manifest's ``main`` field wins, then a ``node <file>`` start script,
    then the first existing file from FALLBACK_ENTRY_POINTS. A manifest
    choice is returned without checking that the file exists.

    Raises:
        EntryPointError: If no candidate is found
    """
    entry = _entry_from_manifest(app_dir)
    if entry:
        return entry

    for candidate in FALLBACK_ENTRY_POINTS:
        if (app_dir / candidate).is_file():
            log.debug("entry point from fallback probing", entry=candidate)
            return candidate

    raise EntryPointError("Could not detect entry point. Use --entry to specify.")


def resolve_interpreter(interpreter: str | Path | None = None) -> Path:
    """Resolve and validate the interpreter binary.

    Raises:
        PreconditionError: If the binary is missing or not executable
    """
    if interpreter:
        path = Path(interpreter)
    else:
        found = shutil.which(INTERPRETER_NAME)
        path = Path(found) if found else DEFAULT_INTERPRETER

    if not path.is_file() or not os.access(path, os.X_OK):
        raise PreconditionError(f"Node.js not found at '{path}'.")
    return path


def resolve_run_user() -> str:
    """Return the account the service should run as.

    The user who invoked sudo, else the login name, else root.
    """
    sudo_user = os.environ.get("SUDO_USER")
    if sudo_user:
        return sudo_user

    try:
        login = os.getlogin()
    except OSError:
        login = ""
    return login or "root"


def resolve_app_dir(app_dir: str | Path | None = None) -> Path:
    """Return the absolute application directory.

    Raises:
        PreconditionError: If the directory does not exist
    """
    path = Path(app_dir) if app_dir else Path.cwd()
    path = path.expanduser().resolve()
    if not path.is_dir():
        raise PreconditionError(f"Directory '{path}' does not exist.")
    return path


def resolve_descriptor(
    name: str,
    app_dir: str | Path | None = None,
    entry: str | None = None,
    interpreter: str | Path | None = None,
) -> ServiceDescriptor:
    """Build a complete descriptor or raise.

    Args:
        name: Service name, also the unit file basename
        app_dir: Application directory (default: current directory)
        entry: Entry point relative to app_dir (default: auto-detect)
        interpreter: Interpreter binary (default: node on PATH)

    Raises:
        PreconditionError: If any field cannot be resolved
    """
    validate_service_name(name)
    resolved_dir = resolve_app_dir(app_dir)
    resolved_interpreter = resolve_interpreter(interpreter)
    entry_point = entry or detect_entry_point(resolved_dir)

    entry_file = resolved_dir / entry_point
    if not entry_file.is_file():
        raise PreconditionError(f"Entry point '{entry_file}' does not exist.")

    descriptor = ServiceDescriptor(
        name=name,
        app_dir=resolved_dir,
        entry_point=entry_point,
        interpreter=resolved_interpreter,
        user=resolve_run_user(),
        env_file=resolved_dir / ENV_FILENAME,
    )
    log.debug("descriptor resolved", name=name, entry_file=str(entry_file))
    return descriptor
