"""CLI entry point for svcify using Click."""

import functools
import sys
from pathlib import Path

import click
import structlog

from . import __version__
from .config import (
    DEFAULT_INSTALL_DIR,
    DEFAULT_UNIT_DIR,
    INSTALL_DIR_ENVVAR,
    PROG_NAME,
    UNIT_DIR_ENVVAR,
    Settings,
)
from .errors import ManagerCommandError, PreconditionError
from .logconfig import configure_logging

log = structlog.get_logger(__name__)

PROJECT_URL = "https://github.com/noodlescripter/svcify"


def _translate_errors(f):
    """Turn svcify errors into Click exits.

    Precondition failures print ``Error: <message>`` and exit 1. Failed
    systemctl calls exit with systemctl's own status; systemctl has
    already printed its diagnostics.
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except PreconditionError as e:
            raise click.ClickException(str(e)) from e
        except ManagerCommandError as e:
            log.debug("manager command failed", argv=e.command, returncode=e.returncode)
            raise click.exceptions.Exit(e.returncode) from e

    return wrapper


def _get_manager(ctx: click.Context):
    from .service import get_service_manager

    try:
        return get_service_manager(ctx.obj)
    except NotImplementedError as e:
        raise click.ClickException(str(e))


service_name_argument = click.argument("service_name", metavar="SERVICE_NAME")


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__, prog_name=PROG_NAME)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging to stderr.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option(
    "--unit-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_UNIT_DIR,
    envvar=UNIT_DIR_ENVVAR,
    show_default=True,
    help="Directory systemd loads unit files from",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_json: bool, unit_dir: Path) -> None:
    """svcify - Turn any application into a systemd service.

    \b
    Examples:
      sudo svcify list
      sudo svcify install myapi
      sudo svcify install myapi --app-dir /home/user/my-api --entry server.js
      sudo svcify stop myapi
      sudo svcify uninstall myapi
    """
    configure_logging(verbose=verbose, log_json=log_json)
    ctx.obj = Settings(unit_dir=unit_dir)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("setup")
@click.option(
    "--install-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_INSTALL_DIR,
    envvar=INSTALL_DIR_ENVVAR,
    show_default=True,
    help="Directory to install the svcify executable into",
)
@click.option("--yes", "-y", is_flag=True, help="Install without confirmation")
@click.pass_context
@_translate_errors
def setup_cmd(ctx: click.Context, install_dir: Path, yes: bool) -> None:
    """Install svcify to /usr/local/bin."""
    from .selfinstall import install_self

    _get_manager(ctx).require_root()

    click.echo()
    click.echo("================================")
    click.echo(f"  {PROG_NAME} installer")
    click.echo("================================")
    click.echo()
    click.echo(f"This will install {PROG_NAME} to {install_dir}")
    click.echo()
    click.echo("Review the source code at:")
    click.echo(f"  {PROJECT_URL}")
    click.echo()

    if not yes and not click.confirm("Proceed with installation?", default=False):
        click.echo("Installation cancelled.")
        return

    click.echo()
    click.echo("Installing...")
    target = install_self(install_dir)
    click.echo()
    click.secho(f"✓ Installed {target}", fg="green", bold=True)
    click.echo(f"Run '{PROG_NAME} --help' to get started.")


@cli.command("install")
@service_name_argument
@click.option(
    "--app-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Path to Node.js app (default: current directory)",
)
@click.option("--entry", default=None, help="Entry file (default: auto-detect)")
@click.option(
    "--node",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to node binary (default: auto-detect)",
)
@click.option("--dry-run", is_flag=True, help="Generate service file without installing")
@click.pass_context
@_translate_errors
def install_cmd(
    ctx: click.Context,
    service_name: str,
    app_dir: Path | None,
    entry: str | None,
    node: Path | None,
    dry_run: bool,
) -> None:
    """Install and start the service."""
    from .descriptor import resolve_descriptor
    from .unit import render_unit

    manager = None
    if not dry_run:
        manager = _get_manager(ctx)
        manager.require_root()
        manager.require_systemctl()

    descriptor = resolve_descriptor(
        service_name, app_dir=app_dir, entry=entry, interpreter=node
    )

    click.echo(f"Installing service '{descriptor.name}'...")
    click.echo(f"  App directory: {descriptor.app_dir}")
    click.echo(f"  Entry point:   {descriptor.entry_point}")
    click.echo(f"  Node binary:   {descriptor.interpreter}")
    click.echo(f"  Run as user:   {descriptor.user}")

    content = render_unit(descriptor)

    if manager is None:
        click.echo()
        click.echo("=== DRY RUN - Service file content ===")
        click.echo(content, nl=False)
        click.echo("=== End of service file ===")
        click.echo()
        click.echo("Run without --dry-run to install.")
        return

    service_file = manager.install_unit(descriptor.name, content)

    click.echo()
    click.secho(
        f"✓ Service '{descriptor.name}' installed and started.", fg="green", bold=True
    )
    click.echo(f"Service file: {service_file}")
    click.echo()
    click.echo("Manage with:")
    for verb in ("status", "logs", "restart", "stop", "uninstall"):
        click.echo(f"  sudo {PROG_NAME} {verb} {descriptor.name}")


@cli.command("uninstall")
@service_name_argument
@click.pass_context
@_translate_errors
def uninstall_cmd(ctx: click.Context, service_name: str) -> None:
    """Stop and remove the service."""
    from .descriptor import validate_service_name

    validate_service_name(service_name)
    manager = _get_manager(ctx)
    manager.require_root()
    manager.require_systemctl()

    click.echo(f"Uninstalling {service_name}...")
    removed = manager.uninstall(service_name)
    if removed:
        click.echo(f"Removed {removed}")

    click.secho(f"✓ Service '{service_name}' uninstalled.", fg="green")


def _lifecycle_command(verb: str, progress: str, done: str):
    """Build a command that forwards ``verb`` to systemctl."""

    @cli.command(verb, help=f"{verb.capitalize()} the service.")
    @service_name_argument
    @click.pass_context
    @_translate_errors
    def command(ctx: click.Context, service_name: str) -> None:
        from .descriptor import validate_service_name

        validate_service_name(service_name)
        manager = _get_manager(ctx)
        manager.require_root()
        manager.require_systemctl()

        click.echo(f"{progress} {service_name}...")
        getattr(manager, verb)(service_name)
        click.secho(f"✓ Service {done}.", fg="green")

    return command


start_cmd = _lifecycle_command("start", "Starting", "started")
stop_cmd = _lifecycle_command("stop", "Stopping", "stopped")
restart_cmd = _lifecycle_command("restart", "Restarting", "restarted")


@cli.command("status")
@service_name_argument
@click.pass_context
@_translate_errors
def status_cmd(ctx: click.Context, service_name: str) -> None:
    """Show service status."""
    from .descriptor import validate_service_name

    validate_service_name(service_name)
    manager = _get_manager(ctx)
    manager.require_systemctl()

    # systemctl exits non-zero for stopped or unknown units; still informational.
    returncode = manager.status(service_name)
    log.debug("status reported", name=service_name, returncode=returncode)


@cli.command("logs")
@service_name_argument
@click.option("--lines", "-n", type=int, default=None, help="Number of past lines to show")
@click.pass_context
@_translate_errors
def logs_cmd(ctx: click.Context, service_name: str, lines: int | None) -> None:
    """Show service logs (follow mode).

    Blocks until interrupted with Ctrl+C.
    """
    from .descriptor import validate_service_name

    validate_service_name(service_name)
    _get_manager(ctx).logs(service_name, lines=lines)


@cli.command("list")
@click.pass_context
@_translate_errors
def list_cmd(ctx: click.Context) -> None:
    """List all services created by svcify."""
    manager = _get_manager(ctx)
    manager.require_systemctl()

    click.echo(f"{PROG_NAME} services:")
    click.echo()

    services = manager.list_services()
    if not services:
        click.echo("  No services found.")
        return

    for info in services:
        click.echo(f"  {info.name:<20} [{info.state}]")


def main() -> None:
    """Main entry point.

    Usage errors (unknown command or option) exit 1 instead of Click's 2.
    """
    try:
        rv = cli.main(prog_name=PROG_NAME, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(1)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)

    sys.exit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    main()
