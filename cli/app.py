import asyncio
import logging
import sys
from importlib.metadata import PackageNotFoundError, version

import click
import pyfiglet

from core.errors import BackupError, FileAccessError, ToolNotFoundError
from core.models.connection_parameters import ConnectionParameters
from core.services.mysql_backup_utility import COLUMN_STATISTICS_FLAG, MySQLDatabaseBackupManager

try:
    __version__ = version("sqlpak")
except PackageNotFoundError:
    __version__ = "0.1.0"


def _banner() -> None:
    art = pyfiglet.figlet_format("sqlpak", font="slant")
    click.echo(click.style(art, fg="cyan", bold=True))
    click.echo(
        click.style(
            "  Streaming gzip dump & restore for MySQL\n",
            fg="bright_white",
        )
    )


def _fail(exc: Exception) -> None:
    click.echo(click.style(f"  ✗ {exc}", fg="red", bold=True))
    sys.exit(1)


def connection_options(func):
    """Shared connection flags; each one can also come from the environment."""
    options = [
        click.option("--host", "-H", envvar="SQLPAK_DB_HOST", default="localhost",
                     show_default=True, help="Database host."),
        click.option("--port", "-P", envvar="SQLPAK_DB_PORT", default="",
                     help="Database port (omitted when empty)."),
        click.option("--user", "-u", envvar="SQLPAK_DB_USER", default="root",
                     show_default=True, help="Database username."),
        click.option("--password", "-p", envvar="SQLPAK_DB_PASSWORD", default=None,
                     help="Database password (prompted securely if omitted)."),
        click.option("--database", "-D", envvar="SQLPAK_DB_NAME", required=True,
                     help="Database name."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _manager(host: str, port: str, user: str, password: str | None, database: str) -> MySQLDatabaseBackupManager:
    if password is None:
        password = click.prompt("  Password", hide_input=True, default="", prompt_suffix=" ")

    try:
        params = ConnectionParameters(
            host=host, port=port, username=user, password=password, name=database,
        )
    except ValueError as exc:
        raise click.UsageError(str(exc))
    return MySQLDatabaseBackupManager(params)


@click.group(invoke_without_command=True, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", prog_name="sqlpak")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """sqlpak — stream MySQL dumps to and from gzip files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="  %(levelname)s %(message)s",
    )
    if ctx.invoked_subcommand is None:
        _banner()
        click.echo(ctx.get_help())


# ── dump ──────────────────────────────────────────────────────────────────────

@cli.command()
@connection_options
@click.option(
    "--output", "-o", required=True,
    type=click.Path(dir_okay=False, writable=True),
    help="Path of the .sql.gz file to write.",
)
@click.option("--async-mode", "-a", is_flag=True, help="Run the dump asynchronously.")
def dump(host, port, user, password, database, output, async_mode) -> None:
    """Dump a database into a gzip-compressed SQL file."""
    _banner()
    manager = _manager(host, port, user, password, database)

    click.echo(
        click.style("  [MYSQL] ", fg="cyan", bold=True)
        + click.style(f"Dumping '{database}' …", fg="bright_white")
    )

    try:
        if async_mode:
            path = asyncio.run(manager.async_dump_to_compressed_file(output))
        else:
            path = manager.dump_to_compressed_file(output)
    except BackupError as exc:
        # nothing was written when the tool or the destination was unavailable
        if not isinstance(exc, (ToolNotFoundError, FileAccessError)):
            click.echo(click.style(f"  ⚠  '{output}' is incomplete and must not be used.", fg="yellow"))
        _fail(exc)

    click.echo(click.style("  ✓ Dump complete!", fg="green", bold=True))
    click.echo(click.style(f"  → {path}", fg="bright_white"))


# ── restore ───────────────────────────────────────────────────────────────────

@cli.command()
@connection_options
@click.option(
    "--file", "-f", "source", required=True,
    type=click.Path(dir_okay=False),
    help="Path of the .sql.gz file to load.",
)
@click.option("--drop", is_flag=True, help="Drop the database before recreating it.")
@click.option("--async-mode", "-a", is_flag=True, help="Run the restore asynchronously.")
def restore(host, port, user, password, database, source, drop, async_mode) -> None:
    """Create the database if needed and load a gzip-compressed SQL file into it."""
    _banner()
    manager = _manager(host, port, user, password, database)

    click.echo(
        click.style("  [MYSQL] ", fg="cyan", bold=True)
        + click.style(f"Restoring '{source}' into '{database}' …", fg="bright_white")
    )

    try:
        if async_mode:
            asyncio.run(manager.async_ensure_database(drop))
            asyncio.run(manager.async_restore_from_compressed_file(source))
        else:
            manager.ensure_database(drop)
            manager.restore_from_compressed_file(source)
    except BackupError as exc:
        _fail(exc)

    click.echo(click.style("  ✓ Restore complete!", fg="green", bold=True))


# ── create-db ─────────────────────────────────────────────────────────────────

@cli.command("create-db")
@connection_options
@click.option("--drop", is_flag=True, help="Drop the database before recreating it.")
def create_db(host, port, user, password, database, drop) -> None:
    """Create the database if it does not exist."""
    _banner()
    manager = _manager(host, port, user, password, database)

    try:
        manager.ensure_database(drop)
    except BackupError as exc:
        _fail(exc)

    click.echo(click.style(f"  ✓ Database `{database}` is ready.", fg="green", bold=True))


# ── probe ─────────────────────────────────────────────────────────────────────

@cli.command()
@connection_options
def probe(host, port, user, password, database) -> None:
    """Check whether the installed mysqldump accepts --column-statistics=0."""
    manager = _manager(host, port, user, password, database)

    if manager.has_column_statistics():
        click.echo(click.style(f"  ✓ {COLUMN_STATISTICS_FLAG} supported", fg="green"))
    else:
        click.echo(click.style(f"  ✗ {COLUMN_STATISTICS_FLAG} not supported", fg="yellow"))


def main() -> None:
    cli()
