"""
Main CLI entry point for CSharply
"""

import logging
import sys
from pathlib import Path

import click

from csharply import __version__
from csharply.core.backup_manager import BackupManager
from csharply.core.config import Config
from csharply.core.errors import ConfigError
from csharply.core.processor import CSharpProcessor, format_duration

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@click.group()
@click.version_option(
    version=__version__,
    prog_name="csharply",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Configuration file path",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress output",
)
@click.pass_context
def cli(
    ctx,
    config: str | None,
    verbose: bool,
    quiet: bool,
):
    """Deterministic organizer for C# source files

    Reorders usings and members, normalizes blank lines and removes
    #region markers.
    """
    ctx.ensure_object(dict)

    # Load configuration
    if config:
        config_path = Path(config)
        ctx.obj["config"] = Config.from_file(config_path)
        ctx.obj["config"].config_file = str(config_path)
    else:
        ctx.obj["config"] = Config.load_hierarchy(Path.cwd())

    # Apply CLI flags
    if verbose:
        ctx.obj["config"].verbose = True
        logging.getLogger().setLevel(logging.DEBUG)

    if quiet:
        ctx.obj["config"].quiet = True
        logging.getLogger().setLevel(logging.WARNING)

    errors = ctx.obj["config"].validate()
    if errors:
        raise ConfigError("; ".join(errors))


@cli.command()
@click.argument(
    "path",
    type=click.Path(exists=True),
)
@click.option(
    "--simulate",
    "-s",
    is_flag=True,
    help="Display organized content without saving files",
)
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    help="Number of files organized in parallel",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Stop at the first file that fails",
)
@click.option(
    "--no-backup",
    is_flag=True,
    help="Skip creating backup files",
)
@click.pass_context
def organize(
    ctx,
    path: str,
    simulate: bool,
    workers: int | None,
    strict: bool,
    no_backup: bool,
):
    """Organize a .cs file or every .cs file below a directory

    Examples:
        csharply organize ./src
        csharply organize ./src/Program.cs --simulate
        csharply -v organize . --workers 8
    """
    config = ctx.obj["config"]
    config.dry_run = config.dry_run or simulate
    config.strict = config.strict or strict
    config.backup.enabled = config.backup.enabled and not no_backup
    if workers:
        config.batch.max_workers = workers

    backup_manager = None
    if config.backup.enabled and not config.dry_run:
        backup_manager = BackupManager(
            backup_dir=config.backup.directory,
            compression=config.backup.compression,
            keep_sessions=config.backup.keep_sessions,
        )
        backup_manager.start_session("organize")

    processor = CSharpProcessor(config, backup_manager=backup_manager)
    try:
        summary = processor.organize_path(Path(path))
    finally:
        if backup_manager and backup_manager.current_session:
            if backup_manager.current_session.files_backed_up:
                backup_manager.finalize_session()
            else:
                backup_manager.discard_session()

    if config.dry_run:
        for result in summary.results:
            if result.content is not None:
                click.echo("====================")
                click.echo(f"{result.file_path}:")
                click.echo(result.content)

    line = f"Organized {len(summary.organized):,} files in {format_duration(summary.duration)}."
    if summary.ignored:
        line += f" {len(summary.ignored):,} files ignored"
    if summary.failed:
        line += f" {len(summary.failed):,} files failed."
    click.echo(line)

    if config.verbose:
        for result in summary.results:
            click.echo(str(result))

    sys.exit(1 if summary.failed else 0)


@cli.command()
@click.option(
    "--host",
    help="Interface to bind",
)
@click.option(
    "--port",
    "-p",
    type=click.IntRange(1, 65535),
    help="Port to listen on",
)
@click.pass_context
def serve(
    ctx,
    host: str | None,
    port: int | None,
):
    """Run the HTTP endpoint used by editor integrations

    Examples:
        csharply serve
        csharply serve --port 9000
    """
    from csharply.server import run

    run(ctx.obj["config"], host=host, port=port)


@cli.command()
@click.pass_context
def init(ctx):
    """Initialize configuration in current directory

    Creates a default .csharply.yaml configuration file in the current
    directory.
    """
    config_path = Path.cwd() / ".csharply.yaml"

    if config_path.exists():
        click.confirm(f"{config_path} already exists. Overwrite?", abort=True)

    default_config = Config()
    default_config.save(config_path)

    click.echo(f"Created configuration file: {config_path}")
    click.echo("Edit this file to customize your settings.")


@cli.command()
@click.option(
    "--sessions",
    is_flag=True,
    help="List backup sessions",
)
@click.option(
    "--restore",
    help="Restore from backup session ID",
)
@click.option(
    "--clean",
    is_flag=True,
    help="Clean old backup sessions",
)
@click.pass_context
def backup(
    ctx,
    sessions: bool,
    restore: str | None,
    clean: bool,
):
    """Manage backup sessions

    View, restore, or clean the backups taken before files are rewritten.
    """
    config = ctx.obj["config"]

    manager = BackupManager(
        backup_dir=config.backup.directory,
        compression=config.backup.compression,
        keep_sessions=config.backup.keep_sessions,
    )

    if sessions:
        all_sessions = manager.list_sessions()
        if not all_sessions:
            click.echo("No backup sessions found.")
        else:
            click.echo(f"Found {len(all_sessions)} backup sessions:")
            for session in all_sessions:
                click.echo(f"  - {session['session_id']} ({session['timestamp']})")
                if "files_backed_up" in session:
                    click.echo(f"    Files: {len(session['files_backed_up'])}")

    elif restore:
        click.confirm(f"Restore all files from session {restore}?", abort=True)
        if manager.restore_session(restore):
            click.echo(f"Successfully restored session: {restore}")
        else:
            click.echo(f"Failed to restore session: {restore}", err=True)
            sys.exit(1)

    elif clean:
        click.confirm(
            f"Remove backup sessions older than {config.backup.keep_sessions} most recent?",
            abort=True,
        )
        removed = manager.cleanup_old_sessions()
        click.echo(f"Removed {removed} old backup sessions.")

    else:
        click.echo("Use --sessions, --restore, or --clean")


def main():
    """Main entry point"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user.", err=True)
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if "--verbose" in sys.argv or "-v" in sys.argv:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
