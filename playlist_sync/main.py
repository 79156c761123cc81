"""
Main CLI interface for Playlist-Sync

Command-line entry point built with Click:
- sync: download new tracks of the configured playlist
- status: show how many tracks are still pending
- logout: forget the stored session cookie
- config show / config init: inspect or write the configuration file
"""

import sys
import click
import functools

from . import __version__
from .config.settings import get_settings, reload_settings
from .config.auth import get_session_manager, reset_session_manager
from .sync.synchronizer import get_synchronizer
from .utils.helpers import format_duration
from .utils.logger import configure_from_settings, get_logger, get_current_log_file


logger = get_logger(__name__)


def print_banner():
    """Print application banner to console"""
    banner = """
╔═══════════════════════════════════════════════════════════════╗
║                         Playlist-Sync                         ║
║                                                               ║
║   Mirror a NetEase Cloud Music playlist with tags + lyrics    ║
║                                                               ║
╚═══════════════════════════════════════════════════════════════╝
    """
    click.echo(click.style(banner, fg='green', bold=True))


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    Ctrl-C exits with 130, any other uncaught error is logged, shown in red
    and exits with 1.

    Args:
        func: The CLI command function to wrap

    Returns:
        Wrapped function with error handling
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)  # Standard exit code for SIGINT
        except Exception as e:
            logger.debug(f"Command failed: {e}", exc_info=e)
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


# Main CLI group - root command that all subcommands attach to
@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    Playlist-Sync - keep a local copy of a NetEase Cloud Music playlist

    New tracks are downloaded, tagged with title/album/artist/year and cover
    art, and get a merged bilingual .lrc file next to them.
    """
    ctx.ensure_object(dict)

    if version:
        click.echo(f"Playlist-Sync v{__version__}")
        return

    if config:
        reload_settings(config)
        reset_session_manager()

    settings = get_settings()
    if verbose:
        settings.logging.level = "DEBUG"
        ctx.obj['verbose'] = True

    configure_from_settings()

    if config:
        logger.debug(f"Loaded config: {config}")

    if ctx.invoked_subcommand is None:
        print_banner()
        click.echo(ctx.get_help())


@cli.command()
@click.option('--limit', '-l', type=int, help='Maximum tracks to sync this run (0 = no limit)')
@click.option('--no-lyrics', is_flag=True, help='Skip lyrics sidecar files')
@click.option('--dry-run', is_flag=True, help='Show pending tracks without downloading')
@handle_error
def sync(limit, no_lyrics, dry_run):
    """
    Download new tracks of the configured playlist

    Tracks already recorded in the ledger are left alone. Tracks that fail
    repeatedly are dropped for this run and retried on the next one.
    """
    settings = get_settings()

    if limit is not None:
        if limit < 0:
            click.echo(click.style("Limit cannot be negative", fg='red'), err=True)
            sys.exit(1)
        settings.download.limit = limit
    if no_lyrics:
        settings.lyrics.enabled = False

    if not settings.validate():
        sys.exit(1)

    if dry_run:
        click.echo("Dry run mode - showing what would be downloaded...")

    synchronizer = get_synchronizer(settings)
    result = synchronizer.run(dry_run=dry_run)

    if not result.has_changes:
        logger.console_info("Playlist is already up to date!")
        return

    if dry_run:
        click.echo(f"\n{len(result.pending_ids)} tracks pending:")
        for i, track_id in enumerate(result.pending_ids, 1):
            click.echo(f"   {i}. {track_id}")
        return

    queue = result.queue
    click.echo(f"\n{result.summary}")
    click.echo(f"   Downloaded: {len(queue.downloaded)}")
    if queue.skipped:
        click.echo(f"   Skipped (unavailable): {len(queue.skipped)}")
    if queue.dropped:
        click.echo(click.style(f"   Gave up on: {', '.join(str(i) for i in queue.dropped)}", fg='yellow'))
    if result.total_time:
        click.echo(f"   Total time: {format_duration(result.total_time)}")

    click.echo(f"\nFiles saved to: {settings.get_output_directory()}")

    log_file = get_current_log_file()
    if log_file:
        click.echo(f"Log file: {log_file}")


@cli.command()
@handle_error
def status():
    """Show how many playlist tracks are synced and pending"""
    synchronizer = get_synchronizer()
    info = synchronizer.check_status()

    click.echo(f"Playlist: {info['playlist_id']}")
    click.echo(f"   Remote tracks: {info['remote']}")
    click.echo(f"   Synced: {info['synced']}")
    click.echo(f"   Pending: {info['pending']}")


@cli.command()
@handle_error
def logout():
    """
    Remove the stored session cookie

    The next run logs in again with the configured phone number and
    password hash.
    """
    get_session_manager().clear()
    reset_session_manager()
    click.echo("Successfully logged out")


@cli.group()
def config():
    """Configuration management"""
    pass


@config.command()
@handle_error
def show():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:\n")

    click.echo("API:")
    click.echo(f"   Endpoint: {settings.api.endpoint}")
    click.echo(f"   Request timeout: {settings.api.request_timeout}s")

    click.echo("\nAccount:")
    click.echo(f"   Phone: {'set' if settings.account.phone else 'not set'}")
    click.echo(f"   Playlist: {settings.account.playlist_id or 'not set'}")

    click.echo("\nDownload:")
    click.echo(f"   Output directory: {settings.get_output_directory()}")
    click.echo(f"   Limit per run: {settings.download.limit}")
    click.echo(f"   Pause between tracks: {settings.download.sleep_time_ms}ms")
    click.echo(f"   Retry limit: {settings.download.retry_limit} per {settings.download.retry_scope}")
    click.echo(f"   Bitrate: {settings.download.bitrate}")

    click.echo("\nLyrics:")
    click.echo(f"   Enabled: {settings.lyrics.enabled}")
    click.echo(f"   Include translation: {settings.lyrics.include_translation}")

    click.echo("\nStorage:")
    click.echo(f"   Cookie file: {settings.get_cookie_path()}")
    click.echo(f"   Ledger file: {settings.get_ledger_path()}")


@config.command()
@click.option('--path', type=click.Path(), help='Where to write the file (default ~/.playlist-sync/config.yaml)')
@handle_error
def init(path):
    """Write the current configuration (without credentials) to a YAML file"""
    settings = get_settings()
    settings.save_config(path)
    click.echo(f"Configuration written to {path or settings.config_dir / 'config.yaml'}")


if __name__ == '__main__':
    cli()
