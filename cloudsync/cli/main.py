"""
Command-line interface for cloudsync.

Provides CLI commands for backing up browser data to a remote store,
fetching the stored backup, and managing sync settings.

Usage:
    # Show help
    cloudsync --help

    # Configure a provider
    cloudsync config set --provider GIST --gist-token ghp_...
    cloudsync config set --provider WEBDAV --webdav-url https://dav.example.com/backup

    # Check status
    cloudsync status

    # Back up and restore
    cloudsync upload
    cloudsync download --output snapshot.json
"""

import functools
import os
import sys
from pathlib import Path
from typing import Any, Optional

import click

from cloudsync import __version__
from cloudsync.browser.chrome import ChromeDataSource
from cloudsync.cli.formatters import (
    show_config,
    show_insights,
    show_logs,
    show_snapshot_summary,
)
from cloudsync.config.loader import DEFAULT_CONFIG_FILE, ConfigError, ConfigLoader
from cloudsync.config.sync_config import (
    ConfigStore,
    StorageProvider,
    SyncConfig,
    SyncConfigError,
)
from cloudsync.providers.factory import get_provider
from cloudsync.sync.engine import (
    DEFAULT_HISTORY_MAX_RESULTS,
    LogType,
    SyncOrchestrator,
    SyncState,
)
from cloudsync.sync.insights import (
    DEFAULT_LLM_MAX_TOKENS,
    DEFAULT_LLM_MODEL,
    TrendAnalyzer,
)
from cloudsync.utils import resolve_config_dir
from cloudsync.utils.logging import cleanup_old_logs, get_logger, setup_logging

# Seconds to wait for insights with --wait-insights
INSIGHT_WAIT_SECONDS = 60

VALID_PROVIDER_NAMES = tuple(provider.value for provider in StorageProvider)


def get_config_dir(config_dir: Optional[str]) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_file: Optional[str], config_dir: Path) -> Path:
    """Get the application configuration file path."""
    if config_file:
        return Path(config_file)
    return config_dir / DEFAULT_CONFIG_FILE


def build_analyzer(app_config: dict[str, Any]) -> Optional[TrendAnalyzer]:
    """
    Create the insight analyzer when insights are enabled and a key exists.

    Args:
        app_config: Loaded application settings

    Returns:
        TrendAnalyzer, or None when insights are disabled or unconfigured
    """
    if not app_config.get("insights_enabled", True):
        return None

    api_key = app_config.get("anthropic_api_key") or os.environ.get(
        "ANTHROPIC_API_KEY"
    )
    if not api_key:
        return None

    return TrendAnalyzer(
        api_key=api_key,
        model=app_config.get("llm_model", DEFAULT_LLM_MODEL),
        max_tokens=app_config.get("llm_max_tokens", DEFAULT_LLM_MAX_TOKENS),
    )


def build_orchestrator(ctx: click.Context, state: SyncState) -> SyncOrchestrator:
    """Wire an orchestrator from the CLI context."""
    app_config = ctx.obj["config"]
    return SyncOrchestrator(
        state=state,
        store=ConfigStore.in_directory(ctx.obj["config_dir"]),
        data_source=ChromeDataSource(app_config.get("chrome_profile_dir")),
        provider_factory=functools.partial(
            get_provider, timeout=app_config.get("http_timeout")
        ),
        analyzer=build_analyzer(app_config),
        history_max_results=app_config.get(
            "history_max_results", DEFAULT_HISTORY_MAX_RESULTS
        ),
    )


@click.group()
@click.version_option(version=__version__, prog_name="cloudsync")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="CLOUDSYNC_CONFIG_DIR",
    help="Configuration directory path (default: ~/.cloudsync).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="CLOUDSYNC_CONFIG_FILE",
    help="Application settings file (default: <config-dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: Optional[str],
    config_file: Optional[str],
) -> None:
    """
    Browser data backup to GitHub Gist or WebDAV.

    Uploads bookmarks, extensions and history from your Chrome profile as a
    single snapshot, and downloads the stored snapshot back on demand.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(config_file, resolved_config_dir)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # Keep going with defaults so settings can still be inspected and fixed
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    ctx.obj["config"] = config

    # CLI flag takes precedence over the config file
    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose

    log_dir = resolved_config_dir / "logs"
    if config.get("log_dir"):
        log_dir = Path(config["log_dir"])

    setup_logging(verbose=effective_verbose, log_dir=log_dir, enable_file_logging=True)

    log_retention = config.get("log_retention_count", 10)
    if log_retention > 0:
        cleanup_old_logs(log_dir=log_dir, keep_count=log_retention)


# =============================================================================
# Upload / Download Commands
# =============================================================================


@cli.command("upload")
@click.option(
    "--wait-insights",
    is_flag=True,
    help="Wait for browsing insights after a successful upload and print them.",
)
@click.pass_context
def upload_command(ctx: click.Context, wait_insights: bool) -> None:
    """
    Upload a snapshot of the enabled browser data.

    Collects bookmarks, extensions and history (as enabled in the sync
    settings) and overwrites the remote backup.

    Examples:

        cloudsync upload

        cloudsync upload --wait-insights
    """
    logger = get_logger(__name__)

    try:
        state = SyncState()
        orchestrator = build_orchestrator(ctx, state)
        orchestrator.initialize()
        success = orchestrator.perform_upload()
    except Exception as e:
        logger.exception(f"Unexpected error during upload: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    show_logs(state.logs)
    if not success:
        sys.exit(1)

    click.echo(f"Last sync: {state.last_sync_time}")

    if wait_insights:
        task = orchestrator.insight_task
        if task is None:
            click.echo(
                click.style(
                    "No insights: analysis is disabled or history is empty.",
                    fg="yellow",
                )
            )
            return

        click.echo("Analyzing browsing history...")
        task.join(timeout=INSIGHT_WAIT_SECONDS)
        if state.insights:
            show_insights(state.insights)
        else:
            click.echo(click.style("No insights available.", fg="yellow"))


@cli.command("download")
@click.option(
    "--output",
    "-o",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    help="Write the downloaded snapshot JSON to this file.",
)
@click.pass_context
def download_command(ctx: click.Context, output: Optional[str]) -> None:
    """
    Download the stored snapshot.

    The snapshot is shown (and optionally saved) but never applied to the
    browser.

    Examples:

        cloudsync download

        cloudsync download --output backup.json
    """
    logger = get_logger(__name__)

    try:
        state = SyncState()
        orchestrator = build_orchestrator(ctx, state)
        orchestrator.initialize()
        snapshot = orchestrator.perform_download()
    except Exception as e:
        logger.exception(f"Unexpected error during download: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    show_logs(state.logs)
    if snapshot is None:
        sys.exit(1)

    show_snapshot_summary(snapshot)

    if output:
        output_path = Path(output)
        try:
            output_path.write_text(snapshot.to_json(indent=2), encoding="utf-8")
        except OSError as e:
            click.echo(
                click.style(f"Error: Failed to write {output_path}: {e}", fg="red"),
                err=True,
            )
            sys.exit(1)
        click.echo(click.style(f"\nSnapshot written to {output_path}", fg="green"))


# =============================================================================
# Status Command
# =============================================================================


@cli.command("status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """
    Show sync settings and setup status.

    Example:

        cloudsync status
    """
    logger = get_logger(__name__)
    config_dir = ctx.obj["config_dir"]
    app_config = ctx.obj["config"]

    try:
        store = ConfigStore.in_directory(config_dir)

        click.echo("=== CloudSync Status ===\n")
        click.echo(f"Configuration directory: {config_dir}")

        saved_text = "Found" if store.path.exists() else click.style("Not found", fg="yellow")
        click.echo(f"Sync settings: {saved_text}")
        app_text = (
            "Found"
            if ctx.obj["config_file"].exists()
            else click.style("Not found (using defaults)", fg="yellow")
        )
        click.echo(f"Application settings: {app_text}")

        source = ChromeDataSource(app_config.get("chrome_profile_dir"))
        profile_text = (
            str(source.profile_dir)
            if source.profile_dir.is_dir()
            else click.style(f"{source.profile_dir} (not found)", fg="yellow")
        )
        click.echo(f"Browser profile: {profile_text}")
        click.echo()

        try:
            config = store.load() or SyncConfig()
        except SyncConfigError as e:
            click.echo(click.style(f"Error: {e}", fg="red"), err=True)
            sys.exit(1)

        click.echo(f"Provider: {config.provider.value}")
        enabled = [
            name
            for name, flag in (
                ("bookmarks", config.sync_bookmarks),
                ("extensions", config.sync_extensions),
                ("history", config.sync_history),
            )
            if flag
        ]
        click.echo(f"Sync scope: {', '.join(enabled) if enabled else 'nothing'}")
        if config.provider == StorageProvider.GIST:
            click.echo(f"Gist ID: {config.gist_id or '(created on first upload)'}")

        insights_text = (
            "Enabled"
            if build_analyzer(app_config)
            else click.style("Disabled", fg="yellow")
        )
        click.echo(f"Browsing insights: {insights_text}")
        click.echo()

        missing = config.missing_credential()
        if missing:
            click.echo(
                click.style(f"Setup required: {missing} is missing.", fg="yellow")
            )
            click.echo("Run 'cloudsync config set --help' to configure.")
        else:
            click.echo(click.style("Ready to sync!", fg="green"))

    except Exception as e:
        logger.exception(f"Error getting status: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


# =============================================================================
# Config Commands
# =============================================================================


@cli.group("config")
def config_group() -> None:
    """Show or change sync settings."""


@config_group.command("show")
@click.pass_context
def config_show_command(ctx: click.Context) -> None:
    """
    Show sync settings with secrets masked.

    Example:

        cloudsync config show
    """
    store = ConfigStore.in_directory(ctx.obj["config_dir"])
    try:
        config = store.load()
    except SyncConfigError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if config is None:
        click.echo(
            click.style("No sync settings saved yet; showing defaults.\n", fg="yellow")
        )
        config = SyncConfig()

    show_config(config)
    click.echo(f"\nSettings file: {store.path}")


@config_group.command("set")
@click.option(
    "--provider",
    type=click.Choice(VALID_PROVIDER_NAMES, case_sensitive=False),
    help="Storage provider to upload to.",
)
@click.option("--gist-token", help="GitHub token with gist scope.")
@click.option("--gist-id", help="Existing gist ID (created on first upload if unset).")
@click.option("--webdav-url", help="WebDAV folder URL.")
@click.option("--webdav-user", help="WebDAV username.")
@click.option("--webdav-pass", help="WebDAV password.")
@click.option(
    "--bookmarks/--no-bookmarks", default=None, help="Include bookmarks in uploads."
)
@click.option(
    "--extensions/--no-extensions",
    default=None,
    help="Include installed extensions in uploads.",
)
@click.option(
    "--history/--no-history", default=None, help="Include browsing history in uploads."
)
@click.option(
    "--auto-sync-interval",
    type=click.IntRange(min=0),
    help="Auto sync interval in minutes (stored only).",
)
@click.pass_context
def config_set_command(
    ctx: click.Context,
    provider: Optional[str],
    gist_token: Optional[str],
    gist_id: Optional[str],
    webdav_url: Optional[str],
    webdav_user: Optional[str],
    webdav_pass: Optional[str],
    bookmarks: Optional[bool],
    extensions: Optional[bool],
    history: Optional[bool],
    auto_sync_interval: Optional[int],
) -> None:
    """
    Change sync settings.

    Only the given options change. Pass an empty string to clear a value.

    Examples:

        cloudsync config set --provider GIST --gist-token ghp_xxx

        cloudsync config set --provider WEBDAV --webdav-url https://dav.example.com/b

        cloudsync config set --no-history
    """
    logger = get_logger(__name__)

    changes: dict[str, Any] = {
        "gist_token": gist_token,
        "gist_id": gist_id,
        "webdav_url": webdav_url,
        "webdav_user": webdav_user,
        "webdav_pass": webdav_pass,
        "sync_bookmarks": bookmarks,
        "sync_extensions": extensions,
        "sync_history": history,
        "auto_sync_interval": auto_sync_interval,
    }
    if provider is not None:
        changes["provider"] = provider.upper()
    changes = {key: value for key, value in changes.items() if value is not None}

    if not changes:
        click.echo(
            click.style(
                "Nothing to change. See 'cloudsync config set --help'.", fg="yellow"
            )
        )
        return

    state = SyncState()
    orchestrator = build_orchestrator(ctx, state)
    orchestrator.initialize()
    # Refuse to overwrite a settings file that could not be read
    if state.logs and state.logs[0].type == LogType.ERROR:
        show_logs(state.logs)
        sys.exit(1)

    try:
        updated = orchestrator.update_config(**changes)
    except SyncConfigError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    logger.info(f"Updated sync settings: {', '.join(sorted(changes))}")
    click.echo(click.style("Sync settings saved.", fg="green"))

    missing = updated.missing_credential()
    if missing:
        click.echo(
            click.style(
                f"Note: {missing} is still required for {updated.provider.value}.",
                fg="yellow",
            )
        )
