"""CLI output formatting functions.

This module contains functions for displaying the operation log, sync
settings, downloaded snapshots and browsing insights on the command line.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Optional

import click

from cloudsync.sync.engine import LogType, SyncLogEntry

if TYPE_CHECKING:
    from cloudsync.config.sync_config import SyncConfig
    from cloudsync.sync.insights import BrowsingInsights
    from cloudsync.sync.snapshot import Snapshot

LOG_COLORS = {
    LogType.INFO: None,
    LogType.ERROR: "red",
    LogType.SUCCESS: "green",
}

NOT_SET = "(not set)"


def mask_secret(value: Optional[str]) -> str:
    """Mask a secret, keeping the last four characters of long values."""
    if not value:
        return NOT_SET
    if len(value) <= 8:
        return "****"
    return f"****{value[-4:]}"


def format_log_entry(entry: SyncLogEntry) -> str:
    """Render one operation log entry as a styled line."""
    line = f"[{entry.timestamp}] {entry.message}"
    color = LOG_COLORS.get(entry.type)
    return click.style(line, fg=color) if color else line


def show_logs(entries: Iterable[SyncLogEntry]) -> None:
    """
    Print operation log entries oldest first.

    Args:
        entries: Log entries as kept in SyncState.logs (newest first)
    """
    for entry in reversed(list(entries)):
        click.echo(format_log_entry(entry), err=entry.type == LogType.ERROR)


def _on_off(enabled: bool) -> str:
    return click.style("on", fg="green") if enabled else click.style("off", fg="yellow")


def show_config(config: "SyncConfig") -> None:
    """Display sync settings with secrets masked."""
    click.echo("=== Sync Settings ===\n")
    click.echo(f"Provider: {config.provider.value}")
    click.echo()

    click.echo("Gist:")
    click.echo(f"  Token: {mask_secret(config.gist_token)}")
    click.echo(f"  Gist ID: {config.gist_id or NOT_SET}")
    click.echo()

    click.echo("WebDAV:")
    click.echo(f"  URL: {config.webdav_url or NOT_SET}")
    click.echo(f"  User: {config.webdav_user or NOT_SET}")
    click.echo(f"  Password: {mask_secret(config.webdav_pass)}")
    click.echo()

    click.echo("Sync scope:")
    click.echo(f"  Bookmarks: {_on_off(config.sync_bookmarks)}")
    click.echo(f"  Extensions: {_on_off(config.sync_extensions)}")
    click.echo(f"  History: {_on_off(config.sync_history)}")
    click.echo(f"Auto sync interval: {config.auto_sync_interval} min")


def show_snapshot_summary(snapshot: "Snapshot") -> None:
    """Display the metadata and collection sizes of a downloaded snapshot."""
    click.echo("\n=== Snapshot ===")
    click.echo(f"Last updated: {snapshot.display_time()}")
    click.echo(f"Version: {snapshot.version or 'unknown'}")
    for key, count in snapshot.counts().items():
        click.echo(f"  {key.capitalize()}: {count}")


def show_insights(insights: "BrowsingInsights") -> None:
    """Display advisory browsing insights."""
    click.echo(click.style("\n=== Browsing Insights ===", fg="cyan"))
    click.echo(insights.summary)
    if insights.recommendations:
        click.echo("\nRecommended topics:")
        for topic in insights.recommendations:
            click.echo(f"  - {topic}")
