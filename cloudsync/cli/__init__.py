"""CLI package for cloudsync."""

from cloudsync.cli.formatters import (
    mask_secret,
    show_config,
    show_insights,
    show_logs,
    show_snapshot_summary,
)
from cloudsync.cli.main import (
    VALID_PROVIDER_NAMES,
    build_analyzer,
    build_orchestrator,
    cli,
    get_config_dir,
)
from cloudsync.utils import DEFAULT_CONFIG_DIR

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "VALID_PROVIDER_NAMES",
    "build_analyzer",
    "build_orchestrator",
    "cli",
    "get_config_dir",
    "mask_secret",
    "show_config",
    "show_insights",
    "show_logs",
    "show_snapshot_summary",
]
