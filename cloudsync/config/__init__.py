"""
cloudsync.config - Configuration management module

Contains the persisted sync settings and the application settings loader.
"""

from cloudsync.config.loader import ConfigError, ConfigLoader
from cloudsync.config.sync_config import (
    CONFIG_STORAGE_KEY,
    ConfigStore,
    StorageProvider,
    SyncConfig,
    SyncConfigError,
    load_config,
)

__all__ = [
    "CONFIG_STORAGE_KEY",
    "ConfigError",
    "ConfigLoader",
    "ConfigStore",
    "StorageProvider",
    "SyncConfig",
    "SyncConfigError",
    "load_config",
]
