"""
Sync configuration: storage provider selection, credentials and sync scope.

Provides the immutable SyncConfig value and the ConfigStore that persists it.
Every change produces a new SyncConfig which is written back immediately.

Configuration file format (cloudsync_config.json):

    {
        "provider": "GIST",
        "gist_token": "ghp_...",
        "gist_id": "aa5a315d61ae9438b18d",
        "webdav_url": null,
        "webdav_user": null,
        "webdav_pass": null,
        "sync_bookmarks": true,
        "sync_extensions": true,
        "sync_history": true,
        "auto_sync_interval": 60
    }

Notes:
    - Only the credential group matching "provider" is required; the
      other group may stay populated and is ignored
    - Missing keys fall back to defaults, unknown keys are ignored
    - auto_sync_interval is persisted but nothing schedules on it
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from cloudsync.utils import resolve_config_dir

logger = logging.getLogger(__name__)


class StorageProvider(str, Enum):
    """Remote storage backends a snapshot can be written to."""

    GIST = "GIST"
    WEBDAV = "WEBDAV"


# Valid provider values for validation
VALID_PROVIDERS = {provider.value for provider in StorageProvider}

# Storage key; also the stem of the config file name
CONFIG_STORAGE_KEY = "cloudsync_config"

# Default sync config file name
DEFAULT_SYNC_CONFIG_FILE = f"{CONFIG_STORAGE_KEY}.json"

# Default auto sync interval in minutes
DEFAULT_AUTO_SYNC_INTERVAL = 60

_OPTIONAL_STRING_FIELDS = (
    "gist_token",
    "gist_id",
    "webdav_url",
    "webdav_user",
    "webdav_pass",
)

_BOOL_FIELDS = ("sync_bookmarks", "sync_extensions", "sync_history")


class SyncConfigError(Exception):
    """Raised when sync configuration loading, validation or saving fails."""

    pass


@dataclass(frozen=True)
class SyncConfig:
    """
    User sync settings: which backend to use, its credentials and sync scope.

    Instances are immutable. Use with_changes() to derive an updated config.

    Attributes:
        provider: Storage backend to upload to / download from
        gist_token: GitHub token with gist scope (GIST provider)
        gist_id: Identifier of the gist holding the snapshot (GIST provider)
        webdav_url: Base URL of the WebDAV folder (WEBDAV provider)
        webdav_user: WebDAV username
        webdav_pass: WebDAV password
        sync_bookmarks: Include bookmarks in uploaded snapshots
        sync_extensions: Include installed extensions in uploaded snapshots
        sync_history: Include browsing history in uploaded snapshots
        auto_sync_interval: Interval in minutes (persisted, not scheduled)

    Usage:
        config = SyncConfig()  # GIST, all collections enabled
        config = config.with_changes(gist_token="ghp_...")

        problem = config.missing_credential()
        if problem:
            print(f"{problem} is missing")
    """

    provider: StorageProvider = StorageProvider.GIST
    gist_token: str | None = None
    gist_id: str | None = None
    webdav_url: str | None = None
    webdav_user: str | None = None
    webdav_pass: str | None = None
    sync_bookmarks: bool = True
    sync_extensions: bool = True
    sync_history: bool = True
    auto_sync_interval: int = DEFAULT_AUTO_SYNC_INTERVAL

    def with_changes(self, **changes: Any) -> SyncConfig:
        """
        Return a copy of this config with the given fields replaced.

        Raises:
            SyncConfigError: If a field name is unknown or a value is invalid
        """
        known = {f.name for f in dataclasses.fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise SyncConfigError(
                f"Unknown sync config field(s): {', '.join(sorted(unknown))}"
            )

        data = self.to_dict()
        for key, value in changes.items():
            if key == "provider" and isinstance(value, StorageProvider):
                value = value.value
            data[key] = value
        return SyncConfig.from_dict(data)

    def missing_credential(self) -> str | None:
        """
        Describe the credential the active provider needs but lacks.

        Returns:
            Human-readable name of the missing field, or None when the
            active provider has what it needs to upload
        """
        if self.provider == StorageProvider.GIST and not self.gist_token:
            return "Gist Token"
        if self.provider == StorageProvider.WEBDAV and not self.webdav_url:
            return "WebDAV URL"
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncConfig:
        """
        Create SyncConfig from a dictionary.

        Keys missing from data keep their defaults.

        Args:
            data: Dictionary containing sync configuration

        Returns:
            SyncConfig instance

        Raises:
            SyncConfigError: If configuration structure is invalid
        """
        if not isinstance(data, dict):
            raise SyncConfigError(
                f"Configuration must be a dictionary, got {type(data).__name__}"
            )

        provider = data.get("provider", StorageProvider.GIST.value)
        if not isinstance(provider, str) or provider not in VALID_PROVIDERS:
            raise SyncConfigError(
                f"provider must be one of {sorted(VALID_PROVIDERS)}, got {provider!r}"
            )

        values: dict[str, Any] = {"provider": StorageProvider(provider)}

        for key in _OPTIONAL_STRING_FIELDS:
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise SyncConfigError(
                    f"{key} must be a string, got {type(value).__name__}"
                )
            # Empty strings from cleared form fields mean "not set"
            values[key] = value or None

        for key in _BOOL_FIELDS:
            value = data.get(key, True)
            if not isinstance(value, bool):
                raise SyncConfigError(
                    f"{key} must be a boolean, got {type(value).__name__}"
                )
            values[key] = value

        interval = data.get("auto_sync_interval", DEFAULT_AUTO_SYNC_INTERVAL)
        if isinstance(interval, bool) or not isinstance(interval, int):
            raise SyncConfigError(
                f"auto_sync_interval must be an integer, "
                f"got {type(interval).__name__}"
            )
        if interval < 0:
            raise SyncConfigError(f"auto_sync_interval must be >= 0, got {interval}")
        values["auto_sync_interval"] = interval

        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary format.

        Returns:
            Dictionary representation of the sync config
        """
        return {
            "provider": self.provider.value,
            "gist_token": self.gist_token,
            "gist_id": self.gist_id,
            "webdav_url": self.webdav_url,
            "webdav_user": self.webdav_user,
            "webdav_pass": self.webdav_pass,
            "sync_bookmarks": self.sync_bookmarks,
            "sync_extensions": self.sync_extensions,
            "sync_history": self.sync_history,
            "auto_sync_interval": self.auto_sync_interval,
        }

    def __repr__(self) -> str:
        """Return a readable string representation without secrets."""
        return (
            f"SyncConfig(provider={self.provider.value!r}, "
            f"gist_id={self.gist_id!r}, "
            f"webdav_url={self.webdav_url!r}, "
            f"bookmarks={self.sync_bookmarks}, "
            f"extensions={self.sync_extensions}, "
            f"history={self.sync_history})"
        )


class ConfigStore:
    """
    File-backed persistence for the active SyncConfig.

    Attributes:
        path: Location of the JSON file holding the config

    Usage:
        store = ConfigStore(Path("~/.cloudsync/cloudsync_config.json"))
        config = store.load() or SyncConfig()
        store.save(config.with_changes(sync_history=False))
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    @classmethod
    def in_directory(cls, config_dir: Path | str | None = None) -> ConfigStore:
        """Create a store for the config file inside a config directory."""
        return cls(resolve_config_dir(config_dir) / DEFAULT_SYNC_CONFIG_FILE)

    def load(self) -> SyncConfig | None:
        """
        Load the stored config.

        Returns:
            The stored SyncConfig, or None if nothing has been saved yet

        Raises:
            SyncConfigError: If the file exists but cannot be read or parsed
        """
        if not self.path.exists():
            logger.debug(f"Sync config file not found: {self.path}")
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise SyncConfigError(
                f"Failed to parse sync config JSON at {self.path}: {e}"
            ) from e
        except OSError as e:
            raise SyncConfigError(f"Failed to read sync config file: {e}") from e

        logger.debug(f"Loaded sync config from {self.path}")
        return SyncConfig.from_dict(data)

    def save(self, config: SyncConfig) -> None:
        """
        Write the config, replacing whatever was stored.

        Creates parent directories if needed and restricts the file to the
        owner since it holds credentials.

        Raises:
            SyncConfigError: If file cannot be written
        """
        try:
            self.path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)

            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2)
                f.write("\n")

            self.path.chmod(0o600)

            logger.debug(f"Saved sync config to {self.path}")

        except OSError as e:
            raise SyncConfigError(f"Failed to write sync config file: {e}") from e


def load_config(config_dir: Path | str | None = None) -> SyncConfig:
    """
    Load sync configuration from a config directory.

    Resolution order for config directory:
    1. Explicit config_dir parameter (if provided)
    2. CLOUDSYNC_CONFIG_DIR environment variable (if set)
    3. Default: ~/.cloudsync

    Returns:
        The stored SyncConfig, or a default SyncConfig if none was saved

    Raises:
        SyncConfigError: If config file exists but is invalid
    """
    return ConfigStore.in_directory(config_dir).load() or SyncConfig()
