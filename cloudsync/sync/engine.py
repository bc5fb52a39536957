"""
Sync orchestrator for browser data backup and restore.

Gathers the enabled data collections from the browser, bundles them into a
Snapshot and hands it to the configured storage provider, or fetches the
stored Snapshot back. All outcomes are reported through the caller-owned
SyncState (log ring buffer, busy flag, last-sync time); errors never
propagate to the caller.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Protocol

from cloudsync.config.sync_config import (
    ConfigStore,
    StorageProvider,
    SyncConfig,
    SyncConfigError,
)
from cloudsync.providers.base import CloudProvider
from cloudsync.providers.factory import get_provider
from cloudsync.sync.snapshot import Snapshot

if TYPE_CHECKING:
    from cloudsync.sync.insights import BrowsingInsights, TrendAnalyzer

logger = logging.getLogger(__name__)

# Capacity of the operation log ring buffer
MAX_LOG_ENTRIES = 50

DEFAULT_HISTORY_MAX_RESULTS = 1000


class LogType(str, Enum):
    """Severity tag of an operation log entry."""

    INFO = "info"
    ERROR = "error"
    SUCCESS = "success"


@dataclass(frozen=True)
class SyncLogEntry:
    """One line of the user-visible operation log."""

    timestamp: str
    type: LogType
    message: str


class BrowserDataSource(Protocol):
    """Accessors for the browser data collections included in a snapshot."""

    def get_bookmarks(self) -> list[Any]: ...

    def get_extensions(self) -> list[Any]: ...

    def get_history(self, max_results: int = ...) -> list[Any]: ...


@dataclass
class SyncState:
    """
    State observed by the user interface.

    Owned by the caller and mutated only by SyncOrchestrator.

    Attributes:
        config: Active sync configuration
        logs: Operation log, newest first, capped at MAX_LOG_ENTRIES
        is_syncing: Busy flag; True while an upload or download runs
        last_sync_time: Local time of the last successful upload
        insights: Latest advisory browsing insights, if any
    """

    config: SyncConfig = field(default_factory=SyncConfig)
    logs: deque[SyncLogEntry] = field(
        default_factory=lambda: deque(maxlen=MAX_LOG_ENTRIES)
    )
    is_syncing: bool = False
    last_sync_time: Optional[str] = None
    insights: Optional[BrowsingInsights] = None


class SyncOrchestrator:
    """
    Runs full uploads and downloads against the configured provider.

    Only one operation runs at a time: a request made while another is in
    flight is ignored, not queued. The busy flag is advisory and assumes a
    single caller.

    Usage:
        state = SyncState()
        orchestrator = SyncOrchestrator(state, ConfigStore.in_directory(),
                                        ChromeDataSource())
        orchestrator.initialize()

        if orchestrator.perform_upload():
            print(f"Last sync: {state.last_sync_time}")

        snapshot = orchestrator.perform_download()
    """

    def __init__(
        self,
        state: SyncState,
        store: ConfigStore,
        data_source: BrowserDataSource,
        provider_factory: Callable[[StorageProvider], CloudProvider] = get_provider,
        analyzer: Optional[TrendAnalyzer] = None,
        on_insights: Optional[Callable[[BrowsingInsights], None]] = None,
        history_max_results: int = DEFAULT_HISTORY_MAX_RESULTS,
    ):
        """
        Initialize the orchestrator.

        Args:
            state: UI state to report into
            store: Persistence for the sync config
            data_source: Browser data accessors
            provider_factory: Builds a provider for a StorageProvider value
            analyzer: Optional history analyzer for advisory insights
            on_insights: Called from the analysis thread with new insights
            history_max_results: Maximum history entries per snapshot
        """
        self.state = state
        self.store = store
        self.data_source = data_source
        self.provider_factory = provider_factory
        self.analyzer = analyzer
        self.on_insights = on_insights
        self.history_max_results = history_max_results
        # Most recently started insight thread, for callers that want to wait
        self.insight_task: Optional[threading.Thread] = None

    # =========================================================================
    # State helpers
    # =========================================================================

    def add_log(self, message: str, log_type: LogType = LogType.INFO) -> SyncLogEntry:
        """Prepend an entry to the operation log and mirror it to the logger."""
        entry = SyncLogEntry(
            timestamp=datetime.now().strftime("%H:%M:%S"),
            type=log_type,
            message=message,
        )
        self.state.logs.appendleft(entry)

        if log_type == LogType.ERROR:
            logger.error(message)
        else:
            logger.info(message)
        return entry

    def initialize(self) -> SyncConfig:
        """
        Load the saved config into the state.

        Keeps the defaults and logs a welcome hint when nothing was saved.

        Returns:
            The active config after loading
        """
        try:
            saved = self.store.load()
        except SyncConfigError as e:
            self.add_log(f"Could not load saved settings: {e}", LogType.ERROR)
            return self.state.config

        if saved is None:
            self.add_log("Welcome! Please configure your sync settings first.")
        else:
            self.state.config = saved
        return self.state.config

    def update_config(self, **changes: Any) -> SyncConfig:
        """
        Replace the active config with an updated copy and persist it.

        Raises:
            SyncConfigError: If a change is invalid or the store write fails
        """
        updated = self.state.config.with_changes(**changes)
        self.store.save(updated)
        self.state.config = updated
        return updated

    # =========================================================================
    # Operations
    # =========================================================================

    def perform_upload(self) -> bool:
        """
        Upload a fresh snapshot of the enabled collections.

        Returns:
            True if the upload succeeded, False if it failed, was rejected
            by the credential pre-check, or another operation was running
        """
        if self.state.is_syncing:
            logger.debug("Upload requested while an operation is running; ignored")
            return False

        config = self.state.config
        missing = config.missing_credential()
        if missing:
            self.add_log(
                f"Error: {missing} is missing. Set it with 'cloudsync config set'.",
                LogType.ERROR,
            )
            return False

        self.state.is_syncing = True
        self.add_log("Initiating manual upload...")

        history: list[Any] = []
        try:
            bookmarks = self.data_source.get_bookmarks() if config.sync_bookmarks else []
            extensions = (
                self.data_source.get_extensions() if config.sync_extensions else []
            )
            if config.sync_history:
                history = self.data_source.get_history(self.history_max_results)

            snapshot = Snapshot.create(
                bookmarks=bookmarks, extensions=extensions, history=history
            )
            logger.debug(f"Built snapshot: {snapshot.counts()}")

            provider = self.provider_factory(config.provider)
            result = provider.upload(config, snapshot)

            if (
                config.provider == StorageProvider.GIST
                and result
                and result != config.gist_id
            ):
                self.update_config(gist_id=result)
                logger.info(f"Saved new gist ID {result}")

            self.state.last_sync_time = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.add_log("Upload successful!", LogType.SUCCESS)

        except Exception as e:
            self.add_log(f"Upload failed: {e}", LogType.ERROR)
            return False

        finally:
            self.state.is_syncing = False

        if history:
            self._start_insights(history)
        return True

    def perform_download(self) -> Optional[Snapshot]:
        """
        Fetch the stored snapshot without applying it.

        Returns:
            The downloaded Snapshot, or None if the download failed or
            another operation was running
        """
        if self.state.is_syncing:
            logger.debug("Download requested while an operation is running; ignored")
            return None

        self.state.is_syncing = True
        self.add_log("Initiating manual download...")

        try:
            config = self.state.config
            provider = self.provider_factory(config.provider)
            snapshot = provider.download(config)

            self.add_log(
                f"Download successful! Last Update: {snapshot.display_time()} "
                f"(version {snapshot.version or 'unknown'})",
                LogType.SUCCESS,
            )
            self.add_log("Ready to restore. (Auto-restore skipped for safety).")
            return snapshot

        except Exception as e:
            self.add_log(f"Download failed: {e}", LogType.ERROR)
            return None

        finally:
            self.state.is_syncing = False

    # =========================================================================
    # Advisory insights
    # =========================================================================

    def _start_insights(self, history: list[Any]) -> None:
        """Analyze history on a detached thread; the sync does not wait."""
        if self.analyzer is None:
            return

        thread = threading.Thread(
            target=self._run_insights,
            args=(list(history),),
            name="cloudsync-insights",
            daemon=True,
        )
        self.insight_task = thread
        thread.start()

    def _run_insights(self, history: list[Any]) -> None:
        try:
            insights = self.analyzer.analyze(history) if self.analyzer else None
            if insights is None:
                return
            self.state.insights = insights
            if self.on_insights:
                self.on_insights(insights)
        except Exception as e:
            logger.warning(f"Browsing insight analysis failed: {e}")
