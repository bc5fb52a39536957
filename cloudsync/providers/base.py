"""
Base class and error types for cloud storage providers.

Defines the interface that every storage backend implements so the sync
orchestrator can swap backends without changing call sites.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import requests

from cloudsync.config.sync_config import SyncConfig
from cloudsync.sync.snapshot import Snapshot

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Base exception for storage provider failures."""

    pass


class ProviderValidationError(ProviderError):
    """Raised when a required credential or endpoint is missing.

    Always raised before any network request is attempted.
    """

    pass


class ProviderTransportError(ProviderError):
    """Raised when a request fails or the server answers with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderDecodeError(ProviderError):
    """Raised when the remote payload is missing or cannot be parsed."""

    pass


class UnsupportedProviderError(ProviderError):
    """Raised when no backend is implemented for a provider value."""

    pass


class CloudProvider(ABC):
    """
    Abstract base class for storage backends.

    Providers are stateless: all settings come from the SyncConfig passed
    to each call, and every call makes a single attempt with no retry.

    Attributes:
        session: HTTP session used for requests
        timeout: Request timeout in seconds, or None for no timeout
    """

    #: Human-readable backend name used in log messages
    name: str = "provider"

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    @abstractmethod
    def upload(self, config: SyncConfig, snapshot: Snapshot) -> str | None:
        """
        Write a snapshot to remote storage.

        Args:
            config: Active sync configuration
            snapshot: Snapshot to store

        Returns:
            Backend-assigned location identifier, or None when the location
            is derived from the config

        Raises:
            ProviderError: On validation, transport or decode failure
        """

    @abstractmethod
    def download(self, config: SyncConfig) -> Snapshot:
        """
        Read the stored snapshot from remote storage.

        Raises:
            ProviderError: On validation, transport or decode failure
        """

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Send one request, converting connection failures to transport errors.

        Raises:
            ProviderTransportError: If the request could not be completed
        """
        logger.debug(f"{self.name}: {method} {url}")
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ProviderTransportError(f"Request failed: {e}") from e

    def _read_text(self, response: requests.Response) -> str:
        """
        Decode a response body as UTF-8.

        Snapshots are always stored as UTF-8, so any charset the server
        reports (or the ISO-8859-1 fallback requests applies to text/plain
        without one) is ignored.

        Raises:
            ProviderDecodeError: If the body is not valid UTF-8
        """
        try:
            return response.content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ProviderDecodeError(
                f"{self.name} response is not valid UTF-8: {e}"
            ) from e
