"""
WebDAV storage backend.

Writes the snapshot as one JSON file at a fixed name under the configured
WebDAV folder. Uploads replace the whole file (PUT); downloads read it back
(GET). Every request carries HTTP Basic credentials from the config.
"""

from __future__ import annotations

import base64
import logging

import requests

from cloudsync.config.sync_config import SyncConfig
from cloudsync.providers.base import (
    CloudProvider,
    ProviderDecodeError,
    ProviderTransportError,
    ProviderValidationError,
)
from cloudsync.sync.snapshot import Snapshot, SnapshotDecodeError

logger = logging.getLogger(__name__)

# Name of the backup file inside the WebDAV folder
WEBDAV_FILE_NAME = "cloudsync_pro_backup.json"


def build_file_url(base_url: str) -> str:
    """Join the WebDAV folder URL and the backup file name."""
    if base_url.endswith("/"):
        return f"{base_url}{WEBDAV_FILE_NAME}"
    return f"{base_url}/{WEBDAV_FILE_NAME}"


def basic_auth_header(user: str | None, password: str | None) -> str:
    """Build a Basic Authorization header value from user and password."""
    credentials = f"{user or ''}:{password or ''}".encode()
    return f"Basic {base64.b64encode(credentials).decode('ascii')}"


class WebDAVProvider(CloudProvider):
    """Snapshot storage as a single file on a WebDAV server."""

    name = "webdav"

    def _require_url(self, config: SyncConfig) -> str:
        if not config.webdav_url:
            raise ProviderValidationError("WebDAV URL is required")
        return build_file_url(config.webdav_url)

    def _headers(self, config: SyncConfig) -> dict[str, str]:
        return {"Authorization": basic_auth_header(config.webdav_user, config.webdav_pass)}

    @staticmethod
    def _status_text(response: requests.Response) -> str:
        return response.reason or str(response.status_code)

    def upload(self, config: SyncConfig, snapshot: Snapshot) -> None:
        """
        Overwrite the backup file with the snapshot.

        Raises:
            ProviderValidationError: If no WebDAV URL is configured
            ProviderTransportError: If the server rejects the write
        """
        url = self._require_url(config)
        headers = self._headers(config)
        headers["Content-Type"] = "application/json"

        response = self._send(
            "PUT", url, headers=headers, data=snapshot.to_json().encode("utf-8")
        )

        if not response.ok:
            raise ProviderTransportError(
                f"WebDAV Upload Failed: {self._status_text(response)}",
                response.status_code,
            )

        logger.debug(f"Uploaded snapshot to {url}")
        return None

    def download(self, config: SyncConfig) -> Snapshot:
        """
        Read and parse the backup file.

        Raises:
            ProviderValidationError: If no WebDAV URL is configured
            ProviderTransportError: If the server rejects the read
            ProviderDecodeError: If the file is not a valid snapshot
        """
        url = self._require_url(config)

        response = self._send("GET", url, headers=self._headers(config))

        if not response.ok:
            raise ProviderTransportError(
                f"WebDAV Download Failed: {self._status_text(response)}",
                response.status_code,
            )

        try:
            return Snapshot.from_json(self._read_text(response))
        except SnapshotDecodeError as e:
            raise ProviderDecodeError(str(e)) from e
