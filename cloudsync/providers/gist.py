"""
GitHub Gist storage backend.

Stores the snapshot as a single file (sync_data.json) inside a private gist.
The first upload creates the gist; later uploads update it in place using
the gist ID the caller saved from the first one.

API reference: https://docs.github.com/en/rest/gists/gists
"""

from __future__ import annotations

import logging
from typing import Any

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

GITHUB_API_URL = "https://api.github.com"

# Name of the gist file holding the snapshot
GIST_FILE_NAME = "sync_data.json"

GIST_DESCRIPTION = "CloudSync Pro - Browser Data"


class GistProvider(CloudProvider):
    """Snapshot storage in a private GitHub gist."""

    name = "gist"

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float | None = None,
        api_url: str = GITHUB_API_URL,
    ) -> None:
        super().__init__(session=session, timeout=timeout)
        self.api_url = api_url.rstrip("/")

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github.v3+json",
        }

    @staticmethod
    def build_payload(snapshot: Snapshot) -> dict[str, Any]:
        """
        Build the gist create/update request body for a snapshot.

        The snapshot is stored pretty-printed so the gist stays readable in
        the GitHub web UI.
        """
        return {
            "description": GIST_DESCRIPTION,
            "public": False,
            "files": {
                GIST_FILE_NAME: {"content": snapshot.to_json(indent=2)},
            },
        }

    @staticmethod
    def _error_message(response: requests.Response, default: str) -> str:
        """Use GitHub's error message from the body when there is one."""
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return default

    def upload(self, config: SyncConfig, snapshot: Snapshot) -> str:
        """
        Create or update the gist holding the snapshot.

        Creates a new gist when config has no gist_id, otherwise updates the
        existing one.

        Returns:
            The gist ID written to; new when the gist was just created

        Raises:
            ProviderValidationError: If no token is configured
            ProviderTransportError: If GitHub rejects the request
            ProviderDecodeError: If a create response carries no gist ID
        """
        if not config.gist_token:
            raise ProviderValidationError("Gist Token is required")

        if config.gist_id:
            method = "PATCH"
            url = f"{self.api_url}/gists/{config.gist_id}"
        else:
            method = "POST"
            url = f"{self.api_url}/gists"

        response = self._send(
            method,
            url,
            headers=self._headers(config.gist_token),
            json=self.build_payload(snapshot),
        )

        if not response.ok:
            raise ProviderTransportError(
                self._error_message(response, "Failed to upload to Gist"),
                response.status_code,
            )

        try:
            result = response.json()
        except ValueError:
            result = {}

        gist_id = result.get("id") if isinstance(result, dict) else None
        gist_id = gist_id or config.gist_id
        if not gist_id:
            raise ProviderDecodeError("Gist response did not include a gist ID")

        logger.debug(f"Uploaded snapshot to gist {gist_id} via {method}")
        return str(gist_id)

    def download(self, config: SyncConfig) -> Snapshot:
        """
        Fetch the gist and parse its sync_data.json file.

        Raises:
            ProviderValidationError: If token or gist ID is missing
            ProviderTransportError: If GitHub rejects the request
            ProviderDecodeError: If the file is absent, empty or not valid JSON
        """
        if not config.gist_token or not config.gist_id:
            raise ProviderValidationError(
                "Gist Token and ID are required for download"
            )

        headers = self._headers(config.gist_token)
        response = self._send(
            "GET", f"{self.api_url}/gists/{config.gist_id}", headers=headers
        )

        if not response.ok:
            raise ProviderTransportError(
                self._error_message(response, "Failed to download from Gist"),
                response.status_code,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise ProviderDecodeError(f"Gist response is not valid JSON: {e}") from e

        files = result.get("files") if isinstance(result, dict) else None
        entry = (files or {}).get(GIST_FILE_NAME)
        if not isinstance(entry, dict):
            raise ProviderDecodeError("Sync data file not found in Gist")

        content = entry.get("content")
        # GitHub truncates file content in the gist API response at ~1 MB
        if entry.get("truncated") and entry.get("raw_url"):
            content = self._fetch_raw(entry["raw_url"], headers)

        if not content:
            raise ProviderDecodeError("Sync data file not found in Gist")

        return self.parse_content(content)

    def _fetch_raw(self, raw_url: str, headers: dict[str, str]) -> str:
        """Fetch full file content for a truncated gist file."""
        response = self._send("GET", raw_url, headers=headers)
        if not response.ok:
            raise ProviderTransportError(
                "Failed to download from Gist", response.status_code
            )
        return self._read_text(response)

    @staticmethod
    def parse_content(content: str) -> Snapshot:
        """
        Decode gist file content into a Snapshot.

        Raises:
            ProviderDecodeError: If content is not a valid snapshot
        """
        try:
            return Snapshot.from_json(content)
        except SnapshotDecodeError as e:
            raise ProviderDecodeError(str(e)) from e


__all__ = ["GistProvider", "GIST_FILE_NAME", "GIST_DESCRIPTION", "GITHUB_API_URL"]
