"""
Chromium profile reader for bookmarks, extensions and history.

Reads the on-disk files of a Chrome (or other Chromium-based) profile and
returns records shaped like the chrome.bookmarks / chrome.management /
chrome.history extension APIs, so snapshots look the same whichever side
produced them.

Profile files used:
    Bookmarks            JSON bookmark tree
    Preferences          JSON, extensions.settings (older Chrome)
    Secure Preferences   JSON, extensions.settings (current Chrome)
    History              SQLite database, urls table

When the profile or a file is missing, each accessor returns a single
placeholder record instead of failing, so the rest of the tool can be
exercised on a machine without a browser.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import sqlite3
import sys
import tempfile
from contextlib import closing
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Environment variable for overriding the profile directory
PROFILE_DIR_ENV_VAR = "CLOUDSYNC_CHROME_PROFILE"

DEFAULT_HISTORY_MAX_RESULTS = 1000

# Microseconds between 1601-01-01 (WebKit epoch) and 1970-01-01
_WEBKIT_EPOCH_OFFSET_US = 11_644_473_600_000_000

# Extension install locations that are part of the browser itself
_COMPONENT_LOCATIONS = {5, 10}

_ROOT_TITLES = {
    "bookmark_bar": "Bookmarks bar",
    "other": "Other bookmarks",
    "synced": "Mobile bookmarks",
}

PLACEHOLDER_BOOKMARK = {"id": "mock", "title": "Mock Bookmark", "url": "https://google.com"}
PLACEHOLDER_EXTENSION = {"id": "mock-ext", "name": "Mock Extension", "enabled": True}
PLACEHOLDER_HISTORY = {"id": "mock-hist", "title": "Mock History", "url": "https://github.com"}


class BrowserDataError(Exception):
    """Raised when a profile file exists but cannot be read."""

    pass


def default_profile_dir() -> Path:
    """Return the platform's default Chrome profile directory."""
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "Google" / "Chrome" / "Default"
    if sys.platform.startswith("win"):
        local_app_data = os.environ.get("LOCALAPPDATA", str(home / "AppData" / "Local"))
        return Path(local_app_data) / "Google" / "Chrome" / "User Data" / "Default"
    return home / ".config" / "google-chrome" / "Default"


def resolve_profile_dir(profile_dir: Path | str | None = None) -> Path:
    """
    Resolve the browser profile directory.

    Priority:
        1. Explicit profile_dir parameter (if provided)
        2. CLOUDSYNC_CHROME_PROFILE environment variable
        3. Platform default Chrome profile
    """
    if profile_dir is not None:
        return Path(profile_dir).expanduser()

    env_dir = os.environ.get(PROFILE_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir).expanduser()

    return default_profile_dir()


def webkit_to_epoch_ms(value: Any) -> float | None:
    """Convert a WebKit timestamp (microseconds since 1601) to epoch milliseconds."""
    try:
        micros = int(value)
    except (TypeError, ValueError):
        return None
    if micros <= 0:
        return None
    return (micros - _WEBKIT_EPOCH_OFFSET_US) / 1000


class ChromeDataSource:
    """
    Browser data accessors backed by a Chromium profile directory.

    Attributes:
        profile_dir: Profile directory being read

    Usage:
        source = ChromeDataSource()
        bookmarks = source.get_bookmarks()
        history = source.get_history(max_results=200)
    """

    def __init__(self, profile_dir: Path | str | None = None):
        self.profile_dir = resolve_profile_dir(profile_dir)

    def _profile_file(self, name: str) -> Path | None:
        path = self.profile_dir / name
        if not path.is_file():
            logger.debug(f"Profile file not found: {path}")
            return None
        return path

    def _read_json(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise BrowserDataError(f"Failed to parse {path.name}: {e}") from e
        except OSError as e:
            raise BrowserDataError(f"Failed to read {path.name}: {e}") from e
        if not isinstance(data, dict):
            raise BrowserDataError(f"{path.name} does not contain a JSON object")
        return data

    # -------------------------------------------------------------------------
    # Bookmarks
    # -------------------------------------------------------------------------

    def get_bookmarks(self) -> list[dict[str, Any]]:
        """
        Return the bookmark tree as a single-element list holding the root node.

        Nodes carry id, parentId, title, dateAdded and either url or children.
        """
        path = self._profile_file("Bookmarks")
        if path is None:
            return [dict(PLACEHOLDER_BOOKMARK)]

        data = self._read_json(path)
        roots = data.get("roots") or {}

        children: list[dict[str, Any]] = []
        for key, node in roots.items():
            if not isinstance(node, dict):
                continue
            child = self._convert_bookmark_node(node, parent_id="0", index=len(children))
            if not child["title"]:
                child["title"] = _ROOT_TITLES.get(key, key)
            children.append(child)

        return [{"id": "0", "title": "", "children": children}]

    def _convert_bookmark_node(
        self, node: dict[str, Any], parent_id: str, index: int
    ) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": str(node.get("id", "")),
            "parentId": parent_id,
            "index": index,
            "title": node.get("name", ""),
        }

        date_added = webkit_to_epoch_ms(node.get("date_added"))
        if date_added is not None:
            result["dateAdded"] = date_added

        if node.get("type") == "url":
            result["url"] = node.get("url", "")
        else:
            result["children"] = [
                self._convert_bookmark_node(child, parent_id=result["id"], index=i)
                for i, child in enumerate(node.get("children") or [])
                if isinstance(child, dict)
            ]

        return result

    # -------------------------------------------------------------------------
    # Extensions
    # -------------------------------------------------------------------------

    def get_extensions(self) -> list[dict[str, Any]]:
        """
        Return installed extensions, excluding themes, apps and built-ins.
        """
        settings: dict[str, Any] = {}
        found = False
        for name in ("Preferences", "Secure Preferences"):
            path = self._profile_file(name)
            if path is None:
                continue
            found = True
            prefs = self._read_json(path)
            entries = (prefs.get("extensions") or {}).get("settings") or {}
            for ext_id, entry in entries.items():
                if isinstance(entry, dict):
                    settings.setdefault(ext_id, {}).update(entry)

        if not found:
            return [dict(PLACEHOLDER_EXTENSION)]

        extensions = []
        for ext_id, entry in sorted(settings.items()):
            manifest = entry.get("manifest")
            if not isinstance(manifest, dict):
                continue
            if entry.get("location") in _COMPONENT_LOCATIONS:
                continue
            if "theme" in manifest or "app" in manifest:
                continue

            extensions.append(
                {
                    "id": ext_id,
                    "name": manifest.get("name", ""),
                    "version": manifest.get("version", ""),
                    "description": manifest.get("description", ""),
                    "enabled": self._is_enabled(entry),
                    "type": "extension",
                }
            )

        return extensions

    @staticmethod
    def _is_enabled(entry: dict[str, Any]) -> bool:
        # Older profiles use state (1 enabled, 0 disabled), newer ones disable_reasons
        if entry.get("state", 1) == 0:
            return False
        return not entry.get("disable_reasons")

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def get_history(
        self, max_results: int = DEFAULT_HISTORY_MAX_RESULTS
    ) -> list[dict[str, Any]]:
        """
        Return the most recently visited URLs, newest first.

        The browser holds a lock on the History database while running, so
        it is copied to a temporary file before being queried.
        """
        path = self._profile_file("History")
        if path is None:
            return [dict(PLACEHOLDER_HISTORY)]

        with tempfile.TemporaryDirectory(prefix="cloudsync-") as tmp_dir:
            copy_path = Path(tmp_dir) / "History"
            try:
                shutil.copy2(path, copy_path)
                with closing(sqlite3.connect(copy_path)) as conn:
                    conn.row_factory = sqlite3.Row
                    rows = conn.execute(
                        """
                        SELECT id, url, title, last_visit_time, visit_count, typed_count
                        FROM urls
                        WHERE hidden = 0
                        ORDER BY last_visit_time DESC
                        LIMIT ?
                        """,
                        (max_results,),
                    ).fetchall()
            except (OSError, sqlite3.Error) as e:
                raise BrowserDataError(f"Failed to read History: {e}") from e

        return [
            {
                "id": str(row["id"]),
                "url": row["url"],
                "title": row["title"] or "",
                "lastVisitTime": webkit_to_epoch_ms(row["last_visit_time"]),
                "visitCount": row["visit_count"],
                "typedCount": row["typed_count"],
            }
            for row in rows
        ]
