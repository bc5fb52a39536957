"""
Snapshot model: the versioned bundle of browser data sent to remote storage.

Wire format (JSON object):

    {
        "lastUpdated": "2024-01-20T10:30:00.000Z",
        "version": "1.0.0",
        "bookmarks": [...],
        "extensions": [...],
        "history": [...]
    }

All five keys are always written. A collection excluded from sync is an
empty list, never a missing key.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# Snapshot format version written by this release
SNAPSHOT_VERSION = "1.0.0"

COLLECTION_KEYS = ("bookmarks", "extensions", "history")


class SnapshotDecodeError(ValueError):
    """Raised when a payload cannot be decoded into a Snapshot."""

    pass


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable bundle of bookmarks, extensions and history.

    Attributes:
        last_updated: ISO-8601 timestamp set when the snapshot was built
        version: Snapshot format version (not used to branch decoding)
        bookmarks: Bookmark tree nodes
        extensions: Installed extension records
        history: History entries, newest first
    """

    last_updated: str
    version: str = SNAPSHOT_VERSION
    bookmarks: list[Any] = field(default_factory=list)
    extensions: list[Any] = field(default_factory=list)
    history: list[Any] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        bookmarks: list[Any] | None = None,
        extensions: list[Any] | None = None,
        history: list[Any] | None = None,
    ) -> Snapshot:
        """Build a snapshot stamped with the current time and format version."""
        return cls(
            last_updated=utc_timestamp(),
            version=SNAPSHOT_VERSION,
            bookmarks=list(bookmarks or []),
            extensions=list(extensions or []),
            history=list(history or []),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire dictionary."""
        return {
            "lastUpdated": self.last_updated,
            "version": self.version,
            "bookmarks": list(self.bookmarks),
            "extensions": list(self.extensions),
            "history": list(self.history),
        }

    def to_json(self, indent: int | None = None) -> str:
        """Serialize to JSON text."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> Snapshot:
        """
        Create a Snapshot from a decoded wire dictionary.

        Missing collections decode as empty lists. The version is carried
        through as-is.

        Raises:
            SnapshotDecodeError: If data is not an object or a collection
                is not a list
        """
        if not isinstance(data, dict):
            raise SnapshotDecodeError(
                f"Snapshot must be a JSON object, got {type(data).__name__}"
            )

        collections: dict[str, list[Any]] = {}
        for key in COLLECTION_KEYS:
            value = data.get(key)
            if value is None:
                value = []
            if not isinstance(value, list):
                raise SnapshotDecodeError(
                    f"Snapshot field '{key}' must be a list, got {type(value).__name__}"
                )
            collections[key] = value

        return cls(
            last_updated=str(data.get("lastUpdated") or ""),
            version=str(data.get("version") or ""),
            **collections,
        )

    @classmethod
    def from_json(cls, text: str) -> Snapshot:
        """
        Parse JSON text into a Snapshot.

        Raises:
            SnapshotDecodeError: If text is empty or not valid snapshot JSON
        """
        if not text or not text.strip():
            raise SnapshotDecodeError("Snapshot payload is empty")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise SnapshotDecodeError(f"Snapshot payload is not valid JSON: {e}") from e
        return cls.from_dict(data)

    def display_time(self) -> str:
        """
        Render last_updated in local time for log messages.

        Falls back to the raw value when it is not a parseable timestamp.
        """
        try:
            parsed = datetime.fromisoformat(self.last_updated.replace("Z", "+00:00"))
        except ValueError:
            return self.last_updated or "unknown"
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone()
        return parsed.strftime("%Y-%m-%d %H:%M:%S")

    def counts(self) -> dict[str, int]:
        """Number of records in each collection."""
        return {key: len(getattr(self, key)) for key in COLLECTION_KEYS}
