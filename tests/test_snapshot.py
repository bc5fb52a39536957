"""Tests for the Snapshot wire model."""

import json
import re
from datetime import datetime, timezone

import pytest

from cloudsync.sync.snapshot import (
    SNAPSHOT_VERSION,
    Snapshot,
    SnapshotDecodeError,
    utc_timestamp,
)

ISO_MILLIS_Z = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestCreate:
    """Tests for Snapshot.create."""

    def test_stamps_time_and_version(self):
        """create() sets the current UTC time and the format version."""
        snapshot = Snapshot.create()

        assert snapshot.version == SNAPSHOT_VERSION == "1.0.0"
        assert ISO_MILLIS_Z.match(snapshot.last_updated)

    def test_missing_collections_are_empty_lists(self):
        """Collections not supplied are empty lists."""
        snapshot = Snapshot.create(bookmarks=[{"id": "1"}])

        assert snapshot.bookmarks == [{"id": "1"}]
        assert snapshot.extensions == []
        assert snapshot.history == []

    def test_utc_timestamp_format(self):
        """utc_timestamp is ISO-8601 with milliseconds and Z."""
        assert ISO_MILLIS_Z.match(utc_timestamp())


class TestWireFormat:
    """Tests for to_dict / to_json."""

    def test_all_keys_always_present(self):
        """All five keys are written even for an empty snapshot."""
        data = json.loads(Snapshot.create().to_json())

        assert set(data) == {"lastUpdated", "version", "bookmarks", "extensions", "history"}
        assert data["bookmarks"] == data["extensions"] == data["history"] == []

    def test_json_is_deterministic(self):
        """Serializing the same snapshot twice gives identical bytes."""
        snapshot = Snapshot.create(history=[{"url": "https://a", "title": "A"}])
        assert snapshot.to_json() == snapshot.to_json()

    def test_indent(self):
        """indent produces pretty JSON."""
        text = Snapshot(last_updated="t").to_json(indent=2)
        assert '\n  "version": "1.0.0"' in text

    def test_non_ascii_kept(self):
        """Titles with non-ASCII characters are written as-is."""
        snapshot = Snapshot(last_updated="t", bookmarks=[{"title": "Café"}])
        assert "Café" in snapshot.to_json()


class TestDecode:
    """Tests for from_dict / from_json."""

    def test_round_trip_preserves_fields(self):
        """Decoding the encoded form gives an equal snapshot."""
        snapshot = Snapshot.create(
            bookmarks=[{"id": "0", "title": "", "children": []}],
            extensions=[{"id": "abc", "name": "Ext", "enabled": False}],
            history=[{"id": "1", "url": "https://example.com", "title": "Ex"}],
        )
        assert Snapshot.from_json(snapshot.to_json()) == snapshot

    def test_missing_and_null_collections(self):
        """Absent or null collections decode as empty lists."""
        snapshot = Snapshot.from_dict(
            {"lastUpdated": "2024-01-20T10:30:00.000Z", "version": "1.0.0", "history": None}
        )

        assert snapshot.bookmarks == []
        assert snapshot.history == []

    def test_version_carried_through(self):
        """Other versions decode without gating."""
        snapshot = Snapshot.from_dict({"lastUpdated": "x", "version": "9.9.9"})
        assert snapshot.version == "9.9.9"

    @pytest.mark.parametrize("text", ["", "   \n"])
    def test_empty_payload(self, text):
        """Empty content is a decode error."""
        with pytest.raises(SnapshotDecodeError, match="empty"):
            Snapshot.from_json(text)

    def test_invalid_json(self):
        """Malformed JSON is a decode error."""
        with pytest.raises(SnapshotDecodeError, match="not valid JSON"):
            Snapshot.from_json("{oops")

    def test_non_object(self):
        """A JSON array is not a snapshot."""
        with pytest.raises(SnapshotDecodeError, match="object"):
            Snapshot.from_json("[1, 2]")

    def test_collection_must_be_list(self):
        """A collection of the wrong type is rejected."""
        with pytest.raises(SnapshotDecodeError, match="bookmarks"):
            Snapshot.from_dict({"bookmarks": {"id": "1"}})

    def test_decode_error_is_value_error(self):
        """SnapshotDecodeError can be caught as ValueError."""
        assert issubclass(SnapshotDecodeError, ValueError)


class TestDisplay:
    """Tests for display_time and counts."""

    def test_display_time_is_local(self):
        """The UTC timestamp is rendered in local time."""
        snapshot = Snapshot(last_updated="2024-01-20T10:30:00.000Z")
        expected = (
            datetime(2024, 1, 20, 10, 30, tzinfo=timezone.utc)
            .astimezone()
            .strftime("%Y-%m-%d %H:%M:%S")
        )
        assert snapshot.display_time() == expected

    def test_display_time_falls_back_to_raw(self):
        """Unparseable timestamps are shown as given."""
        assert Snapshot(last_updated="yesterday").display_time() == "yesterday"
        assert Snapshot(last_updated="").display_time() == "unknown"

    def test_counts(self):
        """counts() reports the size of each collection."""
        snapshot = Snapshot(last_updated="t", history=[{}, {}], extensions=[{}])
        assert snapshot.counts() == {"bookmarks": 0, "extensions": 1, "history": 2}
