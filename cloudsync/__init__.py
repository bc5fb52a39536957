"""
cloudsync - Browser state backup to Gist or WebDAV storage.

Collects bookmarks, extensions and history from a Chromium profile, bundles
them into a versioned snapshot and uploads it to a user-chosen remote store.
"""

__version__ = "0.1.0"
