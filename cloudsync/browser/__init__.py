"""
cloudsync.browser - Browser data accessors

Reads bookmarks, extensions and history from a local browser profile.
"""

from cloudsync.browser.chrome import BrowserDataError, ChromeDataSource

__all__ = ["BrowserDataError", "ChromeDataSource"]
