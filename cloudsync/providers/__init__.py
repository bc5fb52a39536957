"""
cloudsync.providers - Remote storage backends

Each backend implements the CloudProvider interface (upload/download).
"""

from cloudsync.providers.base import (
    CloudProvider,
    ProviderDecodeError,
    ProviderError,
    ProviderTransportError,
    ProviderValidationError,
    UnsupportedProviderError,
)
from cloudsync.providers.factory import get_provider
from cloudsync.providers.gist import GistProvider
from cloudsync.providers.webdav import WebDAVProvider

__all__ = [
    "CloudProvider",
    "GistProvider",
    "ProviderDecodeError",
    "ProviderError",
    "ProviderTransportError",
    "ProviderValidationError",
    "UnsupportedProviderError",
    "WebDAVProvider",
    "get_provider",
]
