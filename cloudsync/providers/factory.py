"""
Storage provider factory.

Maps a configured StorageProvider value to a new backend instance.
Backends are stateless, so a fresh one is built for every operation.
"""

from __future__ import annotations

from collections.abc import Callable

import requests

from cloudsync.config.sync_config import StorageProvider
from cloudsync.providers.base import CloudProvider, UnsupportedProviderError
from cloudsync.providers.gist import GistProvider
from cloudsync.providers.webdav import WebDAVProvider

_PROVIDER_CLASSES: dict[StorageProvider, Callable[..., CloudProvider]] = {
    StorageProvider.GIST: GistProvider,
    StorageProvider.WEBDAV: WebDAVProvider,
}


def get_provider(
    provider: StorageProvider | str,
    session: requests.Session | None = None,
    timeout: float | None = None,
) -> CloudProvider:
    """
    Create the backend for a provider value.

    Args:
        provider: StorageProvider member or its string value
        session: Optional HTTP session shared with the backend
        timeout: Optional request timeout in seconds

    Returns:
        A new CloudProvider instance

    Raises:
        UnsupportedProviderError: If no backend exists for the value
    """
    try:
        key = StorageProvider(provider)
    except ValueError:
        raise UnsupportedProviderError(f"Provider not implemented: {provider}") from None

    provider_class = _PROVIDER_CLASSES.get(key)
    if provider_class is None:
        raise UnsupportedProviderError(f"Provider not implemented: {key.value}")

    return provider_class(session=session, timeout=timeout)
