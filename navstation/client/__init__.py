"""Python client for the navstation API and the staged reorder controller."""

from navstation.client.api_client import (
    ApiError, AuthenticationFailed, NavigationClient, ReorderRejected, DEFAULT_BASE_URL,
)
from navstation.client.mock_client import MockNavigationClient
from navstation.client.reorder import (
    GroupReordering, Idle, ReorderController, ReorderSaveError, ReorderStateError, SiteReordering,
)


def create_navigation_client(use_mock: bool = False, base_url: str = DEFAULT_BASE_URL, **kwargs):
    """Pick the real HTTP client or the in-memory mock once, at startup."""
    if use_mock:
        return MockNavigationClient(**kwargs)
    return NavigationClient(base_url=base_url, **kwargs)


__all__ = [
    "ApiError", "AuthenticationFailed", "ReorderRejected",
    "NavigationClient", "MockNavigationClient", "create_navigation_client",
    "ReorderController", "Idle", "GroupReordering", "SiteReordering",
    "ReorderSaveError", "ReorderStateError",
]
