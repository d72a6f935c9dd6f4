"""Shared fixtures for the storefront cache, context and API tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from storefront.services.cart_store import CartStore
from storefront.services.persistence import LocalMirror
from storefront.services.wishlist_cache import WishlistCache
from storefront.settings import get_settings
from storefront.storage import MemoryLocalStore
from tests.storefront.support.in_memory_wishlist import (
    PLACEHOLDER_DESCRIPTION,
    PLACEHOLDER_IMAGE,
    InMemoryWishlistService,
)


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Iterator[None]:
    """Make environment changes from ``monkeypatch`` visible to ``get_settings``."""

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store() -> MemoryLocalStore:
    return MemoryLocalStore()


@pytest.fixture
def remote() -> InMemoryWishlistService:
    return InMemoryWishlistService()


@pytest.fixture
def wishlist(store: MemoryLocalStore) -> WishlistCache:
    return WishlistCache(
        LocalMirror(store, "wishlist"),
        placeholder_image_url=PLACEHOLDER_IMAGE,
        placeholder_description=PLACEHOLDER_DESCRIPTION,
    )


@pytest.fixture
def cart(store: MemoryLocalStore) -> CartStore:
    return CartStore(LocalMirror(store, "shoppingCart"))
