"""Explicit application context owning the cart and wishlist.

One :class:`StorefrontContext` is built at start-up (``build_context``) and
handed to whatever glue needs it: the FastAPI app keeps it on ``app.state``,
the CLI builds one per invocation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from storefront.errors import RemoteUnavailableError
from storefront.remote.auth import SupabaseAuthClient
from storefront.remote.wishlist_client import RemoteWishlistService, SupabaseWishlistClient
from storefront.schemas.auth import AuthChangeEvent, AuthSession
from storefront.schemas.cart import CartEntry
from storefront.schemas.wishlist import ResyncResult, WishlistMutationResult
from storefront.services.cart_store import CartStore
from storefront.services.persistence import LocalMirror
from storefront.services.wishlist_cache import WishlistCache
from storefront.settings import AppSettings
from storefront.storage import LocalStore, create_local_store

logger = logging.getLogger(__name__)

RemoteClientFactory = Callable[[AuthSession], RemoteWishlistService]


class StorefrontContext:
    """Public storefront operations for the UI/glue layer."""

    def __init__(
        self,
        *,
        cart: CartStore,
        wishlist: WishlistCache,
        remote_client_factory: RemoteClientFactory | None = None,
    ) -> None:
        self.cart = cart
        self.wishlist = wishlist
        self._remote_client_factory = remote_client_factory
        self._bound_client: RemoteWishlistService | None = None
        self._auth_unsubscribe: Callable[[], None] | None = None
        self.last_resync: ResyncResult | None = None

    # -- cart --------------------------------------------------------------------

    def add_to_cart(self, product: Mapping[str, Any]) -> CartEntry | None:
        return self.cart.add(product)

    def remove_from_cart(self, product_id: Any) -> bool:
        return self.cart.remove(product_id)

    def cart_item_count(self) -> int:
        return self.cart.total_item_count()

    # -- wishlist ----------------------------------------------------------------

    async def add_to_wishlist(self, product: Mapping[str, Any]) -> WishlistMutationResult:
        return await self.wishlist.add(product)

    async def remove_from_wishlist(self, product_id: Any) -> WishlistMutationResult:
        return await self.wishlist.remove(product_id)

    def is_in_wishlist(self, product_id: Any) -> bool:
        return self.wishlist.contains(product_id)

    def wishlist_item_count(self) -> int:
        return self.wishlist.count()

    async def bind_wishlist_sync(
        self, client: RemoteWishlistService, user_id: str
    ) -> ResyncResult:
        """Bind the wishlist to ``client`` for ``user_id`` and resynchronize."""

        if client is not self._bound_client:
            await self._close_bound_client()
        self._bound_client = client
        return await self.wishlist.bind(client, user_id)

    async def unbind_wishlist_sync(self) -> None:
        self.wishlist.unbind()
        await self._close_bound_client()

    # -- auth wiring -------------------------------------------------------------

    def attach_auth(self, auth: SupabaseAuthClient) -> None:
        """Bind on ``SIGNED_IN`` and unbind on ``SIGNED_OUT`` events from ``auth``."""

        if self._auth_unsubscribe is not None:
            self._auth_unsubscribe()
        self._auth_unsubscribe = auth.on_auth_state_change(self._on_auth_change)

    async def bind_session(self, session: AuthSession) -> ResyncResult:
        """Build a remote client for ``session`` and bind the wishlist to it."""

        if self._remote_client_factory is None:
            raise RemoteUnavailableError(
                "Remote sync is not configured; set SUPABASE_URL and SUPABASE_ANON_KEY"
            )
        client = self._remote_client_factory(session)
        return await self.bind_wishlist_sync(client, session.user.id)

    async def aclose(self) -> None:
        if self._auth_unsubscribe is not None:
            self._auth_unsubscribe()
            self._auth_unsubscribe = None
        await self._close_bound_client()

    async def _on_auth_change(
        self, event: AuthChangeEvent, session: AuthSession | None
    ) -> None:
        if event is AuthChangeEvent.SIGNED_IN and session is not None:
            self.last_resync = await self.bind_session(session)
            logger.info("Wishlist sync after sign-in: %s", self.last_resync.status.value)
        elif event is AuthChangeEvent.SIGNED_OUT:
            await self.unbind_wishlist_sync()

    async def _close_bound_client(self) -> None:
        client = self._bound_client
        self._bound_client = None
        closer = getattr(client, "aclose", None)
        if closer is not None:
            await closer()


def supabase_client_factory(settings: AppSettings) -> RemoteClientFactory | None:
    """Return a factory creating per-session Supabase wishlist clients."""

    if not settings.remote_sync_configured:
        return None

    def _factory(session: AuthSession) -> RemoteWishlistService:
        return SupabaseWishlistClient(
            base_url=settings.supabase_url or "",
            api_key=settings.supabase_anon_key or "",
            access_token=session.access_token,
            timeout=settings.remote_timeout_seconds,
        )

    return _factory


def build_auth_client(settings: AppSettings) -> SupabaseAuthClient | None:
    if not settings.remote_sync_configured:
        return None
    return SupabaseAuthClient(
        base_url=settings.supabase_url or "",
        api_key=settings.supabase_anon_key or "",
        timeout=settings.remote_timeout_seconds,
    )


def build_context(
    settings: AppSettings,
    *,
    store: LocalStore | None = None,
    remote_client_factory: RemoteClientFactory | None = None,
) -> StorefrontContext:
    """Wire a context from ``settings``; both caches hydrate immediately."""

    local_store = store if store is not None else create_local_store(settings.local_store_url)
    fallback = settings.local_persistence_fallback

    cart = CartStore(LocalMirror(local_store, settings.cart_storage_key, fallback=fallback))
    wishlist = WishlistCache(
        LocalMirror(local_store, settings.wishlist_storage_key, fallback=fallback),
        pending_mirror=LocalMirror(
            local_store, settings.wishlist_pending_storage_key, fallback=fallback
        ),
        placeholder_image_url=settings.placeholder_image_url,
        placeholder_description=settings.placeholder_description,
        merge_unsynced_on_resync=settings.merge_unsynced_on_resync,
    )
    factory = remote_client_factory or supabase_client_factory(settings)
    return StorefrontContext(cart=cart, wishlist=wishlist, remote_client_factory=factory)


__all__ = [
    "RemoteClientFactory",
    "StorefrontContext",
    "build_auth_client",
    "build_context",
    "supabase_client_factory",
]
