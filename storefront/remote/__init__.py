"""Clients for the remote backend-as-a-service (Supabase REST and GoTrue)."""

from .auth import AuthListener, SupabaseAuthClient
from .wishlist_client import RemoteWishlistService, SupabaseWishlistClient

__all__ = [
    "AuthListener",
    "RemoteWishlistService",
    "SupabaseAuthClient",
    "SupabaseWishlistClient",
]
