"""FastAPI dependency wiring for the storefront context and auth client.

Both objects are created once by the application lifespan and stored on
``app.state``; routers only resolve them here.
"""

from __future__ import annotations

from fastapi import Request

from storefront.context import StorefrontContext
from storefront.errors import RemoteUnavailableError
from storefront.remote.auth import SupabaseAuthClient


def get_context(request: Request) -> StorefrontContext:
    """Return the application-wide :class:`StorefrontContext`."""

    return request.app.state.context


def get_auth_client(request: Request) -> SupabaseAuthClient:
    """Return the configured auth client or fail when Supabase is not configured."""

    auth: SupabaseAuthClient | None = getattr(request.app.state, "auth", None)
    if auth is None:
        raise RemoteUnavailableError(
            "Authentication is not configured; set SUPABASE_URL and SUPABASE_ANON_KEY"
        )
    return auth
