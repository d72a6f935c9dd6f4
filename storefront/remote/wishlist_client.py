"""Remote wishlist table access through the Supabase PostgREST gateway."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from pydantic import ValidationError

from storefront.errors import RemoteServiceError
from storefront.remote.http import send, supabase_headers
from storefront.schemas.wishlist import WishlistRow

logger = logging.getLogger(__name__)

WISHLIST_TABLE = "wishlist"


class RemoteWishlistService(Protocol):
    """Row-level CRUD over the ``wishlist`` table keyed by (user_id, product_id).

    Implementations raise :class:`RemoteServiceError` for every failure the
    wishlist cache is expected to absorb.
    """

    async def select_by_user(self, user_id: str) -> list[WishlistRow]:
        ...

    async def insert(self, row: WishlistRow) -> None:
        ...

    async def delete(self, user_id: str, product_id: str) -> None:
        ...


class SupabaseWishlistClient:
    """``RemoteWishlistService`` backed by ``/rest/v1/wishlist``."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._table_url = f"{base_url.rstrip('/')}/rest/v1/{WISHLIST_TABLE}"
        self._headers = supabase_headers(api_key, access_token)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def select_by_user(self, user_id: str) -> list[WishlistRow]:
        response = await send(
            self._client,
            "GET",
            self._table_url,
            headers=self._headers,
            params={"select": "*", "user_id": f"eq.{user_id}"},
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteServiceError("Wishlist select returned a non-JSON body") from exc
        if not isinstance(payload, list):
            raise RemoteServiceError("Wishlist select did not return a list of rows")

        try:
            rows = [WishlistRow.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise RemoteServiceError(f"Wishlist select returned malformed rows: {exc}") from exc

        logger.debug("Fetched %d wishlist row(s) for user %s", len(rows), user_id)
        return rows

    async def insert(self, row: WishlistRow) -> None:
        await send(
            self._client,
            "POST",
            self._table_url,
            headers={**self._headers, "Prefer": "return=minimal"},
            json=[row.model_dump(mode="json")],
        )

    async def delete(self, user_id: str, product_id: str) -> None:
        await send(
            self._client,
            "DELETE",
            self._table_url,
            headers=self._headers,
            params={"user_id": f"eq.{user_id}", "product_id": f"eq.{product_id}"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["RemoteWishlistService", "SupabaseWishlistClient", "WISHLIST_TABLE"]
