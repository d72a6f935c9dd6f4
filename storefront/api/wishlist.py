"""FastAPI router exposing wishlist operations and manual resynchronization."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from storefront.context import StorefrontContext
from storefront.errors import DuplicateEntryError, EntryValidationError
from storefront.schemas.cart import CountResponse
from storefront.schemas.product import ProductPayload
from storefront.schemas.wishlist import (
    MutationErrorType,
    ResyncResult,
    WishlistContainsResponse,
    WishlistMutationResult,
    WishlistResponse,
)
from storefront.services.dependencies import get_context

router = APIRouter()


@router.get("", response_model=WishlistResponse)
async def get_wishlist(
    context: StorefrontContext = Depends(get_context),
) -> WishlistResponse:
    return WishlistResponse(
        count=context.wishlist_item_count(),
        items=context.wishlist.entries(),
    )


@router.get("/count", response_model=CountResponse)
async def wishlist_count(
    context: StorefrontContext = Depends(get_context),
) -> CountResponse:
    return CountResponse(count=context.wishlist_item_count())


@router.get("/items/{product_id}", response_model=WishlistContainsResponse)
async def wishlist_contains(
    product_id: str,
    context: StorefrontContext = Depends(get_context),
) -> WishlistContainsResponse:
    return WishlistContainsResponse(
        product_id=product_id,
        in_wishlist=context.is_in_wishlist(product_id),
    )


@router.post(
    "/items",
    response_model=WishlistMutationResult,
    status_code=status.HTTP_201_CREATED,
)
async def add_wishlist_item(
    payload: ProductPayload,
    context: StorefrontContext = Depends(get_context),
) -> WishlistMutationResult:
    """Add a product locally and report whether it reached the server.

    A failed remote insert still answers 201: the entry is saved locally and
    ``propagation`` tells the UI to show a non-blocking warning.
    """

    result = await context.add_to_wishlist(payload.as_product())
    if result.accepted:
        return result
    if result.error_type is MutationErrorType.DUPLICATE:
        raise DuplicateEntryError(result.error or "Product already in wishlist")
    raise EntryValidationError(result.error or "Invalid product")


@router.delete("/items/{product_id}", response_model=WishlistMutationResult)
async def remove_wishlist_item(
    product_id: str,
    context: StorefrontContext = Depends(get_context),
) -> WishlistMutationResult:
    return await context.remove_from_wishlist(product_id)


@router.post("/sync", response_model=ResyncResult)
async def sync_wishlist(
    context: StorefrontContext = Depends(get_context),
) -> ResyncResult:
    """Pull the authoritative server copy; overlapping calls report ``skipped``."""

    return await context.wishlist.resync()
