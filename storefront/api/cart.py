"""FastAPI router exposing the local-only shopping cart."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from storefront.context import StorefrontContext
from storefront.errors import EntryValidationError
from storefront.schemas.cart import CartEntry, CartResponse, CountResponse
from storefront.schemas.product import ProductPayload
from storefront.services.dependencies import get_context

router = APIRouter()


def _snapshot(context: StorefrontContext) -> CartResponse:
    return CartResponse(
        total_items=context.cart_item_count(),
        items=[entry.to_storage() for entry in context.cart.entries()],
    )


@router.get("", response_model=CartResponse)
async def get_cart(context: StorefrontContext = Depends(get_context)) -> CartResponse:
    return _snapshot(context)


@router.get("/count", response_model=CountResponse)
async def cart_count(context: StorefrontContext = Depends(get_context)) -> CountResponse:
    return CountResponse(count=context.cart_item_count())


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_cart_item(
    payload: ProductPayload,
    context: StorefrontContext = Depends(get_context),
) -> CartResponse:
    """Add a product, merging quantities when it is already in the cart."""

    line: CartEntry | None = context.add_to_cart(payload.as_product())
    if line is None:
        raise EntryValidationError("Product requires an id and a positive quantity")
    return _snapshot(context)


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: str,
    context: StorefrontContext = Depends(get_context),
) -> CartResponse:
    context.remove_from_cart(product_id)
    return _snapshot(context)
