"""Shared product payload helpers used by the cart and wishlist schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def normalize_product_id(value: Any) -> str:
    """Return ``value`` as a non-empty string identifier.

    Product identifiers are opaque: the catalog hands out integers while the
    wishlist table may echo them back as strings, so both collapse to ``str``.
    """

    if value is None or isinstance(value, bool):
        raise ValueError("Product identifier is required")
    if isinstance(value, (int, float)):
        value = str(int(value)) if float(value).is_integer() else str(value)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported product identifier type: {type(value).__name__}")
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("Product identifier must not be blank")
    return cleaned


class ProductPayload(BaseModel):
    """Loose product representation received from a UI layer.

    Unknown attributes are kept so that cart entries can copy them verbatim.
    """

    model_config = ConfigDict(extra="allow")

    id: str | int | None = Field(None, description="Catalog identifier of the product")
    name: str | None = Field(None, description="Display name")
    price: float | None = Field(None, description="Unit price, currency agnostic")
    image: str | None = Field(None, description="Image URL as exposed by the catalog")
    image_url: str | None = Field(None, description="Image URL as stored by Supabase")
    description: str | None = None
    quantity: int | None = Field(
        None, description="Units to add; only meaningful for the cart"
    )

    def as_product(self) -> dict[str, Any]:
        """Return the payload as a plain mapping without unset attributes."""

        return self.model_dump(exclude_none=True)


__all__ = ["ProductPayload", "normalize_product_id"]
