"""Pydantic schemas describing cart entries and cart API responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.schemas.product import normalize_product_id


class CartEntry(BaseModel):
    """A product line in the cart.

    Attributes other than ``id`` and ``quantity`` are copied from the product
    at add time and never refreshed from the catalog.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    product_id: str = Field(..., alias="id")
    quantity: int = Field(1, ge=1, description="Units of the product in the cart")

    @field_validator("product_id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str:
        return normalize_product_id(value)

    def to_storage(self) -> dict[str, Any]:
        """Return the flat ``{id, quantity, ...}`` record kept in the local store."""

        return self.model_dump(by_alias=True, mode="json")


class CartResponse(BaseModel):
    """Cart snapshot returned by the HTTP glue."""

    total_items: int = Field(..., ge=0, description="Sum of quantities")
    items: list[dict[str, Any]] = Field(default_factory=list)


class CountResponse(BaseModel):
    count: int = Field(..., ge=0)


__all__ = ["CartEntry", "CartResponse", "CountResponse"]
