"""Local-only shopping cart."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from storefront.schemas.cart import CartEntry
from storefront.schemas.product import normalize_product_id
from storefront.services.persistence import LocalMirror

logger = logging.getLogger(__name__)


class CartStore:
    """Ordered cart lines mirrored to the local store after every mutation.

    Adding a product that is already present increases its quantity instead of
    creating a second line. There is no remote counterpart.
    """

    def __init__(self, mirror: LocalMirror) -> None:
        self._mirror = mirror
        self._items: list[CartEntry] = []
        self.hydrate()

    def hydrate(self) -> None:
        """Replace in-memory lines with whatever the local store holds."""

        items: list[CartEntry] = []
        for record in self._mirror.load_records():
            try:
                items.append(CartEntry.model_validate(record))
            except ValidationError as exc:
                logger.warning("Skipping malformed cart record %s: %s", record, exc)
        self._items = items
        logger.info("Cart hydrated with %d line(s)", len(self._items))

    def add(self, product: Mapping[str, Any] | CartEntry) -> CartEntry | None:
        """Add ``product`` to the cart and return the resulting line.

        Returns ``None`` without mutating anything when the product has no
        identifier or a non-positive quantity, or is not a mapping at all.
        """

        if not isinstance(product, (Mapping, CartEntry)):
            logger.error("Invalid product for cart: %r", product)
            return None

        try:
            incoming = self._coerce(product)
        except ValidationError as exc:
            logger.error("Invalid product for cart %s: %s", product, exc)
            return None

        existing = self._find(incoming.product_id)
        if existing is not None:
            existing.quantity += incoming.quantity
            line = existing
            logger.debug(
                "Updated quantity for product %s: %d", line.product_id, line.quantity
            )
        else:
            self._items.append(incoming)
            line = incoming
            logger.debug("Added new product to cart: %s", line.product_id)

        self._persist()
        return line

    def remove(self, product_id: Any) -> bool:
        """Drop the line for ``product_id``; absent products are ignored."""

        try:
            key = normalize_product_id(product_id)
        except ValueError:
            return False

        remaining = [item for item in self._items if item.product_id != key]
        removed = len(remaining) != len(self._items)
        self._items = remaining
        self._persist()
        return removed

    def clear(self) -> None:
        self._items = []
        self._persist()

    def total_item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def entries(self) -> list[CartEntry]:
        return [item.model_copy() for item in self._items]

    def _find(self, product_id: str) -> CartEntry | None:
        return next((item for item in self._items if item.product_id == product_id), None)

    def _coerce(self, product: Mapping[str, Any] | CartEntry) -> CartEntry:
        if isinstance(product, CartEntry):
            return product.model_copy()
        data = dict(product)
        if data.get("quantity") is None:
            data["quantity"] = 1
        return CartEntry.model_validate(data)

    def _persist(self) -> None:
        self._mirror.save_records([item.to_storage() for item in self._items])


__all__ = ["CartStore"]
