"""Pydantic schemas for wishlist entries, remote rows, and sync outcomes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from storefront.errors import EntryValidationError
from storefront.schemas.product import normalize_product_id


class WishlistEntry(BaseModel):
    """A product the shopper saved for later."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="id", description="Opaque product identifier")
    name: str = Field("", description="Display name")
    price: float = Field(0.0, description="Currency agnostic unit price")
    image_url: str = Field(..., description="Image URL or the configured placeholder")
    description: str = Field(..., description="Description or the configured placeholder")

    @field_validator("product_id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str:
        return normalize_product_id(value)

    @classmethod
    def from_product(
        cls,
        product: Mapping[str, Any],
        *,
        placeholder_image_url: str,
        placeholder_description: str,
    ) -> WishlistEntry:
        """Build an entry from a catalog product mapping.

        Both ``image_url`` and the catalog's ``image`` key are honoured, and empty
        values fall back to the placeholders.
        """

        try:
            return cls(
                id=product.get("id", product.get("product_id")),
                name=product.get("name") or "",
                price=product.get("price") or 0.0,
                image_url=product.get("image_url")
                or product.get("image")
                or placeholder_image_url,
                description=product.get("description") or placeholder_description,
            )
        except ValidationError as exc:
            raise EntryValidationError(_summarize(exc)) from exc

    @classmethod
    def from_row(
        cls,
        row: WishlistRow,
        *,
        placeholder_image_url: str,
        placeholder_description: str,
    ) -> WishlistEntry:
        """Map a remote ``wishlist`` row onto the local representation."""

        return cls(
            id=row.product_id,
            name=row.product_name or "",
            price=row.price if row.price is not None else 0.0,
            image_url=row.image_url or placeholder_image_url,
            description=row.description or placeholder_description,
        )

    def to_row(self, user_id: str) -> WishlistRow:
        return WishlistRow(
            user_id=user_id,
            product_id=self.product_id,
            product_name=self.name,
            price=self.price,
            image_url=self.image_url,
            description=self.description,
        )

    def to_storage(self) -> dict[str, Any]:
        """Return the flat record persisted in the local store."""

        return self.model_dump(by_alias=True, mode="json")


class WishlistRow(BaseModel):
    """Row shape of the remote ``wishlist`` table."""

    model_config = ConfigDict(extra="ignore")

    user_id: str
    product_id: str
    product_name: str | None = None
    price: float | None = None
    image_url: str | None = None
    description: str | None = None

    @field_validator("product_id", mode="before")
    @classmethod
    def _normalize_product_id(cls, value: Any) -> str:
        return normalize_product_id(value)


class PropagationStatus(str, Enum):
    """How far a wishlist mutation travelled towards the server."""

    SYNCED = "synced"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOT_ATTEMPTED = "not_attempted"


class MutationErrorType(str, Enum):
    VALIDATION = "validation"
    DUPLICATE = "duplicate"
    PROPAGATION = "propagation"


class WishlistMutationResult(BaseModel):
    """Outcome of ``add``/``remove`` split into local and remote halves."""

    product_id: str | None = None
    accepted: bool = Field(..., description="False when rejected before mutation")
    local_committed: bool = Field(
        ..., description="True once the in-memory and persisted state changed"
    )
    propagation: PropagationStatus
    error_type: MutationErrorType | None = None
    error: str | None = None

    @property
    def propagated(self) -> bool:
        return self.propagation is PropagationStatus.SYNCED


class SyncStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"
    UNBOUND = "unbound"


class ResyncResult(BaseModel):
    """Outcome of a remote-to-local resynchronization."""

    status: SyncStatus
    entry_count: int = Field(0, ge=0, description="Entries held after the resync")
    merged_count: int = Field(
        0, ge=0, description="Un-synced local entries kept when merging is enabled"
    )
    error: str | None = None


class WishlistEventKind(str, Enum):
    LOCAL_COMMITTED = "local_committed"
    PROPAGATION_SUCCEEDED = "propagation_succeeded"
    PROPAGATION_FAILED = "propagation_failed"
    RESYNC_COMPLETED = "resync_completed"
    RESYNC_SKIPPED = "resync_skipped"
    RESYNC_FAILED = "resync_failed"


class WishlistEvent(BaseModel):
    """Notification delivered to wishlist listeners."""

    kind: WishlistEventKind
    product_id: str | None = None
    detail: str | None = None


class WishlistResponse(BaseModel):
    count: int = Field(..., ge=0)
    items: list[WishlistEntry] = Field(default_factory=list)


class WishlistContainsResponse(BaseModel):
    product_id: str
    in_wishlist: bool


def _summarize(exc: ValidationError) -> str:
    """Collapse pydantic errors into a single human-readable line."""

    parts = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error["loc"]) or "entry"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


__all__ = [
    "MutationErrorType",
    "PropagationStatus",
    "ResyncResult",
    "SyncStatus",
    "WishlistContainsResponse",
    "WishlistEntry",
    "WishlistEvent",
    "WishlistEventKind",
    "WishlistMutationResult",
    "WishlistResponse",
    "WishlistRow",
]
