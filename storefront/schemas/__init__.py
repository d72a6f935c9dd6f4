"""Pydantic schemas for the cart, wishlist, auth sessions and API errors."""

from storefront.schemas.auth import (  # noqa: F401
    AuthChangeEvent,
    AuthSession,
    AuthUser,
    LoginRequest,
    SessionResponse,
)
from storefront.schemas.cart import CartEntry, CartResponse, CountResponse  # noqa: F401
from storefront.schemas.product import ProductPayload  # noqa: F401
from storefront.schemas.wishlist import (  # noqa: F401
    MutationErrorType,
    PropagationStatus,
    ResyncResult,
    SyncStatus,
    WishlistContainsResponse,
    WishlistEntry,
    WishlistEvent,
    WishlistEventKind,
    WishlistMutationResult,
    WishlistResponse,
    WishlistRow,
)
