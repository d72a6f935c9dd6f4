"""Exception taxonomy shared by the cart, wishlist and remote clients."""

from __future__ import annotations


class StorefrontError(Exception):
    """Base class for every storefront-specific failure."""


class EntryValidationError(StorefrontError):
    """Raised when a product payload is malformed (for example, no identifier)."""


class DuplicateEntryError(StorefrontError):
    """Raised when a wishlist already holds the supplied product."""


class RemoteUnavailableError(StorefrontError):
    """No remote client or user identity is bound for a sync-dependent step."""


class RemoteServiceError(StorefrontError):
    """A remote call failed at the transport or HTTP level.

    ``status_code`` is populated when the server answered with an error status.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemotePropagationError(StorefrontError):
    """A remote write or read failed after the local mutation committed."""

    def __init__(self, operation: str, product_id: str | None, cause: BaseException) -> None:
        target = f" for product {product_id}" if product_id is not None else ""
        super().__init__(f"Remote {operation}{target} failed: {cause}")
        self.operation = operation
        self.product_id = product_id
        self.cause = cause


class AuthenticationError(StorefrontError):
    """Sign-in, sign-up or sign-out against the auth provider failed."""


class LocalPersistenceError(StorefrontError):
    """The local key/value store rejected a write."""


__all__ = [
    "AuthenticationError",
    "DuplicateEntryError",
    "EntryValidationError",
    "LocalPersistenceError",
    "RemotePropagationError",
    "RemoteServiceError",
    "RemoteUnavailableError",
    "StorefrontError",
]
