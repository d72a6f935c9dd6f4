"""Cart and wishlist domain services.

``CartStore`` is local-only; ``WishlistCache`` adds best-effort remote
propagation and resynchronization on top of the same ``LocalMirror``.
"""

from .cart_store import CartStore
from .persistence import LocalMirror
from .session_store import SessionStore
from .wishlist_cache import WishlistCache, WishlistListener

__all__ = [
    "CartStore",
    "LocalMirror",
    "SessionStore",
    "WishlistCache",
    "WishlistListener",
]
