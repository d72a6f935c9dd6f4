"""Storefront cart and Supabase-synced wishlist."""

__version__ = "0.1.0"
