"""Centralized configuration management for the storefront core."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load a local .env before the settings singleton is created so CLI commands and
# the HTTP app see the same environment.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_LOCAL_STORE_URL = "file://./data/storefront.json"
DEFAULT_CART_STORAGE_KEY = "shoppingCart"
DEFAULT_WISHLIST_STORAGE_KEY = "wishlist"
DEFAULT_WISHLIST_PENDING_STORAGE_KEY = "wishlistPending"
DEFAULT_AUTH_SESSION_STORAGE_KEY = "authSession"
DEFAULT_PLACEHOLDER_IMAGE_URL = "https://via.placeholder.com/400"
DEFAULT_PLACEHOLDER_DESCRIPTION = "No description available"
DEFAULT_REMOTE_TIMEOUT_SECONDS = 10.0
DEFAULT_LOG_LEVEL = "INFO"
SUPPORTED_LOCAL_STORE_SCHEMES = ("memory", "file", "redis", "rediss")


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Every field maps to an environment variable (see the ``alias``) so the same
    configuration drives the HTTP app, the CLI, and tests that construct
    settings explicitly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    supabase_url: str | None = Field(
        default=None,
        alias="SUPABASE_URL",
        description=(
            "Base URL of the Supabase project, e.g. https://<ref>.supabase.co."
            " When unset the wishlist never binds and stays local-only."
        ),
    )
    supabase_anon_key: str | None = Field(
        default=None,
        alias="SUPABASE_ANON_KEY",
        description="Public anonymous API key sent as the ``apikey`` header.",
    )
    local_store_url: str = Field(
        default=DEFAULT_LOCAL_STORE_URL,
        alias="LOCAL_STORE_URL",
        description=(
            "Location of the persistent key/value store: memory://,"
            " file:///path/to/store.json, or redis://host:port/db."
        ),
    )
    cart_storage_key: str = Field(
        default=DEFAULT_CART_STORAGE_KEY,
        alias="CART_STORAGE_KEY",
        description="Local store key holding the serialized cart.",
    )
    wishlist_storage_key: str = Field(
        default=DEFAULT_WISHLIST_STORAGE_KEY,
        alias="WISHLIST_STORAGE_KEY",
        description="Local store key holding the serialized wishlist.",
    )
    wishlist_pending_storage_key: str = Field(
        default=DEFAULT_WISHLIST_PENDING_STORAGE_KEY,
        alias="WISHLIST_PENDING_STORAGE_KEY",
        description="Local store key listing wishlist ids the server has not acknowledged.",
    )
    auth_session_storage_key: str = Field(
        default=DEFAULT_AUTH_SESSION_STORAGE_KEY,
        alias="AUTH_SESSION_STORAGE_KEY",
        description="Local store key holding the last GoTrue session for the CLI.",
    )
    placeholder_image_url: str = Field(
        default=DEFAULT_PLACEHOLDER_IMAGE_URL,
        alias="PLACEHOLDER_IMAGE_URL",
    )
    placeholder_description: str = Field(
        default=DEFAULT_PLACEHOLDER_DESCRIPTION,
        alias="PLACEHOLDER_DESCRIPTION",
    )
    remote_timeout_seconds: float = Field(
        default=DEFAULT_REMOTE_TIMEOUT_SECONDS,
        alias="REMOTE_TIMEOUT_SECONDS",
        gt=0,
        description="Per-request timeout applied by the Supabase HTTP clients.",
    )
    merge_unsynced_on_resync: bool = Field(
        default=False,
        alias="MERGE_UNSYNCED_ON_RESYNC",
        description=(
            "Keep wishlist entries that never reached the server when a resync"
            " replaces local state, and try to push them afterwards."
        ),
    )
    local_persistence_fallback: Literal["raise", "memory"] = Field(
        default="raise",
        alias="LOCAL_PERSISTENCE_FALLBACK",
        description=(
            "Behaviour when the local store rejects a write: raise"
            " LocalPersistenceError or continue memory-only for the session."
        ),
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )

    @property
    def remote_sync_configured(self) -> bool:
        """Return ``True`` when both Supabase URL and key are available."""

        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def local_store_scheme(self) -> str:
        """Return the scheme portion of ``local_store_url``."""

        scheme, _, _ = self.local_store_url.partition("://")
        scheme = scheme.lower()
        if scheme not in SUPPORTED_LOCAL_STORE_SCHEMES:
            raise RuntimeError(
                f"Unsupported LOCAL_STORE_URL scheme '{scheme}'; expected one of"
                f" {', '.join(SUPPORTED_LOCAL_STORE_SCHEMES)}"
            )
        return scheme

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self.supabase_url:
            warnings.append(
                "SUPABASE_URL is not set - wishlist will stay local-only "
                "(no remote synchronization)"
            )
        elif not self.supabase_anon_key:
            warnings.append(
                "SUPABASE_ANON_KEY is not set - remote requests will be rejected "
                "by the Supabase gateway"
            )

        if self.local_store_scheme == "memory":
            warnings.append(
                "LOCAL_STORE_URL uses memory:// - cart and wishlist are lost on exit"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_AUTH_SESSION_STORAGE_KEY",
    "DEFAULT_CART_STORAGE_KEY",
    "DEFAULT_LOCAL_STORE_URL",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_PLACEHOLDER_DESCRIPTION",
    "DEFAULT_PLACEHOLDER_IMAGE_URL",
    "DEFAULT_REMOTE_TIMEOUT_SECONDS",
    "DEFAULT_WISHLIST_PENDING_STORAGE_KEY",
    "DEFAULT_WISHLIST_STORAGE_KEY",
    "get_settings",
]
