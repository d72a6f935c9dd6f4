"""Schemas describing authentication sessions returned by Supabase GoTrue."""

from __future__ import annotations

import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from storefront.schemas.wishlist import ResyncResult


class AuthChangeEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class AuthUser(BaseModel):
    """Subset of the GoTrue user object the storefront relies on."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Stable user identity used as wishlist.user_id")
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class AuthSession(BaseModel):
    """Token grant returned by ``/auth/v1/token``."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int | None = None
    expires_at: int | None = Field(None, description="Unix time the access token stops working")
    user: AuthUser

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (time.time() if now is None else now)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=6, description="GoTrue requires 6+ chars")


class SessionResponse(BaseModel):
    """Response of the session endpoints."""

    user_id: str | None = None
    email: str | None = None
    resync: ResyncResult | None = None


__all__ = [
    "AuthChangeEvent",
    "AuthSession",
    "AuthUser",
    "LoginRequest",
    "SessionResponse",
]
