"""Sign-in/out endpoints that drive wishlist binding through auth events."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from storefront.context import StorefrontContext
from storefront.remote.auth import SupabaseAuthClient
from storefront.schemas.auth import LoginRequest, SessionResponse
from storefront.services.dependencies import get_auth_client, get_context

router = APIRouter()


@router.get("", response_model=SessionResponse)
async def current_session(
    auth: SupabaseAuthClient = Depends(get_auth_client),
) -> SessionResponse:
    session = auth.session
    if session is None:
        return SessionResponse()
    return SessionResponse(user_id=session.user.id, email=session.user.email)


@router.post("/login", response_model=SessionResponse)
async def login(
    payload: LoginRequest,
    auth: SupabaseAuthClient = Depends(get_auth_client),
    context: StorefrontContext = Depends(get_context),
) -> SessionResponse:
    """Sign in; the ``SIGNED_IN`` listener binds and resyncs the wishlist."""

    session = await auth.sign_in_with_password(payload.email, payload.password)
    return SessionResponse(
        user_id=session.user.id,
        email=session.user.email,
        resync=context.last_resync,
    )


@router.post("/logout", response_model=SessionResponse)
async def logout(
    auth: SupabaseAuthClient = Depends(get_auth_client),
) -> SessionResponse:
    await auth.sign_out()
    return SessionResponse()
