"""Supabase GoTrue authentication client.

The storefront only needs a user identity (and an access token for row level
security) once sign-in completes. Listeners registered through
:meth:`SupabaseAuthClient.on_auth_state_change` are awaited in registration
order whenever the session changes, which is how the wishlist learns when to
bind or unbind remote synchronization.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from pydantic import ValidationError

from storefront.errors import AuthenticationError, RemoteServiceError
from storefront.remote.http import send, supabase_headers
from storefront.schemas.auth import AuthChangeEvent, AuthSession, AuthUser

logger = logging.getLogger(__name__)

AuthListener = Callable[[AuthChangeEvent, AuthSession | None], Awaitable[None]]


class SupabaseAuthClient:
    """Minimal GoTrue client: sign-up, password sign-in, sign-out, listeners."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._auth_url = f"{base_url.rstrip('/')}/auth/v1"
        self._api_key = api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._session: AuthSession | None = None
        self._listeners: list[AuthListener] = []

    @property
    def session(self) -> AuthSession | None:
        return self._session

    @property
    def user_id(self) -> str | None:
        return self._session.user.id if self._session is not None else None

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def sign_up(
        self,
        email: str,
        password: str,
        *,
        full_name: str | None = None,
        phone: str | None = None,
    ) -> AuthUser:
        """Create an account; Supabase may require e-mail confirmation afterwards."""

        metadata: dict[str, Any] = {}
        if full_name:
            metadata["full_name"] = full_name
        if phone:
            metadata["phone"] = phone

        payload = await self._post_json(
            "/signup",
            body={"email": email, "password": password, "data": metadata},
            action="Registration",
        )
        user_payload = payload.get("user", payload)
        try:
            return AuthUser.model_validate(user_payload)
        except ValidationError as exc:
            raise AuthenticationError(f"Registration returned an unexpected payload: {exc}") from exc

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        payload = await self._post_json(
            "/token",
            body={"email": email, "password": password},
            params={"grant_type": "password"},
            action="Login",
        )
        try:
            session = AuthSession.model_validate(payload)
        except ValidationError as exc:
            raise AuthenticationError(f"Login returned an unexpected payload: {exc}") from exc

        self._session = session
        logger.info("Signed in as %s", session.user.email or session.user.id)
        await self._notify(AuthChangeEvent.SIGNED_IN)
        return session

    async def restore_session(self, session: AuthSession) -> None:
        """Adopt a session saved by an earlier sign-in without contacting GoTrue."""

        self._session = session
        logger.info("Restored session for %s", session.user.email or session.user.id)
        await self._notify(AuthChangeEvent.SIGNED_IN)

    async def sign_out(self) -> None:
        """Revoke the current session; the local session is cleared regardless."""

        session = self._session
        if session is None:
            return

        try:
            await send(
                self._client,
                "POST",
                f"{self._auth_url}/logout",
                headers=supabase_headers(self._api_key, session.access_token),
            )
        except RemoteServiceError as exc:
            logger.warning("Remote sign-out failed; clearing local session anyway: %s", exc)

        self._session = None
        logger.info("Signed out")
        await self._notify(AuthChangeEvent.SIGNED_OUT)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post_json(
        self,
        path: str,
        *,
        body: dict[str, Any],
        action: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await send(
                self._client,
                "POST",
                f"{self._auth_url}{path}",
                headers=supabase_headers(self._api_key),
                params=params,
                json=body,
            )
        except RemoteServiceError as exc:
            if exc.status_code is not None and 400 <= exc.status_code < 500:
                raise AuthenticationError(f"{action} failed: {exc}") from exc
            raise

        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthenticationError(f"{action} returned a non-JSON body") from exc
        if not isinstance(payload, dict):
            raise AuthenticationError(f"{action} returned an unexpected payload")
        return payload

    async def _notify(self, event: AuthChangeEvent) -> None:
        for listener in list(self._listeners):
            await listener(event, self._session)


__all__ = ["AuthListener", "SupabaseAuthClient"]
