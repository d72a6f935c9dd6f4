"""Request helper shared by the Supabase REST and auth clients."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from storefront.errors import RemoteServiceError

logger = logging.getLogger(__name__)


def supabase_headers(api_key: str, access_token: str | None = None) -> dict[str, str]:
    """Headers every Supabase gateway call needs.

    Row level security evaluates the bearer token, so the user's access token is
    preferred over the anonymous key once a session exists.
    """

    return {
        "apikey": api_key,
        "Authorization": f"Bearer {access_token or api_key}",
        "Content-Type": "application/json",
    }


def error_message(response: httpx.Response) -> str:
    """Extract the most useful message from a Supabase error payload."""

    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        for key in ("message", "msg", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    headers: dict[str, str],
    params: dict[str, Any] | None = None,
    json: Any = None,
) -> httpx.Response:
    """Issue a request and translate httpx failures into ``RemoteServiceError``."""

    try:
        response = await client.request(
            method,
            url,
            headers=headers,
            params=params,
            json=json,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status_code = exc.response.status_code
        message = error_message(exc.response)
        logger.debug("%s %s returned %d: %s", method, url, status_code, message)
        raise RemoteServiceError(
            f"{method} {exc.request.url.path} returned {status_code}: {message}",
            status_code=status_code,
        ) from exc
    except httpx.HTTPError as exc:
        logger.debug("%s %s failed: %s", method, url, exc)
        raise RemoteServiceError(f"{method} {url} failed: {exc}") from exc
    return response


__all__ = ["error_message", "send", "supabase_headers"]
