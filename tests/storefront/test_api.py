"""End-to-end API tests running the FastAPI app through ``httpx.ASGITransport``."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from storefront.context import StorefrontContext, build_context
from storefront.main import create_app
from storefront.remote import SupabaseAuthClient
from storefront.schemas.auth import AuthSession
from storefront.settings import AppSettings
from storefront.storage import MemoryLocalStore
from tests.storefront.support.in_memory_wishlist import (
    InMemoryWishlistService,
    RejectingLocalStore,
    remote_row,
    service_error,
)


def _settings() -> AppSettings:
    return AppSettings(
        LOCAL_STORE_URL="memory://",
        SUPABASE_URL="https://project.supabase.co",
        SUPABASE_ANON_KEY="anon-key",
    )


def _auth_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/logout"):
        return httpx.Response(204)
    body = json.loads(request.content)
    if body.get("password") != "hunter22":
        return httpx.Response(
            400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"}
        )
    return httpx.Response(
        200,
        json={"access_token": "token-1", "user": {"id": "user-1", "email": body["email"]}},
    )


@pytest.fixture
def remote() -> InMemoryWishlistService:
    return InMemoryWishlistService([remote_row("user-1", "B")])


@pytest.fixture
def context(remote: InMemoryWishlistService) -> StorefrontContext:
    def factory(session: AuthSession) -> InMemoryWishlistService:
        return remote

    return build_context(_settings(), store=MemoryLocalStore(), remote_client_factory=factory)


@pytest.fixture
def auth() -> SupabaseAuthClient:
    return SupabaseAuthClient(
        base_url="https://project.supabase.co",
        api_key="anon-key",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_auth_handler)),
    )


@pytest.fixture
def app(context: StorefrontContext, auth: SupabaseAuthClient) -> FastAPI:
    return create_app(_settings(), context=context, auth=auth)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


@pytest.mark.asyncio
async def test_cart_endpoints_merge_quantities(client: httpx.AsyncClient) -> None:
    first = await client.post("/cart/items", json={"id": "lamp", "name": "Lamp", "price": 20})
    second = await client.post("/cart/items", json={"id": "lamp", "quantity": 3})

    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["total_items"] == 4
    assert second.json()["items"] == [
        {"id": "lamp", "quantity": 4, "name": "Lamp", "price": 20.0}
    ]

    count = await client.get("/cart/count")
    assert count.json() == {"count": 4}

    for _ in range(2):
        removed = await client.delete("/cart/items/lamp")
        assert removed.status_code == 200
        assert removed.json() == {"total_items": 0, "items": []}


@pytest.mark.asyncio
async def test_cart_rejects_product_without_identifier(client: httpx.AsyncClient) -> None:
    response = await client.post("/cart/items", json={"name": "Mystery"})

    assert response.status_code == 422
    payload = response.json()
    assert payload["error_type"] == "validation_error"
    assert payload["request_id"] == response.headers["X-Request-ID"]
    assert payload["path"] == "/cart/items"


@pytest.mark.asyncio
async def test_request_validation_errors_use_structured_payload(
    client: httpx.AsyncClient,
) -> None:
    response = await client.post("/cart/items", json={"id": "lamp", "quantity": "many"})

    assert response.status_code == 422
    payload = response.json()
    assert payload["message"] == "Request validation failed"
    assert payload["errors"][0]["field"] == "body.quantity"


@pytest.mark.asyncio
async def test_wishlist_add_query_and_remove_unbound(client: httpx.AsyncClient) -> None:
    added = await client.post("/wishlist/items", json={"id": 42, "name": "Chair"})

    assert added.status_code == 201
    assert added.json()["propagation"] == "skipped"
    assert added.json()["product_id"] == "42"

    contains = await client.get("/wishlist/items/42")
    assert contains.json() == {"product_id": "42", "in_wishlist": True}

    listing = await client.get("/wishlist")
    assert listing.json()["count"] == 1
    assert listing.json()["items"][0]["image_url"] == "https://via.placeholder.com/400"

    removed = await client.delete("/wishlist/items/42")
    assert removed.status_code == 200
    assert removed.json()["local_committed"] is True

    count = await client.get("/wishlist/count")
    assert count.json() == {"count": 0}


@pytest.mark.asyncio
async def test_duplicate_wishlist_add_returns_conflict(client: httpx.AsyncClient) -> None:
    await client.post("/wishlist/items", json={"id": "A"})

    response = await client.post("/wishlist/items", json={"id": "A"})

    assert response.status_code == 409
    assert response.json()["error_type"] == "duplicate_entry"

    count = await client.get("/wishlist/count")
    assert count.json() == {"count": 1}


@pytest.mark.asyncio
async def test_failed_remote_insert_still_creates_local_entry(
    client: httpx.AsyncClient,
    context: StorefrontContext,
    remote: InMemoryWishlistService,
) -> None:
    await context.bind_wishlist_sync(remote, "user-1")
    remote.fail_insert = service_error()

    response = await client.post("/wishlist/items", json={"id": "X"})

    assert response.status_code == 201
    assert response.json()["propagation"] == "failed"
    assert response.json()["error_type"] == "propagation"
    contains = await client.get("/wishlist/items/X")
    assert contains.json()["in_wishlist"] is True


@pytest.mark.asyncio
async def test_login_binds_wishlist_and_logout_unbinds(
    client: httpx.AsyncClient, context: StorefrontContext
) -> None:
    await client.post("/wishlist/items", json={"id": "offline"})

    login = await client.post(
        "/session/login", json={"email": "shopper@example.com", "password": "hunter22"}
    )

    assert login.status_code == 200
    body = login.json()
    assert body["user_id"] == "user-1"
    assert body["resync"]["status"] == "completed"
    assert body["resync"]["entry_count"] == 1
    assert (await client.get("/session")).json()["user_id"] == "user-1"

    listing = await client.get("/wishlist")
    assert [item["id"] for item in listing.json()["items"]] == ["B"]

    sync = await client.post("/wishlist/sync")
    assert sync.json()["status"] == "completed"

    logout = await client.post("/session/logout")
    assert logout.json()["user_id"] is None
    assert context.wishlist.is_bound is False

    unbound_sync = await client.post("/wishlist/sync")
    assert unbound_sync.json()["status"] == "unbound"


@pytest.mark.asyncio
async def test_login_with_bad_credentials_is_unauthorized(client: httpx.AsyncClient) -> None:
    response = await client.post(
        "/session/login", json={"email": "shopper@example.com", "password": "wrong-pass"}
    )

    assert response.status_code == 401
    assert response.json()["error_type"] == "authentication_error"
    assert "Invalid login credentials" in response.json()["detail"]


@pytest.mark.asyncio
async def test_login_without_auth_configuration_is_unavailable() -> None:
    context = build_context(_settings(), store=MemoryLocalStore())
    app = create_app(_settings(), context=context)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        response = await http.post(
            "/session/login", json={"email": "shopper@example.com", "password": "hunter22"}
        )

    assert response.status_code == 503
    assert response.json()["error_type"] == "remote_error"


@pytest.mark.asyncio
async def test_local_persistence_failure_maps_to_server_error() -> None:
    context = build_context(_settings(), store=RejectingLocalStore())
    app = create_app(_settings(), context=context)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        response = await http.post("/cart/items", json={"id": "lamp"})

    assert response.status_code == 500
    assert response.json()["error_type"] == "local_persistence_error"


@pytest.mark.asyncio
async def test_health_reports_binding_state(client: httpx.AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "wishlist_bound": False,
        "wishlist_sync_in_progress": False,
    }
    assert response.headers["X-Request-ID"]
