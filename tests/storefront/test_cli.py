"""Tests for the ``storefront`` click command group."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

import storefront.cli as cli_module
from storefront.cli import cli
from storefront.remote import SupabaseAuthClient
from tests.storefront.support.in_memory_wishlist import InMemoryWishlistService, remote_row


@pytest.fixture
def store_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    return f"file://{tmp_path / 'storefront.json'}"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _stored(store_url: str, key: str) -> list[dict[str, object]]:
    document = json.loads(Path(store_url.removeprefix("file://")).read_text(encoding="utf-8"))
    return json.loads(document[key])


def test_cart_commands_share_the_local_store(runner: CliRunner, store_url: str) -> None:
    first = runner.invoke(
        cli, ["--store-url", store_url, "cart", "add", "lamp", "--name", "Lamp", "--quantity", "2"]
    )
    second = runner.invoke(cli, ["--store-url", store_url, "cart", "add", "lamp"])

    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert "3 items total" in second.output
    assert _stored(store_url, "shoppingCart") == [{"id": "lamp", "quantity": 3, "name": "Lamp"}]

    shown = runner.invoke(cli, ["--store-url", store_url, "cart", "show"])
    assert "lamp" in shown.output
    assert "Total items: 3" in shown.output

    removed = runner.invoke(cli, ["--store-url", store_url, "cart", "remove", "lamp"])
    assert "Removed lamp" in removed.output
    again = runner.invoke(cli, ["--store-url", store_url, "cart", "remove", "lamp"])
    assert "was not in the cart" in again.output


def test_cart_add_rejects_non_positive_quantity(runner: CliRunner, store_url: str) -> None:
    result = runner.invoke(
        cli, ["--store-url", store_url, "cart", "add", "lamp", "--quantity", "0"]
    )

    assert result.exit_code != 0
    assert "positive" in result.output


def test_wishlist_add_offline_then_duplicate(runner: CliRunner, store_url: str) -> None:
    added = runner.invoke(
        cli, ["--store-url", store_url, "wishlist", "add", "42", "--name", "Chair"]
    )

    assert added.exit_code == 0, added.output
    assert "remote: skipped" in added.output
    assert [record["id"] for record in _stored(store_url, "wishlist")] == ["42"]

    duplicate = runner.invoke(cli, ["--store-url", store_url, "wishlist", "add", "42"])
    assert duplicate.exit_code == 1
    assert "already in the wishlist" in duplicate.output

    shown = runner.invoke(cli, ["--store-url", store_url, "wishlist", "show"])
    assert "Chair" in shown.output


def test_wishlist_sync_requires_credentials(runner: CliRunner, store_url: str) -> None:
    result = runner.invoke(cli, ["--store-url", store_url, "wishlist", "sync"])

    assert result.exit_code == 2
    assert "--email" in result.output


def test_sign_in_without_supabase_configuration_fails(
    runner: CliRunner, store_url: str
) -> None:
    result = runner.invoke(
        cli,
        [
            "--store-url",
            store_url,
            "wishlist",
            "sync",
            "--email",
            "shopper@example.com",
            "--password",
            "hunter22",
        ],
    )

    assert result.exit_code == 1
    assert "SUPABASE_URL and SUPABASE_ANON_KEY must be set" in result.output



def test_signup_requires_supabase_configuration(runner: CliRunner, store_url: str) -> None:
    result = runner.invoke(
        cli,
        ["--store-url", store_url, "signup", "--email", "new@example.com", "--password", "pw123456"],
    )

    assert result.exit_code == 1
    assert "must be set to sign up" in result.output


_SIGN_IN = ["--email", "shopper@example.com", "--password", "hunter22"]


class _FakeSupabase:
    """Wires the CLI to an in-memory wishlist table and a mocked GoTrue."""

    def __init__(self, monkeypatch: pytest.MonkeyPatch, remote: InMemoryWishlistService) -> None:
        self.remote = remote
        self.auth_paths: list[str] = []
        real_build_context = cli_module.build_context

        monkeypatch.setattr(cli_module, "build_auth_client", self._auth_client)
        monkeypatch.setattr(
            cli_module,
            "build_context",
            lambda settings, **kwargs: real_build_context(
                settings, remote_client_factory=lambda _: remote, **kwargs
            ),
        )

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.auth_paths.append(request.url.path)
        return httpx.Response(
            200,
            json={
                "access_token": "token-1",
                "user": {"id": "user-1", "email": "shopper@example.com"},
            },
        )

    def _auth_client(self, settings: object) -> SupabaseAuthClient:
        return SupabaseAuthClient(
            base_url="https://project.supabase.co",
            api_key="anon-key",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(self._handler)),
        )


def _document(store_url: str) -> dict[str, str]:
    return json.loads(Path(store_url.removeprefix("file://")).read_text(encoding="utf-8"))


def test_wishlist_sync_signs_in_and_pulls_server_copy(
    runner: CliRunner, store_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    supabase = _FakeSupabase(
        monkeypatch, InMemoryWishlistService([remote_row("user-1", "B", name="Bookshelf")])
    )

    runner.invoke(cli, ["--store-url", store_url, "wishlist", "add", "offline"])
    result = runner.invoke(cli, ["--store-url", store_url, "wishlist", "sync", *_SIGN_IN])

    assert result.exit_code == 0, result.output
    assert "Wishlist sync: completed" in result.output
    assert "Bookshelf" in result.output
    assert [record["id"] for record in _stored(store_url, "wishlist")] == ["B"]
    assert supabase.remote.closed is True


def test_saved_session_lets_later_commands_sync_without_password(
    runner: CliRunner, store_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    supabase = _FakeSupabase(monkeypatch, InMemoryWishlistService())

    signed_in = runner.invoke(cli, ["--store-url", store_url, "wishlist", "sync", *_SIGN_IN])
    assert signed_in.exit_code == 0, signed_in.output
    assert json.loads(_document(store_url)["authSession"])["access_token"] == "token-1"

    added = runner.invoke(cli, ["--store-url", store_url, "wishlist", "add", "lamp"])
    assert added.exit_code == 0, added.output
    assert "remote: synced" in added.output
    assert [row.product_id for row in supabase.remote.inserted] == ["lamp"]

    synced = runner.invoke(cli, ["--store-url", store_url, "wishlist", "sync"])
    assert synced.exit_code == 0, synced.output
    assert "Wishlist sync: completed" in synced.output
    assert supabase.auth_paths == ["/auth/v1/token"]

    logged_out = runner.invoke(cli, ["--store-url", store_url, "logout"])
    assert logged_out.exit_code == 0, logged_out.output
    assert "Signed out shopper@example.com" in logged_out.output
    assert supabase.auth_paths == ["/auth/v1/token", "/auth/v1/logout"]
    assert _document(store_url)["authSession"] == ""

    again = runner.invoke(cli, ["--store-url", store_url, "wishlist", "sync"])
    assert again.exit_code == 2
    assert "--email" in again.output


def test_expired_saved_session_is_not_reused(
    runner: CliRunner, store_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    _FakeSupabase(monkeypatch, InMemoryWishlistService())
    expired = {
        "access_token": "old-token",
        "expires_at": 1,
        "user": {"id": "user-1"},
    }
    Path(store_url.removeprefix("file://")).write_text(
        json.dumps({"authSession": json.dumps(expired)}), encoding="utf-8"
    )

    result = runner.invoke(cli, ["--store-url", store_url, "wishlist", "sync"])

    assert result.exit_code == 2
    assert "saved by an earlier sign-in" in result.output


def test_offline_additions_survive_until_sign_in_when_merging(
    runner: CliRunner, store_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("MERGE_UNSYNCED_ON_RESYNC", "true")
    supabase = _FakeSupabase(
        monkeypatch, InMemoryWishlistService([remote_row("user-1", "B", name="Bookshelf")])
    )

    runner.invoke(cli, ["--store-url", store_url, "wishlist", "add", "X", "--name", "Chair"])
    result = runner.invoke(cli, ["--store-url", store_url, "wishlist", "sync", *_SIGN_IN])

    assert result.exit_code == 0, result.output
    assert "1 kept local" in result.output
    assert [record["id"] for record in _stored(store_url, "wishlist")] == ["B", "X"]
    assert [row.product_id for row in supabase.remote.inserted] == ["X"]
    assert _stored(store_url, "wishlistPending") == []


def test_logout_without_saved_session(runner: CliRunner, store_url: str) -> None:
    result = runner.invoke(cli, ["--store-url", store_url, "logout"])

    assert result.exit_code == 0, result.output
    assert "No saved session" in result.output
