"""Command line access to the cart and wishlist.

Usage:
    storefront cart add 42 --name "Desk lamp" --price 19.99 --quantity 2
    storefront cart show
    storefront wishlist add 42 --name "Desk lamp" --email me@example.com --password ...
    storefront wishlist sync --email me@example.com --password ...
    storefront wishlist sync          # reuses the session saved above
    storefront logout
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click
import uvicorn
from rich.console import Console
from rich.table import Table

from storefront.context import StorefrontContext, build_auth_client, build_context
from storefront.errors import StorefrontError
from storefront.log_config import configure_logging, log_config_warnings
from storefront.remote import SupabaseAuthClient
from storefront.schemas.wishlist import (
    PropagationStatus,
    ResyncResult,
    SyncStatus,
    WishlistMutationResult,
)
from storefront.services.session_store import SessionStore
from storefront.settings import AppSettings, get_settings
from storefront.storage import create_local_store

logger = logging.getLogger(__name__)
console = Console()

T = TypeVar("T")

_PROPAGATION_STYLES = {
    PropagationStatus.SYNCED: "green",
    PropagationStatus.SKIPPED: "yellow",
    PropagationStatus.FAILED: "red",
    PropagationStatus.NOT_ATTEMPTED: "red",
}

_SYNC_STYLES = {
    SyncStatus.COMPLETED: "green",
    SyncStatus.SKIPPED: "yellow",
    SyncStatus.UNBOUND: "yellow",
    SyncStatus.FAILED: "red",
}


def _product_from_options(
    product_id: str,
    name: str | None,
    price: float | None,
    image: str | None,
    description: str | None,
) -> dict[str, Any]:
    product: dict[str, Any] = {"id": product_id}
    if name is not None:
        product["name"] = name
    if price is not None:
        product["price"] = price
    if image is not None:
        product["image"] = image
    if description is not None:
        product["description"] = description
    return product


def _product_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = click.option("--description", default=None, help="Product description")(func)
    func = click.option("--image", default=None, help="Product image URL")(func)
    func = click.option("--price", type=float, default=None, help="Unit price")(func)
    func = click.option("--name", default=None, help="Display name")(func)
    return func


def _sign_in_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = click.option(
        "--password",
        envvar="STOREFRONT_PASSWORD",
        default=None,
        help="Password for --email (or STOREFRONT_PASSWORD)",
    )(func)
    func = click.option(
        "--email",
        envvar="STOREFRONT_EMAIL",
        default=None,
        help="Sign in first so the wishlist syncs with Supabase",
    )(func)
    return func


def _run(
    settings: AppSettings,
    action: Callable[[StorefrontContext], Awaitable[T]],
    *,
    email: str | None = None,
    password: str | None = None,
    use_saved_session: bool = False,
    require_session: bool = False,
) -> T:
    """Build a context, sign in or restore a saved session, run ``action``.

    A successful ``--email``/``--password`` sign-in is saved in the local
    store so later commands can sync without repeating the password.
    """

    async def _async_main() -> T:
        store = create_local_store(settings.local_store_url)
        sessions = SessionStore(store, settings.auth_session_storage_key)
        context = build_context(settings, store=store)
        auth = None
        try:
            if email:
                if not password:
                    raise click.UsageError("--password is required together with --email")
                auth = _require_auth_client(settings, "sign in")
                context.attach_auth(auth)
                session = await auth.sign_in_with_password(email, password)
                sessions.save(session)
            elif use_saved_session:
                saved = sessions.load()
                if saved is not None:
                    auth = build_auth_client(settings)
                    if auth is None:
                        logger.warning("Ignoring saved session: Supabase is not configured")
                    else:
                        context.attach_auth(auth)
                        await auth.restore_session(saved)

            if require_session and (auth is None or auth.session is None):
                raise click.UsageError(
                    "wishlist sync requires --email and --password"
                    " (or a session saved by an earlier sign-in)"
                )
            if context.last_resync is not None:
                _print_resync(context.last_resync)
            return await action(context)
        finally:
            await context.aclose()
            if auth is not None:
                await auth.aclose()

    try:
        return asyncio.run(_async_main())
    except StorefrontError as exc:
        raise click.ClickException(str(exc)) from exc


def _require_auth_client(settings: AppSettings, verb: str) -> SupabaseAuthClient:
    auth = build_auth_client(settings)
    if auth is None:
        raise click.ClickException(f"SUPABASE_URL and SUPABASE_ANON_KEY must be set to {verb}")
    return auth


def _print_mutation(verb: str, result: WishlistMutationResult) -> None:
    if not result.accepted:
        raise click.ClickException(f"Wishlist update rejected: {result.error}")
    style = _PROPAGATION_STYLES[result.propagation]
    console.print(
        f"{verb} product [bold]{result.product_id}[/bold] "
        f"(remote: [{style}]{result.propagation.value}[/{style}])"
    )
    if result.propagation is PropagationStatus.FAILED:
        console.print(f"[yellow]Saved locally; server not updated:[/yellow] {result.error}")


def _print_resync(result: ResyncResult) -> None:
    style = _SYNC_STYLES[result.status]
    console.print(
        f"Wishlist sync: [{style}]{result.status.value}[/{style}] "
        f"({result.entry_count} entries, {result.merged_count} kept local)"
    )
    if result.error:
        console.print(f"[red]{result.error}[/red]")


def _render_cart(context: StorefrontContext) -> None:
    entries = context.cart.entries()
    if not entries:
        console.print("[yellow]Cart is empty[/yellow]")
        return
    table = Table("Product ID", "Name", "Price", "Quantity", title="Shopping cart")
    for entry in entries:
        extra = entry.model_extra or {}
        price = extra.get("price")
        table.add_row(
            entry.product_id,
            str(extra.get("name", "")),
            f"{float(price):.2f}" if isinstance(price, (int, float)) else "",
            str(entry.quantity),
        )
    console.print(table)
    console.print(f"[bold]Total items:[/bold] {context.cart_item_count()}")


def _render_wishlist(context: StorefrontContext) -> None:
    entries = context.wishlist.entries()
    if not entries:
        console.print("[yellow]Wishlist is empty[/yellow]")
        return
    table = Table("Product ID", "Name", "Price", "Description", title="Wishlist")
    for entry in entries:
        table.add_row(entry.product_id, entry.name, f"{entry.price:.2f}", entry.description)
    console.print(table)
    console.print(f"[bold]Saved items:[/bold] {context.wishlist_item_count()}")


@click.group()
@click.option(
    "--store-url",
    default=None,
    help="Override LOCAL_STORE_URL (memory://, file://path, redis://host:port/db)",
)
@click.pass_context
def cli(ctx: click.Context, store_url: str | None) -> None:
    """Inspect and edit the storefront cart and wishlist."""

    settings = get_settings()
    if store_url:
        settings = settings.model_copy(update={"local_store_url": store_url})
    configure_logging(settings)
    log_config_warnings(settings, logger)
    ctx.obj = settings


@cli.group()
def cart() -> None:
    """Local-only shopping cart."""


@cart.command("add")
@click.argument("product_id")
@_product_options
@click.option("--quantity", type=int, default=1, show_default=True)
@click.pass_obj
def cart_add(
    settings: AppSettings,
    product_id: str,
    name: str | None,
    price: float | None,
    image: str | None,
    description: str | None,
    quantity: int,
) -> None:
    """Add PRODUCT_ID to the cart, merging quantities."""

    product = _product_from_options(product_id, name, price, image, description)
    product["quantity"] = quantity

    async def _action(context: StorefrontContext) -> None:
        line = context.add_to_cart(product)
        if line is None:
            raise click.BadParameter("quantity must be a positive integer", param_hint="--quantity")
        console.print(
            f"Cart now holds [bold]{line.quantity}[/bold] x {line.product_id} "
            f"({context.cart_item_count()} items total)"
        )

    _run(settings, _action)


@cart.command("remove")
@click.argument("product_id")
@click.pass_obj
def cart_remove(settings: AppSettings, product_id: str) -> None:
    """Remove PRODUCT_ID from the cart."""

    async def _action(context: StorefrontContext) -> None:
        if context.remove_from_cart(product_id):
            console.print(f"Removed {product_id} from the cart")
        else:
            console.print(f"[yellow]{product_id} was not in the cart[/yellow]")

    _run(settings, _action)


@cart.command("show")
@click.pass_obj
def cart_show(settings: AppSettings) -> None:
    """Print the cart contents."""

    async def _action(context: StorefrontContext) -> None:
        _render_cart(context)

    _run(settings, _action)


@cli.group()
def wishlist() -> None:
    """Wishlist, synced with Supabase when signed in."""


@wishlist.command("add")
@click.argument("product_id")
@_product_options
@_sign_in_options
@click.pass_obj
def wishlist_add(
    settings: AppSettings,
    product_id: str,
    name: str | None,
    price: float | None,
    image: str | None,
    description: str | None,
    email: str | None,
    password: str | None,
) -> None:
    """Save PRODUCT_ID to the wishlist."""

    product = _product_from_options(product_id, name, price, image, description)

    async def _action(context: StorefrontContext) -> WishlistMutationResult:
        return await context.add_to_wishlist(product)

    _print_mutation(
        "Added",
        _run(settings, _action, email=email, password=password, use_saved_session=True),
    )


@wishlist.command("remove")
@click.argument("product_id")
@_sign_in_options
@click.pass_obj
def wishlist_remove(
    settings: AppSettings,
    product_id: str,
    email: str | None,
    password: str | None,
) -> None:
    """Remove PRODUCT_ID from the wishlist."""

    async def _action(context: StorefrontContext) -> WishlistMutationResult:
        return await context.remove_from_wishlist(product_id)

    _print_mutation(
        "Removed",
        _run(settings, _action, email=email, password=password, use_saved_session=True),
    )


@wishlist.command("show")
@click.pass_obj
def wishlist_show(settings: AppSettings) -> None:
    """Print the locally cached wishlist."""

    async def _action(context: StorefrontContext) -> None:
        _render_wishlist(context)

    _run(settings, _action)


@wishlist.command("sync")
@_sign_in_options
@click.pass_obj
def wishlist_sync(settings: AppSettings, email: str | None, password: str | None) -> None:
    """Replace the local wishlist with the server copy (signs in first if asked)."""

    async def _action(context: StorefrontContext) -> None:
        _render_wishlist(context)

    _run(
        settings,
        _action,
        email=email,
        password=password,
        use_saved_session=True,
        require_session=True,
    )


@cli.command("signup")
@click.option("--email", required=True)
@click.option("--password", required=True, prompt=True, hide_input=True)
@click.option("--full-name", default=None)
@click.option("--phone", default=None)
@click.pass_obj
def signup(
    settings: AppSettings,
    email: str,
    password: str,
    full_name: str | None,
    phone: str | None,
) -> None:
    """Create a Supabase account for wishlist sync."""

    auth = _require_auth_client(settings, "sign up")

    async def _async_main() -> str:
        try:
            user = await auth.sign_up(email, password, full_name=full_name, phone=phone)
        finally:
            await auth.aclose()
        return user.id

    try:
        user_id = asyncio.run(_async_main())
    except StorefrontError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(
        f"[green]Registered {email}[/green] (user {user_id}); "
        "check your inbox if e-mail confirmation is enabled"
    )


@cli.command("logout")
@click.pass_obj
def logout(settings: AppSettings) -> None:
    """Revoke and forget the session saved by an earlier sign-in."""

    sessions = SessionStore(
        create_local_store(settings.local_store_url), settings.auth_session_storage_key
    )
    saved = sessions.load()
    sessions.clear()
    if saved is None:
        console.print("[yellow]No saved session[/yellow]")
        return

    auth = build_auth_client(settings)
    if auth is not None:

        async def _async_main() -> None:
            try:
                await auth.restore_session(saved)
                await auth.sign_out()
            finally:
                await auth.aclose()

        asyncio.run(_async_main())
    console.print(f"Signed out {saved.user.email or saved.user.id}")


@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", type=int, default=8000, show_default=True)
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the HTTP API with uvicorn."""

    uvicorn.run("storefront.main:create_app", factory=True, host=host, port=port, reload=reload)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
