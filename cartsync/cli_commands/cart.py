"""
CLI commands for the shopping cart.

Each invocation is one page load: catalog and cart are fetched concurrently,
then the requested change is sent to the server and the reconciled cart is
printed from the server's response.
"""

import asyncio
import sys
from typing import Awaitable, Callable, Optional

import click

from cartsync.cli_commands.common import (
    console,
    create_api_client,
    get_session_store,
    render_cart,
    report_error,
)
from cartsync.core.config import get_settings
from cartsync.core.exceptions import AuthError, CartSyncError
from cartsync.core.models import Session
from cartsync.services.storefront import Storefront

Action = Callable[[Storefront], Awaitable[object]]


async def _run_cart_action(ctx: click.Context, action: Optional[Action]) -> int:
    session = Session.from_store(get_session_store(ctx))

    async with create_api_client(ctx) as api:
        storefront = Storefront(
            api, session, debounce_seconds=get_settings().search.debounce_seconds
        )
        report = await storefront.start()

        if report.catalog_error:
            report_error(report.catalog_error)
        if report.cart_error:
            report_error(report.cart_error)
            if isinstance(report.cart_error, AuthError):
                console.print("Run [bold]cartsync login[/bold] to sign in again.")
            return 1

        if action is not None:
            try:
                await action(storefront)
            except CartSyncError as e:
                report_error(e)
                if not session.authenticated:
                    console.print("Run [bold]cartsync login[/bold] first.")
                return 1

        if not session.authenticated:
            console.print("[yellow]Warning:[/yellow] Login to view your cart")
            return 0 if action is None else 1

        render_cart(storefront.cart_summary())
        return 1 if report.catalog_error else 0


@click.group()
def cart():
    """View and change the server-held cart."""
    pass


@cart.command()
@click.pass_context
def show(ctx):
    """Show the cart with product details and total."""
    sys.exit(asyncio.run(_run_cart_action(ctx, None)))


@cart.command()
@click.argument("product_id")
@click.option("--qty", type=click.IntRange(min=1), default=1, show_default=True)
@click.pass_context
def add(ctx, product_id: str, qty: int):
    """Add a product from the listing. Refuses products already in the cart."""

    async def action(storefront: Storefront):
        await storefront.add_to_cart(product_id, qty)
        console.print(f"[green]Added[/green] {product_id} to cart")

    sys.exit(asyncio.run(_run_cart_action(ctx, action)))


@cart.command(name="set")
@click.argument("product_id")
@click.argument("qty", type=click.IntRange(min=0))
@click.pass_context
def set_quantity(ctx, product_id: str, qty: int):
    """Set a product's quantity; 0 removes it from the cart."""

    async def action(storefront: Storefront):
        await storefront.set_quantity(product_id, qty)
        console.print(f"[green]Updated[/green] {product_id} to quantity {qty}")

    sys.exit(asyncio.run(_run_cart_action(ctx, action)))
