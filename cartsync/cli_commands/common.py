"""Shared helpers for CLI commands: client construction and rendering."""

from __future__ import annotations

from typing import Iterable

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cartsync.core.config import get_settings
from cartsync.core.exceptions import CartSyncError
from cartsync.core.models import CartSummary, Product, SessionStore
from cartsync.data.api_client import StorefrontApiClient
from cartsync.data.session_store import FileSessionStore

console = Console()


def get_session_store(ctx: click.Context) -> SessionStore:
    """Session store from the context, defaulting to the configured JSON file."""
    obj = ctx.ensure_object(dict)
    if obj.get("session_store") is None:
        obj["session_store"] = FileSessionStore(get_settings().resolved_session_path())
    return obj["session_store"]


def create_api_client(ctx: click.Context) -> StorefrontApiClient:
    """API client for the configured endpoint; tests may inject an httpx transport."""
    obj = ctx.ensure_object(dict)
    return StorefrontApiClient(get_settings().api, transport=obj.get("transport"))


def report_error(error: CartSyncError) -> None:
    """Print warnings in yellow and errors in red, with the message verbatim."""
    if error.level == "warning":
        console.print(f"[yellow]Warning:[/yellow] {escape(error.message)}")
    else:
        console.print(f"[red]Error:[/red] {escape(error.message)}")


def render_products(products: Iterable[Product], title: str = "Products") -> None:
    products = list(products)
    if not products:
        console.print("[yellow]No products found[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Cost", justify="right")
    table.add_column("Rating", justify="right")

    for product in products:
        table.add_row(
            product.id,
            escape(product.name),
            escape(product.category),
            f"${product.cost:g}",
            "★" * product.rating,
        )

    console.print(table)


def render_cart(summary: CartSummary) -> None:
    if not summary.items:
        console.print("[yellow]Cart is empty[/yellow]")
        return

    table = Table(title="Cart")
    table.add_column("Product", style="cyan")
    table.add_column("Qty", justify="right")
    table.add_column("Subtotal", justify="right")

    for item in summary.items:
        table.add_row(escape(item.product.name), str(item.quantity), f"${item.subtotal:g}")

    console.print(table)
    console.print(
        f"[bold]Total:[/bold] ${summary.total_cost:g} ({summary.total_quantity} items)"
    )
