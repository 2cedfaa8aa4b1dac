"""CLI commands for browsing and searching the catalog."""

import asyncio
import sys
from typing import List, Optional, Tuple

import click

from cartsync.cli_commands.common import create_api_client, render_products, report_error
from cartsync.core.config import get_settings
from cartsync.core.exceptions import CartSyncError
from cartsync.services.catalog_service import CatalogStore
from cartsync.services.search_service import SearchController


@click.command()
@click.pass_context
def products(ctx):
    """List the full product catalog."""

    async def _load():
        async with create_api_client(ctx) as api:
            return await CatalogStore(api).load()

    try:
        catalog = asyncio.run(_load())
    except CartSyncError as e:
        report_error(e)
        sys.exit(1)

    render_products(catalog)


@click.command()
@click.argument("keystrokes", nargs=-1, required=True)
@click.option(
    "--debounce-ms",
    type=click.IntRange(min=0),
    default=None,
    help="Override the configured debounce window",
)
@click.pass_context
def search(ctx, keystrokes: Tuple[str, ...], debounce_ms: Optional[int]):
    """Search products.

    Each argument is treated as the search box contents after one keystroke,
    e.g. ``cartsync search p ph pho phone``. Only the last one is displayed.
    """
    settings = get_settings()
    debounce_seconds = (
        settings.search.debounce_seconds if debounce_ms is None else debounce_ms / 1000.0
    )
    errors: List[CartSyncError] = []

    async def _search():
        async with create_api_client(ctx) as api:
            controller = SearchController(
                api, debounce_seconds=debounce_seconds, on_error=errors.append
            )
            for text in keystrokes:
                controller.submit(text)
            await controller.wait_idle()
            return controller

    controller = asyncio.run(_search())

    if errors:
        report_error(errors[-1])
        sys.exit(1)

    render_products(controller.results, title=f"Results for '{controller.displayed_query}'")
