"""
Page-load orchestration for the catalog and cart.

Loads the catalog and the remote cart concurrently, keeps going if either
fails, and derives the cart view from whatever is currently loaded.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Tuple

import structlog

from cartsync.core.exceptions import CartSyncError
from cartsync.core.models import (
    CartLineItem,
    CartSummary,
    MutationPolicy,
    Product,
    RemoteCartEntry,
    Session,
)
from cartsync.data.api_client import StorefrontApiClient
from cartsync.services.cart_gateway import RemoteCartGateway
from cartsync.services.cart_service import CartMutationCoordinator
from cartsync.services.cart_view import reconcile, summarize
from cartsync.services.catalog_service import CatalogStore
from cartsync.services.search_service import SearchController

logger = structlog.get_logger(__name__)


@dataclass
class StartupReport:
    """Outcome of the concurrent page-load fetches."""

    catalog_error: Optional[CartSyncError] = None
    cart_error: Optional[CartSyncError] = None
    cart_fetched: bool = False

    @property
    def ok(self) -> bool:
        return self.catalog_error is None and self.cart_error is None


class Storefront:
    """Wires the catalog, search and cart components for one browsing session."""

    def __init__(
        self,
        api: StorefrontApiClient,
        session: Session,
        debounce_seconds: float = 0.5,
    ):
        self.api = api
        self.session = session
        self.catalog = CatalogStore(api)
        self.gateway = RemoteCartGateway(api)
        self.cart = CartMutationCoordinator(self.gateway)
        self.search = SearchController(api, debounce_seconds=debounce_seconds)

    async def start(self) -> StartupReport:
        """Load catalog and cart concurrently; neither waits on the other."""
        catalog_result, cart_result = await asyncio.gather(
            self.catalog.load(),
            self.gateway.fetch_cart(self.session.auth_token),
            return_exceptions=True,
        )

        report = StartupReport()

        if isinstance(catalog_result, CartSyncError):
            report.catalog_error = catalog_result
        elif isinstance(catalog_result, BaseException):
            raise catalog_result

        if isinstance(cart_result, CartSyncError):
            report.cart_error = cart_result
        elif isinstance(cart_result, BaseException):
            raise cart_result
        elif cart_result is not None:
            self.cart.replace(cart_result)
            report.cart_fetched = True

        logger.info(
            "Storefront started",
            catalog_loaded=self.catalog.is_loaded,
            cart_fetched=report.cart_fetched,
            catalog_error=report.catalog_error.message if report.catalog_error else None,
            cart_error=report.cart_error.message if report.cart_error else None,
        )
        return report

    async def refresh_cart(self) -> Tuple[RemoteCartEntry, ...]:
        """Re-fetch the cart from the server and replace local state."""
        entries = await self.gateway.fetch_cart(self.session.auth_token)
        if entries is not None:
            self.cart.replace(entries)
        return self.cart.entries

    @property
    def visible_products(self) -> Tuple[Product, ...]:
        """Search results once a search has been displayed, else the full catalog."""
        if self.search.displayed_generation:
            return self.search.results
        return self.catalog.products

    def cart_view(self) -> List[CartLineItem]:
        return reconcile(self.cart.entries, self.catalog.products)

    def cart_summary(self) -> CartSummary:
        return summarize(self.cart.entries, self.catalog.products)

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> List[RemoteCartEntry]:
        """Add from a product listing: refuses products already in the cart."""
        return await self.cart.add_or_update(
            self.session,
            product_id,
            quantity,
            policy=MutationPolicy(prevent_duplicate=True),
            catalog=self.catalog.products,
        )

    async def set_quantity(self, product_id: str, quantity: int) -> List[RemoteCartEntry]:
        """Quantity stepper: overwrites the existing quantity."""
        return await self.cart.add_or_update(
            self.session,
            product_id,
            quantity,
            policy=MutationPolicy(prevent_duplicate=False),
            catalog=self.catalog.products,
        )
