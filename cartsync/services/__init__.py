"""
CartSync services

Catalog, search and cart components built on the storefront API client.
"""

from .cart_gateway import RemoteCartGateway
from .cart_service import CartMutationCoordinator
from .cart_view import reconcile, summarize
from .catalog_service import CatalogStore
from .search_service import SearchController
from .storefront import Storefront

__all__ = [
    "CartMutationCoordinator",
    "CatalogStore",
    "RemoteCartGateway",
    "SearchController",
    "Storefront",
    "reconcile",
    "summarize",
]
