"""Catalog store: the full product list, fetched once per page load."""

from typing import Any, Dict, List, Optional, Tuple

import structlog
from pydantic import ValidationError as PydanticValidationError

from cartsync.core.exceptions import NetworkError
from cartsync.core.models import Product
from cartsync.data.api_client import StorefrontApiClient
from cartsync.utils.reliability import track_performance

logger = structlog.get_logger(__name__)


def parse_products(payload: Any, path: str) -> List[Product]:
    """Validate a product-array payload; any malformed product rejects the whole payload."""
    if not isinstance(payload, list):
        raise NetworkError(details={"path": path, "reason": "expected a JSON array"})
    try:
        return [Product.model_validate(raw) for raw in payload]
    except PydanticValidationError as e:
        logger.error("Malformed product payload", path=path, errors=e.error_count())
        raise NetworkError(cause=e, details={"path": path, "reason": "malformed product"}) from e


class CatalogStore:
    """
    Holds the catalog fetched from ``GET /products``.

    Immutable after a successful load until ``refresh`` is called. A failed
    load leaves the store empty, never partially populated.
    """

    def __init__(self, api: StorefrontApiClient):
        self.api = api
        self._products: Tuple[Product, ...] = ()
        self._by_id: Dict[str, Product] = {}
        self._loaded = False

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def get(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(product_id)

    @track_performance("catalog_load")
    async def load(self) -> Tuple[Product, ...]:
        """
        Fetch the full catalog.

        Raises:
            NetworkError: Transport failure or uninterpretable payload
            ApiStatusError: Server reported an error
        """
        self._clear()
        payload = await self.api.request("GET", "/products")
        products = tuple(parse_products(payload, "/products"))

        self._products = products
        self._by_id = {product.id: product for product in products}
        self._loaded = True

        logger.info("Catalog loaded", product_count=len(products))
        return products

    async def refresh(self) -> Tuple[Product, ...]:
        """Explicitly reload the catalog."""
        logger.debug("Catalog refresh requested")
        return await self.load()

    def _clear(self) -> None:
        self._products = ()
        self._by_id = {}
        self._loaded = False
