"""
Debounced product search.

Every keystroke bumps a generation counter. A search is only issued once the
debounce window passes without a newer keystroke, and a response is only
applied if no newer search was issued in the meantime. Requests already in
flight are never aborted; their results are dropped at the point of applying.
"""

import asyncio
from typing import Callable, List, Optional, Set, Tuple

import structlog

from cartsync.core.exceptions import CartSyncError, NotFoundSignal
from cartsync.core.models import Product
from cartsync.data.api_client import StorefrontApiClient
from cartsync.services.catalog_service import parse_products
from cartsync.utils.reliability import track_performance

logger = structlog.get_logger(__name__)

SEARCH_PATH = "/products/search"


class SearchController:
    """Issues filtered catalog queries and owns the currently displayed subset."""

    def __init__(
        self,
        api: StorefrontApiClient,
        debounce_seconds: float = 0.5,
        on_results: Optional[Callable[[List[Product]], None]] = None,
        on_error: Optional[Callable[[CartSyncError], None]] = None,
    ):
        self.api = api
        self.debounce_seconds = debounce_seconds
        self.on_results = on_results
        self.on_error = on_error

        self._generation = 0
        self._displayed_generation = 0
        self._displayed_query: Optional[str] = None
        self._results: Tuple[Product, ...] = ()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        """Generation of the most recently submitted query."""
        return self._generation

    @property
    def displayed_generation(self) -> int:
        """Generation whose outcome is currently displayed (0 before any)."""
        return self._displayed_generation

    @property
    def displayed_query(self) -> Optional[str]:
        return self._displayed_query

    @property
    def results(self) -> Tuple[Product, ...]:
        return self._results

    @track_performance("product_search")
    async def search(self, query: str) -> List[Product]:
        """
        Run one search request.

        A 404 from the backend means "no matches" and yields an empty list.
        """
        try:
            payload = await self.api.request("GET", SEARCH_PATH, params={"value": query})
        except NotFoundSignal:
            logger.debug("No products matched search", query=query)
            return []
        return parse_products(payload, SEARCH_PATH)

    def submit(self, query: str) -> "asyncio.Task[bool]":
        """
        Register a keystroke and schedule its search after the debounce window.

        Must be called from within a running event loop. The returned task
        resolves to True if this query's outcome ended up displayed.
        """
        self._generation += 1
        generation = self._generation

        task = asyncio.ensure_future(self._run(generation, query))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until every scheduled search has finished or been superseded."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run(self, generation: int, query: str) -> bool:
        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)

        if not self._is_current(generation):
            logger.debug("Search superseded before issue", query=query, generation=generation)
            return False

        try:
            products = await self.search(query)
        except CartSyncError as e:
            if not self._is_current(generation):
                logger.debug(
                    "Discarding failure of stale search", query=query, generation=generation
                )
                return False
            logger.warning("Search failed", query=query, generation=generation, error=e.message)
            self._apply(generation, query, [])
            if self.on_error:
                self.on_error(e)
            return True

        if not self._is_current(generation):
            logger.debug(
                "Discarding stale search results",
                query=query,
                generation=generation,
                latest=self._generation,
            )
            return False

        self._apply(generation, query, products)
        if self.on_results:
            self.on_results(list(products))
        return True

    def _apply(self, generation: int, query: str, products: List[Product]) -> None:
        self._results = tuple(products)
        self._displayed_generation = generation
        self._displayed_query = query
        logger.debug(
            "Search results applied",
            query=query,
            generation=generation,
            result_count=len(products),
        )
