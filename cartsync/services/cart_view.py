"""
Cart view reconciliation.

Combines the catalog and the remote cart entries into display-ready line
items. Pure functions only: no I/O, no hidden state, inputs never mutated.
"""

from typing import Dict, Iterable, List, Sequence

import structlog

from cartsync.core.models import CartLineItem, CartSummary, Product, RemoteCartEntry

logger = structlog.get_logger(__name__)


def reconcile(
    entries: Sequence[RemoteCartEntry], catalog: Iterable[Product]
) -> List[CartLineItem]:
    """
    Enrich cart entries with their products, in server-supplied entry order.

    Entries whose product is not in the catalog are skipped. The catalog and
    cart are fetched independently and may briefly disagree, so a missing
    product is not an error.
    """
    products: Dict[str, Product] = {product.id: product for product in catalog}

    items: List[CartLineItem] = []
    for entry in entries:
        product = products.get(entry.product_id)
        if product is None:
            logger.debug("Skipping cart entry for unknown product", product_id=entry.product_id)
            continue
        items.append(CartLineItem(product=product, quantity=entry.quantity))
    return items


def cart_total(items: Iterable[CartLineItem]) -> float:
    """Total cost of the given line items."""
    return sum((item.subtotal for item in items), 0.0)


def cart_quantity(items: Iterable[CartLineItem]) -> int:
    """Total number of units across the given line items."""
    return sum(item.quantity for item in items)


def summarize(entries: Sequence[RemoteCartEntry], catalog: Iterable[Product]) -> CartSummary:
    """Reconcile and total in one step."""
    items = reconcile(entries, catalog)
    return CartSummary(
        items=items, total_cost=cart_total(items), total_quantity=cart_quantity(items)
    )
