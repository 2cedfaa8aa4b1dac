"""
Cart mutation coordination.

Every cart change goes through the server. Local cart state only ever
changes by wholesale replacement with a confirmed server response: no
optimistic updates and no client-side merging.

Concurrent mutations are not serialized. Responses are applied in the order
they arrive, so two overlapping requests for the same product resolve to
whichever response lands last, even if it was issued first.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import structlog

from cartsync.core.exceptions import DuplicateItemError, UnauthenticatedError
from cartsync.core.models import MutationPolicy, MutationState, Product, RemoteCartEntry, Session
from cartsync.services.cart_gateway import RemoteCartGateway

logger = structlog.get_logger(__name__)


def is_item_in_cart(entries: Iterable[RemoteCartEntry], product_id: str) -> bool:
    """Return whether ``product_id`` already has an entry."""
    return any(entry.product_id == product_id for entry in entries)


class CartMutationCoordinator:
    """Owns the local mirror of the server cart and gates every write to it."""

    def __init__(self, gateway: RemoteCartGateway):
        self.gateway = gateway
        self._entries: Tuple[RemoteCartEntry, ...] = ()
        self._states: Dict[str, MutationState] = {}
        self._in_flight: Dict[str, int] = {}

    @property
    def entries(self) -> Tuple[RemoteCartEntry, ...]:
        """Last-known-good cart, exactly as the server last returned it."""
        return self._entries

    @property
    def pending_products(self) -> Set[str]:
        return set(self._in_flight)

    def state_of(self, product_id: str) -> MutationState:
        return self._states.get(product_id, MutationState.IDLE)

    def replace(self, entries: Sequence[RemoteCartEntry]) -> None:
        """Replace local cart state wholesale with a server response."""
        self._entries = tuple(entries)

    def reset(self) -> None:
        """Forget all cart state, e.g. on logout."""
        self._entries = ()
        self._states.clear()
        self._in_flight.clear()

    async def add_or_update(
        self,
        session: Session,
        product_id: str,
        quantity: int,
        policy: Optional[MutationPolicy] = None,
        catalog: Optional[Iterable[Product]] = None,
        current_entries: Optional[Sequence[RemoteCartEntry]] = None,
    ) -> List[RemoteCartEntry]:
        """
        Add a product to the cart or set its quantity.

        Args:
            session: Login state; writes require an authenticated session
            product_id: Product to change
            quantity: Desired quantity (0 removes the line server-side)
            policy: ``prevent_duplicate`` rejects products already in the cart
            catalog: Optional catalog, only used to name the product in logs
            current_entries: Cart to check duplicates against; defaults to
                the coordinator's own entries

        Returns:
            The complete cart as returned by the server

        Raises:
            UnauthenticatedError: Session is not authenticated (no request made)
            DuplicateItemError: Duplicate rejected by policy (no request made)
            AuthError, ValidationError, NetworkError: Propagated from the gateway;
                local state is left untouched
        """
        policy = policy or MutationPolicy()
        current = self._entries if current_entries is None else current_entries
        product_name = self._product_name(catalog, product_id)

        if not session.authenticated:
            logger.warning("Cart write refused, not logged in", product_id=product_id)
            raise UnauthenticatedError(details={"product_id": product_id})

        if policy.prevent_duplicate and is_item_in_cart(current, product_id):
            logger.warning(
                "Cart write refused, item already in cart",
                product_id=product_id,
                product=product_name,
            )
            raise DuplicateItemError(product_id, details={"product_id": product_id})

        if product_id in self._in_flight:
            logger.warning(
                "Overlapping cart mutation, last response received wins",
                product_id=product_id,
                in_flight=self._in_flight[product_id],
            )

        self._in_flight[product_id] = self._in_flight.get(product_id, 0) + 1
        self._states[product_id] = MutationState.PENDING
        outcome = MutationState.REJECTED

        try:
            entries = await self.gateway.upsert_cart_entry(
                session.auth_token, product_id, quantity
            )
            self.replace(entries)
            outcome = MutationState.APPLIED
            logger.info(
                "Cart updated",
                product_id=product_id,
                product=product_name,
                qty=quantity,
                entry_count=len(entries),
            )
            return list(entries)
        finally:
            self._finish(product_id, outcome)

    def _finish(self, product_id: str, outcome: MutationState) -> None:
        remaining = self._in_flight.get(product_id, 1) - 1
        if remaining > 0:
            self._in_flight[product_id] = remaining
            return
        self._in_flight.pop(product_id, None)
        self._states[product_id] = outcome

    @staticmethod
    def _product_name(catalog: Optional[Iterable[Product]], product_id: str) -> Optional[str]:
        if catalog is None:
            return None
        for product in catalog:
            if product.id == product_id:
                return product.name
        return None
