"""Remote cart gateway: reads and writes the server-held cart."""

from typing import Any, List, Optional, Set

import structlog
from pydantic import ValidationError as PydanticValidationError

from cartsync.core.exceptions import (
    ApiStatusError,
    AuthError,
    InputError,
    NetworkError,
    ValidationError,
)
from cartsync.core.models import RemoteCartEntry
from cartsync.data.api_client import StorefrontApiClient
from cartsync.utils.reliability import track_performance

logger = structlog.get_logger(__name__)

CART_PATH = "/cart"
CART_UNREACHABLE_MESSAGE = (
    "Could not fetch cart details. Check that the backend is running, "
    "reachable and returns valid JSON."
)


def parse_cart_entries(payload: Any) -> List[RemoteCartEntry]:
    """
    Validate a ``[{productId, qty}]`` payload, preserving server order.

    Zero-quantity lines and repeated product ids are dropped so the result
    holds at most one positive entry per product.
    """
    if not isinstance(payload, list):
        raise NetworkError(
            CART_UNREACHABLE_MESSAGE, details={"path": CART_PATH, "reason": "expected a JSON array"}
        )

    entries: List[RemoteCartEntry] = []
    seen: Set[str] = set()
    for raw in payload:
        if isinstance(raw, dict) and raw.get("qty") in (0, "0"):
            logger.warning("Dropping zero-quantity cart entry", product_id=raw.get("productId"))
            continue
        try:
            entry = RemoteCartEntry.model_validate(raw)
        except PydanticValidationError as e:
            logger.error("Malformed cart entry", entry=str(raw)[:100])
            raise NetworkError(
                CART_UNREACHABLE_MESSAGE,
                cause=e,
                details={"path": CART_PATH, "reason": "malformed cart entry"},
            ) from e
        if entry.product_id in seen:
            logger.warning("Dropping duplicate cart entry", product_id=entry.product_id)
            continue
        seen.add(entry.product_id)
        entries.append(entry)
    return entries


class RemoteCartGateway:
    """
    Fetches and mutates the server's cart representation.

    The server is the only source of truth: every successful mutation returns
    the complete cart, which callers must use in place of whatever they held.
    """

    def __init__(self, api: StorefrontApiClient):
        self.api = api

    @track_performance("cart_fetch")
    async def fetch_cart(self, token: Optional[str]) -> Optional[List[RemoteCartEntry]]:
        """
        Fetch the cart for ``token``.

        Returns None without a request when there is no token.

        Raises:
            AuthError: Server rejected the token (any 4xx); redirect to login
            NetworkError: No interpretable response, or a server-side failure
        """
        if not token:
            logger.debug("No session token, skipping cart fetch")
            return None

        try:
            payload = await self.api.request("GET", CART_PATH, token=token)
        except NetworkError as e:
            raise NetworkError(CART_UNREACHABLE_MESSAGE, cause=e.cause, details=e.details) from e
        except ApiStatusError as e:
            if 400 <= e.status_code < 500:
                raise AuthError(e.status_code, e.message, details=e.details) from e
            raise NetworkError(
                CART_UNREACHABLE_MESSAGE,
                cause=e,
                details=dict(e.details, server_message=e.message),
            ) from e

        entries = parse_cart_entries(payload)
        logger.info("Cart fetched", entry_count=len(entries))
        return entries

    @track_performance("cart_upsert")
    async def upsert_cart_entry(
        self, token: Optional[str], product_id: str, quantity: int
    ) -> List[RemoteCartEntry]:
        """
        Set the quantity of one product; quantity 0 removes the line.

        Returns:
            The complete cart after the change

        Raises:
            InputError: Negative quantity (no request made)
            AuthError: Server rejected the token (401/403)
            ValidationError: Server rejected the payload, e.g. unknown product
            NetworkError: No interpretable response
        """
        if quantity < 0:
            raise InputError(
                "Quantity cannot be negative", details={"product_id": product_id, "qty": quantity}
            )

        body = {"productId": product_id, "qty": quantity}
        try:
            payload = await self.api.request("POST", CART_PATH, token=token, json_data=body)
        except ApiStatusError as e:
            if e.status_code in (401, 403):
                raise AuthError(e.status_code, e.message, details=e.details) from e
            if 400 <= e.status_code < 500:
                raise ValidationError(e.status_code, e.message, details=e.details) from e
            raise

        entries = parse_cart_entries(payload)
        logger.info(
            "Cart entry upserted",
            product_id=product_id,
            qty=quantity,
            entry_count=len(entries),
        )
        return entries
