"""
Data models and type definitions for CartSync.

Wire payloads use the backend's field names (``_id``, ``productId``, ``qty``);
the models expose them under Python names through aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

SESSION_TOKEN_KEY = "token"
SESSION_USERNAME_KEY = "username"
SESSION_BALANCE_KEY = "balance"


class MutationState(str, Enum):
    """Lifecycle of a single cart mutation request."""

    IDLE = "idle"
    PENDING = "pending"
    APPLIED = "applied"
    REJECTED = "rejected"


class FrozenModel(BaseModel):
    """Base class for immutable models built from backend payloads."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Product(FrozenModel):
    """A purchasable product as returned by ``GET /products``."""

    id: str = Field(..., alias="_id", min_length=1)
    name: str
    category: str = ""
    cost: float = Field(..., ge=0)
    rating: int = Field(default=0, ge=0, le=5)
    image_url: str = Field(default="", alias="image")


class RemoteCartEntry(FrozenModel):
    """One server-held cart line: a product id and a positive quantity."""

    product_id: str = Field(..., alias="productId", min_length=1)
    quantity: int = Field(..., alias="qty", gt=0)

    def to_wire(self) -> Dict[str, Any]:
        return {"productId": self.product_id, "qty": self.quantity}


class CartLineItem(FrozenModel):
    """A cart entry enriched with its catalog product, ready for display."""

    product: Product
    quantity: int = Field(..., gt=0)

    @property
    def subtotal(self) -> float:
        return self.product.cost * self.quantity


class CartSummary(FrozenModel):
    """Reconciled cart lines with their totals."""

    items: List[CartLineItem] = Field(default_factory=list)
    total_cost: float = 0.0
    total_quantity: int = 0


class MutationPolicy(FrozenModel):
    """Options for a cart mutation.

    ``prevent_duplicate`` is set for "add to cart" from a listing, where
    re-adding must not bump the quantity. The cart's own quantity stepper
    leaves it unset to overwrite intentionally.
    """

    prevent_duplicate: bool = False


class UserAccount(FrozenModel):
    """Identity returned by ``POST /auth/login``."""

    username: str
    token: str
    balance: float = 0.0


class SessionStore(Protocol):
    """Key-value capability backing the persisted login."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self) -> None: ...


class Session(FrozenModel):
    """Read-only snapshot of the login state, passed explicitly into cart calls."""

    authenticated: bool = False
    username: Optional[str] = None
    auth_token: Optional[str] = None

    @field_validator("username", "auth_token", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_store(cls, store: SessionStore) -> "Session":
        """Build a session from the persisted ``token`` and ``username`` keys."""
        return cls.from_values(
            username=store.get(SESSION_USERNAME_KEY), auth_token=store.get(SESSION_TOKEN_KEY)
        )

    @classmethod
    def from_values(cls, username: Optional[str], auth_token: Optional[str]) -> "Session":
        username = username.strip() if username and username.strip() else None
        auth_token = auth_token.strip() if auth_token and auth_token.strip() else None
        return cls(
            authenticated=username is not None and auth_token is not None,
            username=username,
            auth_token=auth_token,
        )

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()
