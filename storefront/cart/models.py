"""Cart models with Decimal-based totals."""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Tuple, Union

from storefront.db import CART_LOCAL_NAMESPACE
from storefront.logging import sanitize_id_for_logging
from storefront.money import ZERO, multiply, to_float


@dataclass(frozen=True)
class Anonymous:
    """Visitor without a session; cart lives in the local slot for `namespace`."""
    namespace: str = CART_LOCAL_NAMESPACE

    @property
    def is_authenticated(self) -> bool:
        return False

    @property
    def log_label(self) -> str:
        visitor = self.namespace.rpartition(":")[2]
        return f"anon:{sanitize_id_for_logging(visitor)}"


@dataclass(frozen=True)
class Authenticated:
    """Signed-in user; cart lives in the remote cart_items table."""
    user_id: str

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def log_label(self) -> str:
        return f"user:{sanitize_id_for_logging(self.user_id)}"


Mode = Union[Anonymous, Authenticated]


class CartState(str, Enum):
    LOADING = "loading"
    READY = "ready"


@dataclass
class CartRow:
    """Persisted line item: {id, product_id, quantity}.

    `product` is only set when the store returns the catalog row already
    joined (remote carts).
    """
    id: str
    product_id: str
    quantity: int
    product: Optional[dict] = None

    def to_dict(self) -> dict:
        """Serialized form stored in the local slot."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartRow":
        return cls(
            id=str(data["id"]),
            product_id=str(data["product_id"]),
            quantity=int(data["quantity"]),
            product=data.get("products"),
        )


@dataclass(frozen=True)
class CartItem:
    """Single line in a snapshot, with catalog fields attached at read time."""
    id: str
    product_id: str
    quantity: int
    name: str
    unit_price: Decimal
    image_url: Optional[str] = None
    stock_available: int = 0

    @property
    def line_total(self) -> Decimal:
        return multiply(self.unit_price, self.quantity)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "name": self.name,
            "unit_price": to_float(self.unit_price),
            "image_url": self.image_url,
            "stock_available": self.stock_available,
            "line_total": to_float(self.line_total),
        }


@dataclass(frozen=True)
class CartSnapshot:
    """Immutable cart view. Totals are always derived from `items`."""
    items: Tuple[CartItem, ...] = field(default_factory=tuple)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> Decimal:
        # Exact sum; rounding to cents happens only in to_dict()
        return sum((item.line_total for item in self.items), ZERO)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_by_product(self, product_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.product_id == product_id), None)

    def find(self, item_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == item_id), None)

    def to_dict(self) -> dict[str, Any]:
        """Summary for API responses (floats at the boundary)."""
        return {
            "is_empty": self.is_empty,
            "items": [item.to_dict() for item in self.items],
            "total_items": self.total_items,
            "total_price": to_float(self.total_price),
        }


EMPTY_SNAPSHOT = CartSnapshot()
