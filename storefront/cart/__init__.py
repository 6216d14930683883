"""Cart package: models, line-item storage, and session facade."""
from .models import (
    Anonymous,
    Authenticated,
    CartItem,
    CartRow,
    CartSnapshot,
    CartState,
    Mode,
)
from .storage import (
    LineItemStore,
    LocalCartBackend,
    MemorySlotStorage,
    RedisSlotStorage,
    RemoteCartBackend,
)
from .service import CartSession, create_cart_session

__all__ = [
    "Anonymous",
    "Authenticated",
    "CartItem",
    "CartRow",
    "CartSnapshot",
    "CartState",
    "Mode",
    "LineItemStore",
    "LocalCartBackend",
    "MemorySlotStorage",
    "RedisSlotStorage",
    "RemoteCartBackend",
    "CartSession",
    "create_cart_session",
]
