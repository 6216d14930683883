"""
Line-item storage for carts.

Two backends hold {id, product_id, quantity} rows:
- LocalCartBackend: one JSON array per named slot (anonymous visitors)
- RemoteCartBackend: Supabase cart_items rows (authenticated users)

LineItemStore picks the backend from the Mode passed to every call.
"""
import json
import uuid
from typing import Dict, List, Optional

from postgrest.exceptions import APIError

from storefront.db import CART_LOCAL_BACKEND, TTL, RedisKeys, get_redis
from storefront.errors import (
    ERROR_CART_UNAVAILABLE,
    ERROR_QUANTITY_NOT_INT,
    LocalCorrupt,
    PermissionDenied,
    RemoteUnavailable,
    StorageUnavailable,
    ValidationError,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.repositories import CartItemRepository
from .models import Authenticated, CartRow, Mode

logger = get_logger(__name__)

# PostgREST / Postgres codes for row-level-security and auth rejections
PERMISSION_ERROR_CODES = {"42501", "PGRST301", "PGRST302"}


def _require_int(quantity) -> None:
    # bool is an int subclass; True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(ERROR_QUANTITY_NOT_INT)


def _require_positive(quantity) -> None:
    _require_int(quantity)
    if quantity <= 0:
        raise ValidationError()


# ==================== SLOT STORAGE ====================

class MemorySlotStorage:
    """Process-local slots. Used in development and tests."""

    def __init__(self):
        self._slots: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    async def set(self, key: str, value: str) -> None:
        self._slots[key] = value

    async def delete(self, key: str) -> None:
        self._slots.pop(key, None)


class RedisSlotStorage:
    """Slots in Upstash Redis, expiring after TTL.LOCAL_CART."""

    def __init__(self, redis=None):
        self._redis = redis  # Lazy initialization

    @property
    def redis(self):
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    async def set(self, key: str, value: str) -> None:
        await self.redis.set(key, value, ex=TTL.LOCAL_CART)

    async def delete(self, key: str) -> None:
        await self.redis.delete(key)


def create_slot_storage(backend: str = CART_LOCAL_BACKEND):
    if backend == "memory":
        return MemorySlotStorage()
    if backend == "redis":
        return RedisSlotStorage()
    raise ValueError(f"Unknown CART_LOCAL_BACKEND: {backend}")


# ==================== BACKENDS ====================

class LocalCartBackend:
    """Anonymous carts: the whole cart is one serialized array in a slot."""

    def __init__(self, slots):
        self.slots = slots

    async def _load(self, namespace: str) -> List[CartRow]:
        key = RedisKeys.local_cart_key(namespace)
        try:
            raw = await self.slots.get(key)
        except Exception as e:
            logger.error(f"Failed to read local cart slot: {e}")
            raise StorageUnavailable(f"{ERROR_CART_UNAVAILABLE}: {e}") from e

        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError("cart payload is not a list")
            return [CartRow.from_dict(row) for row in data]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise LocalCorrupt() from e

    async def _load_for_write(self, namespace: str) -> List[CartRow]:
        """Corrupt slots are overwritten by the next write."""
        try:
            return await self._load(namespace)
        except LocalCorrupt:
            logger.warning(f"Corrupted local cart in slot {namespace}, starting empty")
            return []

    async def _save(self, namespace: str, rows: List[CartRow]) -> None:
        key = RedisKeys.local_cart_key(namespace)
        try:
            await self.slots.set(key, json.dumps([row.to_dict() for row in rows]))
        except Exception as e:
            logger.error(f"Failed to write local cart slot: {e}")
            raise StorageUnavailable(f"{ERROR_CART_UNAVAILABLE}: {e}") from e

    async def list(self, namespace: str) -> List[CartRow]:
        return await self._load(namespace)

    async def insert(self, namespace: str, product_id: str, quantity: int) -> CartRow:
        rows = await self._load_for_write(namespace)
        row = CartRow(id=f"demo-{uuid.uuid4().hex}", product_id=product_id, quantity=quantity)
        rows.append(row)
        await self._save(namespace, rows)
        return row

    async def update(self, namespace: str, item_id: str, quantity: int) -> None:
        rows = await self._load_for_write(namespace)
        for row in rows:
            if row.id == item_id:
                row.quantity = quantity
                await self._save(namespace, rows)
                return

    async def delete(self, namespace: str, item_id: str) -> None:
        rows = await self._load_for_write(namespace)
        remaining = [row for row in rows if row.id != item_id]
        if len(remaining) != len(rows):
            await self._save(namespace, remaining)

    async def clear(self, namespace: str) -> None:
        try:
            await self.slots.delete(RedisKeys.local_cart_key(namespace))
        except Exception as e:
            logger.error(f"Failed to clear local cart slot: {e}")
            raise StorageUnavailable(f"{ERROR_CART_UNAVAILABLE}: {e}") from e


def _remote_error(e: Exception, action: str) -> StorageUnavailable:
    if isinstance(e, APIError) and str(e.code) in PERMISSION_ERROR_CODES:
        logger.warning(f"Remote cart rejected {action}: {e.message}")
        return PermissionDenied()
    logger.error(f"Remote cart {action} failed: {e}")
    return RemoteUnavailable(f"{ERROR_CART_UNAVAILABLE}: {e}")


class RemoteCartBackend:
    """Authenticated carts: one cart_items row per line item. Failures are not retried."""

    def __init__(self, repository: CartItemRepository):
        self.repository = repository

    async def list(self, user_id: str) -> List[CartRow]:
        try:
            data = await self.repository.list_for_user(user_id)
        except Exception as e:
            raise _remote_error(e, "read") from e
        try:
            return [CartRow.from_dict(row) for row in data]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed remote cart row: {e}")
            raise RemoteUnavailable(f"{ERROR_CART_UNAVAILABLE}: malformed cart row") from e

    async def insert(self, user_id: str, product_id: str, quantity: int) -> CartRow:
        try:
            data = await self.repository.create(user_id, product_id, quantity)
        except Exception as e:
            raise _remote_error(e, "insert") from e
        if not data:
            raise RemoteUnavailable(f"{ERROR_CART_UNAVAILABLE}: insert returned no row")
        try:
            return CartRow.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteUnavailable(f"{ERROR_CART_UNAVAILABLE}: malformed cart row") from e

    async def update(self, user_id: str, item_id: str, quantity: int) -> None:
        try:
            await self.repository.update_quantity(user_id, item_id, quantity)
        except Exception as e:
            raise _remote_error(e, "update") from e

    async def delete(self, user_id: str, item_id: str) -> None:
        try:
            await self.repository.delete(user_id, item_id)
        except Exception as e:
            raise _remote_error(e, "delete") from e

    async def clear(self, user_id: str) -> None:
        try:
            await self.repository.delete_for_user(user_id)
        except Exception as e:
            raise _remote_error(e, "clear") from e


# ==================== STORE ====================

class LineItemStore:
    """
    Durable line items scoped by Mode.

    Does not deduplicate by product; callers check for an existing row
    before calling insert().
    """

    def __init__(self, local: LocalCartBackend, remote: RemoteCartBackend):
        self.local = local
        self.remote = remote

    def _route(self, mode: Mode):
        if isinstance(mode, Authenticated):
            return self.remote, mode.user_id
        return self.local, mode.namespace

    async def list(self, mode: Mode) -> List[CartRow]:
        backend, scope = self._route(mode)
        return await backend.list(scope)

    async def insert(self, mode: Mode, product_id: str, quantity: int) -> CartRow:
        _require_positive(quantity)
        backend, scope = self._route(mode)
        row = await backend.insert(scope, product_id, quantity)
        logger.debug(f"Inserted cart row {sanitize_id_for_logging(row.id)} x{quantity}")
        return row

    async def update(self, mode: Mode, item_id: str, quantity: int) -> None:
        _require_int(quantity)
        if quantity <= 0:
            await self.delete(mode, item_id)
            return
        backend, scope = self._route(mode)
        await backend.update(scope, item_id, quantity)

    async def delete(self, mode: Mode, item_id: str) -> None:
        backend, scope = self._route(mode)
        await backend.delete(scope, item_id)

    async def clear(self, mode: Mode) -> None:
        backend, scope = self._route(mode)
        await backend.clear(scope)
