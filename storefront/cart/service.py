"""Cart session facade: one authoritative cart snapshot per session."""
import inspect
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Optional, Union

from storefront.errors import (
    ERROR_EMPTY_PRODUCT_ID,
    ERROR_QUANTITY_NOT_INT,
    CartError,
    LocalCorrupt,
    RemoteUnavailable,
    StorageUnavailable,
    ValidationError,
)
from storefront.logging import bind_cart_scope, get_logger, sanitize_id_for_logging
from storefront.models import Product
from storefront.notifications import Notifier
from storefront.repositories import CartItemRepository, ProductRepository
from .models import (
    EMPTY_SNAPSHOT,
    Authenticated,
    CartItem,
    CartRow,
    CartSnapshot,
    CartState,
    Mode,
)
from .storage import LineItemStore, LocalCartBackend, RemoteCartBackend, create_slot_storage

if TYPE_CHECKING:
    from storefront.identity import IdentitySession

logger = get_logger(__name__)

SnapshotListener = Callable[[CartSnapshot], Union[None, Awaitable[None]]]
CartOperation = Callable[[Mode], Awaitable[None]]


def _validate_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(ERROR_QUANTITY_NOT_INT)


class CartSession:
    """
    The only entry point the rest of the application uses for the cart.

    Every mutation goes through `_apply_and_resync`: write to the store for
    the active mode, re-read all rows, attach catalog fields, publish a new
    snapshot. A failed storage call leaves the previous snapshot in place,
    emits an error toast and re-raises to the awaiting caller.

    Concurrent adds of the same product are last-write-wins; each call
    runs to completion before its snapshot is published.
    """

    def __init__(
        self,
        identity: "IdentitySession",
        store: LineItemStore,
        catalog: ProductRepository,
        notifier: Optional[Notifier] = None,
    ):
        self.identity = identity
        self.store = store
        self.catalog = catalog
        self.notifier = notifier or Notifier()

        self._snapshot: CartSnapshot = EMPTY_SNAPSHOT
        self._state = CartState.LOADING
        self._listeners: List[SnapshotListener] = []
        self._unsubscribe_identity = identity.subscribe(self._on_mode_change)

    # ==================== STATE ====================

    @property
    def mode(self) -> Mode:
        return self.identity.mode

    @property
    def snapshot(self) -> CartSnapshot:
        return self._snapshot

    @property
    def state(self) -> CartState:
        return self._state

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Receive every published snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._unsubscribe_identity()
        self._listeners.clear()

    # ==================== OPERATIONS ====================

    async def load(self) -> CartSnapshot:
        return await self._apply_and_resync(None, failure="Failed to load cart items")

    async def refresh_cart(self) -> CartSnapshot:
        """Re-read rows and re-join the catalog to pick up price and stock changes."""
        return await self._apply_and_resync(None, failure="Failed to load cart items")

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> CartSnapshot:
        if not product_id or not isinstance(product_id, str):
            raise ValidationError(ERROR_EMPTY_PRODUCT_ID)
        _validate_quantity(quantity)
        if quantity <= 0:
            raise ValidationError()

        async def add(mode: Mode) -> None:
            rows = await self._current_rows(mode)
            existing = next((row for row in rows if row.product_id == product_id), None)
            if existing:
                await self.store.update(mode, existing.id, existing.quantity + quantity)
            else:
                await self.store.insert(mode, product_id, quantity)

        snapshot = await self._apply_and_resync(add, failure="Failed to add item to cart")
        if self.mode.is_authenticated:
            await self.notifier.success("Added to cart", "Item has been added to your cart")
        else:
            await self.notifier.success("Added to cart (Demo Mode)", "Item has been added to your demo cart")
        return snapshot

    async def update_quantity(self, item_id: str, quantity: int) -> CartSnapshot:
        _validate_quantity(quantity)
        if quantity <= 0:
            return await self.remove_from_cart(item_id)

        async def update(mode: Mode) -> None:
            await self.store.update(mode, item_id, quantity)

        return await self._apply_and_resync(update, failure="Failed to update quantity")

    async def remove_from_cart(self, item_id: str) -> CartSnapshot:
        """Idempotent; republishes even when the item was already gone."""

        async def remove(mode: Mode) -> None:
            await self.store.delete(mode, item_id)

        snapshot = await self._apply_and_resync(remove, failure="Failed to remove item from cart")
        if self.mode.is_authenticated:
            await self.notifier.success("Item removed", "Item has been removed from your cart")
        else:
            await self.notifier.success("Item removed (Demo Mode)", "Item has been removed from your demo cart")
        return snapshot

    async def clear_cart(self) -> CartSnapshot:
        async def clear(mode: Mode) -> None:
            await self.store.clear(mode)

        return await self._apply_and_resync(clear, failure="Failed to clear cart")

    # ==================== INTERNALS ====================

    async def _on_mode_change(self, mode: Mode) -> None:
        # The previous snapshot belongs to the other scope; never show it under the new one.
        # Anonymous items are not merged into the signed-in cart.
        self._snapshot = EMPTY_SNAPSHOT
        try:
            await self._apply_and_resync(None, failure="Failed to load cart items")
        except CartError as e:
            logger.warning(f"Cart reload after mode change failed: {e}")
            await self._publish(EMPTY_SNAPSHOT)

    async def _current_rows(self, mode: Mode) -> List[CartRow]:
        try:
            return await self.store.list(mode)
        except LocalCorrupt:
            return []

    async def _apply_and_resync(self, operation: Optional[CartOperation], failure: str) -> CartSnapshot:
        mode = self.mode
        bind_cart_scope(mode.log_label)
        self._state = CartState.LOADING
        try:
            if operation is not None:
                await operation(mode)
            snapshot = await self._resync(mode)
        except StorageUnavailable as e:
            logger.error(f"{failure}: {e}")
            await self.notifier.error("Error", failure)
            raise
        else:
            self._snapshot = snapshot
        finally:
            self._state = CartState.READY

        await self._publish(snapshot)
        return snapshot

    async def _resync(self, mode: Mode) -> CartSnapshot:
        try:
            rows = await self.store.list(mode)
        except LocalCorrupt:
            logger.warning("Local cart could not be parsed, showing an empty cart")
            rows = []
        return await self._denormalize(mode, rows)

    async def _denormalize(self, mode: Mode, rows: List[CartRow]) -> CartSnapshot:
        """Attach catalog fields; rows whose product is gone are pruned."""
        if isinstance(mode, Authenticated):
            try:
                products: Dict[str, Product] = {
                    row.product_id: Product(**row.product) for row in rows if row.product
                }
            except (TypeError, ValueError) as e:
                raise RemoteUnavailable(f"Malformed catalog row: {e}") from e
        else:
            products = await self._lookup_products([row.product_id for row in rows])

        items = []
        for row in rows:
            product = products.get(row.product_id)
            if product is None:
                logger.debug(f"Pruned cart row for missing product {sanitize_id_for_logging(row.product_id)}")
                continue
            if row.quantity <= 0:
                continue
            items.append(
                CartItem(
                    id=row.id,
                    product_id=row.product_id,
                    quantity=row.quantity,
                    name=product.name,
                    unit_price=product.price,
                    image_url=product.image_url,
                    stock_available=product.stock,
                )
            )
        return CartSnapshot(items=tuple(items))

    async def _lookup_products(self, product_ids: List[str]) -> Dict[str, Product]:
        if not product_ids:
            return {}
        try:
            return await self.catalog.get_by_ids(product_ids)
        except Exception as e:
            raise RemoteUnavailable(f"Catalog lookup failed: {e}") from e

    async def _publish(self, snapshot: CartSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Cart subscriber failed: {e}", exc_info=True)


def create_cart_session(
    identity: "IdentitySession",
    client,
    slots=None,
    notifier: Optional[Notifier] = None,
) -> CartSession:
    """Wire a CartSession against a Supabase client and a local slot storage."""
    store = LineItemStore(
        local=LocalCartBackend(slots if slots is not None else create_slot_storage()),
        remote=RemoteCartBackend(CartItemRepository(client)),
    )
    return CartSession(identity, store, ProductRepository(client), notifier)


__all__ = ["CartSession", "create_cart_session"]
