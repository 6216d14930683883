"""Cart Item Repository - authenticated users' cart rows."""
from typing import Any, Dict, List, Optional

from storefront.db import Tables
from .base import BaseRepository
from .product_repo import PRODUCT_COLUMNS

# Rows come back with the product already attached under "products"
CART_ROW_COLUMNS = f"id, product_id, quantity, products ({PRODUCT_COLUMNS})"


class CartItemRepository(BaseRepository):
    """Rows of the cart_items table, always scoped by user_id."""

    async def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        result = (
            await self.client.table(Tables.CART_ITEMS)
            .select(CART_ROW_COLUMNS)
            .eq("user_id", user_id)
            .execute()
        )
        return result.data or []

    async def create(self, user_id: str, product_id: str, quantity: int) -> Optional[Dict[str, Any]]:
        result = (
            await self.client.table(Tables.CART_ITEMS)
            .insert({"user_id": user_id, "product_id": product_id, "quantity": quantity})
            .execute()
        )
        return result.data[0] if result.data else None

    async def update_quantity(self, user_id: str, item_id: str, quantity: int) -> None:
        await (
            self.client.table(Tables.CART_ITEMS)
            .update({"quantity": quantity})
            .eq("id", item_id)
            .eq("user_id", user_id)
            .execute()
        )

    async def delete(self, user_id: str, item_id: str) -> None:
        await (
            self.client.table(Tables.CART_ITEMS)
            .delete()
            .eq("id", item_id)
            .eq("user_id", user_id)
            .execute()
        )

    async def delete_for_user(self, user_id: str) -> None:
        await self.client.table(Tables.CART_ITEMS).delete().eq("user_id", user_id).execute()
