"""Product Repository - catalog reads for the cart."""
from typing import Iterable

from storefront.db import Tables
from storefront.models import Product
from .base import BaseRepository

PRODUCT_COLUMNS = "id, name, price, image_url, stock"


class ProductRepository(BaseRepository):
    """Product catalog lookups."""

    async def get_by_ids(self, product_ids: Iterable[str]) -> dict[str, Product]:
        """Batch lookup. Ids that no longer exist are simply absent from the result."""
        ids = list(dict.fromkeys(product_ids))
        if not ids:
            return {}

        result = (
            await self.client.table(Tables.PRODUCTS)
            .select(PRODUCT_COLUMNS)
            .in_("id", ids)
            .execute()
        )
        return {row["id"]: Product(**row) for row in result.data or []}
