"""
Repositories for Supabase tables used by the cart.

- ProductRepository: catalog lookups for denormalization
- CartItemRepository: per-user cart rows for authenticated carts
"""
from .product_repo import ProductRepository
from .cart_item_repo import CartItemRepository

__all__ = [
    "ProductRepository",
    "CartItemRepository",
]
