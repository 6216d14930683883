"""
Cart API Pydantic Models

Request bodies for cart and checkout endpoints.
"""
from pydantic import BaseModel


class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = 1


class UpdateCartItemRequest(BaseModel):
    item_id: str
    quantity: int  # 0 or less removes the item


class CheckoutResponse(BaseModel):
    url: str
