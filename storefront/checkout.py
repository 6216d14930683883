"""
Checkout handoff.

Sends the cart's line items (with current catalog prices) to the
payment-session function and returns the redirect URL. The cart is
cleared only when the buyer comes back from the processor.
"""
import json
from typing import Any, Dict, List

from storefront.cart import CartSession, CartSnapshot
from storefront.db import Tables
from storefront.errors import (
    ERROR_CART_EMPTY,
    ERROR_NO_CHECKOUT_URL,
    CartError,
    CheckoutError,
    ValidationError,
)
from storefront.logging import get_logger
from storefront.money import format_money, to_float

logger = get_logger(__name__)


def build_checkout_items(snapshot: CartSnapshot) -> List[Dict[str, Any]]:
    """Line items in the shape the create-checkout function expects."""
    return [
        {
            "id": item.id,
            "product_id": item.product_id,
            "quantity": item.quantity,
            "name": item.name,
            "price": to_float(item.unit_price),
            "image_url": item.image_url,
        }
        for item in snapshot.items
    ]


def _parse_function_response(response) -> Dict[str, Any]:
    # supabase functions return raw bytes unless the function declares JSON
    if isinstance(response, (bytes, bytearray)):
        response = response.decode("utf-8")
    if isinstance(response, str):
        return json.loads(response) if response else {}
    return response or {}


class CheckoutService:
    """Creates payment sessions for a cart and finishes checkout on return."""

    def __init__(self, cart: CartSession, client):
        self.cart = cart
        self.client = client

    async def create_session(self) -> str:
        """
        Create a payment session for the current cart.

        Returns:
            Redirect URL of the payment page

        Raises:
            ValidationError: cart is empty
            CheckoutError: the payment function failed or returned no URL
        """
        snapshot = await self.cart.refresh_cart()
        if snapshot.is_empty:
            await self.cart.notifier.error("Cart is empty", "Add some items to your cart before checking out")
            raise ValidationError(ERROR_CART_EMPTY)

        is_demo = not self.cart.mode.is_authenticated
        body = {"cartItems": build_checkout_items(snapshot), "isDemo": is_demo}
        logger.info(
            f"Creating checkout for {snapshot.total_items} items, "
            f"total {format_money(snapshot.total_price)}{' (demo)' if is_demo else ''}"
        )

        try:
            response = await self.client.functions.invoke(
                Tables.CREATE_CHECKOUT,
                invoke_options={"body": body},
            )
            url = _parse_function_response(response).get("url")
        except Exception as e:
            logger.error(f"Error creating checkout session: {e}", exc_info=True)
            await self._payment_error()
            raise CheckoutError() from e

        if not url:
            logger.error(ERROR_NO_CHECKOUT_URL)
            await self._payment_error()
            raise CheckoutError(ERROR_NO_CHECKOUT_URL)
        return url

    async def complete(self) -> CartSnapshot:
        """Buyer returned from the processor: empty the cart."""
        try:
            snapshot = await self.cart.clear_cart()
        except CartError:
            await self.cart.notifier.error("Warning", "Payment successful but failed to clear the cart")
            raise
        await self.cart.notifier.success(
            "Order Confirmed!", "Your payment was successful and order has been created"
        )
        return snapshot

    async def _payment_error(self) -> None:
        await self.cart.notifier.error(
            "Payment Error", "There was an error processing your payment. Please try again."
        )
