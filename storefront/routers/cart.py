"""
Cart Router

Cart and checkout endpoints. Every response carries the full cart
snapshot plus any toasts raised while handling the request.
"""
from fastapi import APIRouter, Depends, HTTPException

from storefront.cart import CartSession
from storefront.checkout import CheckoutService
from storefront.errors import (
    CartError,
    CheckoutError,
    PermissionDenied,
    StorageUnavailable,
    ValidationError,
)
from storefront.logging import get_logger
from .deps import get_cart_session, get_checkout_service
from .models import AddToCartRequest, CheckoutResponse, UpdateCartItemRequest

logger = get_logger(__name__)

router = APIRouter(tags=["cart"])


def _cart_response(cart: CartSession) -> dict:
    return {
        "cart": cart.snapshot.to_dict(),
        "notifications": [toast.to_dict() for toast in cart.notifier.drain()],
    }


def _http_error(e: CartError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=e.message)
    if isinstance(e, PermissionDenied):
        return HTTPException(status_code=403, detail=e.message)
    if isinstance(e, StorageUnavailable):
        return HTTPException(status_code=503, detail=e.message)
    if isinstance(e, CheckoutError):
        return HTTPException(status_code=502, detail=e.message)
    logger.error(f"Unhandled cart error: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=e.message)


@router.get("/cart")
async def get_cart(cart: CartSession = Depends(get_cart_session)):
    """Current cart with catalog fields and totals."""
    try:
        await cart.load()
    except CartError as e:
        raise _http_error(e)
    return _cart_response(cart)


@router.post("/cart/add")
async def add_to_cart(request: AddToCartRequest, cart: CartSession = Depends(get_cart_session)):
    """Add a product; an existing line for the same product is incremented."""
    try:
        await cart.add_to_cart(request.product_id, request.quantity)
    except CartError as e:
        raise _http_error(e)
    return _cart_response(cart)


@router.patch("/cart/item")
async def update_cart_item(request: UpdateCartItemRequest, cart: CartSession = Depends(get_cart_session)):
    """Overwrite an item's quantity (0 = remove)."""
    try:
        await cart.update_quantity(request.item_id, request.quantity)
    except CartError as e:
        raise _http_error(e)
    return _cart_response(cart)


@router.delete("/cart/item")
async def remove_cart_item(item_id: str, cart: CartSession = Depends(get_cart_session)):
    """Remove an item. Removing a missing item is not an error."""
    try:
        await cart.remove_from_cart(item_id)
    except CartError as e:
        raise _http_error(e)
    return _cart_response(cart)


@router.post("/cart/clear")
async def clear_cart(cart: CartSession = Depends(get_cart_session)):
    try:
        await cart.clear_cart()
    except CartError as e:
        raise _http_error(e)
    return _cart_response(cart)


@router.post("/cart/refresh")
async def refresh_cart(cart: CartSession = Depends(get_cart_session)):
    """Re-read the cart and re-join current prices and stock."""
    try:
        await cart.refresh_cart()
    except CartError as e:
        raise _http_error(e)
    return _cart_response(cart)


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(checkout: CheckoutService = Depends(get_checkout_service)):
    """Create a payment session and return its redirect URL."""
    try:
        url = await checkout.create_session()
    except CartError as e:
        raise _http_error(e)
    return CheckoutResponse(url=url)


@router.post("/checkout/complete")
async def complete_checkout(checkout: CheckoutService = Depends(get_checkout_service)):
    """Called when the buyer returns from the payment page."""
    try:
        await checkout.complete()
    except CartError as e:
        raise _http_error(e)
    return _cart_response(checkout.cart)
