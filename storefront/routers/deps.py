"""
Shared Dependencies for Routers

Builds one CartSession per request from the caller's identity.
The local slot storage is a lazy singleton so anonymous carts survive
between requests.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException

from storefront.cart import CartSession, create_cart_session
from storefront.cart.storage import create_slot_storage
from storefront.checkout import CheckoutService
from storefront.db import get_supabase
from storefront.errors import PermissionDenied
from storefront.identity import IdentitySession, resolve_mode
from storefront.logging import bind_cart_scope

_slot_storage = None


def get_slot_storage():
    """Get or create the local cart slot storage (lazy loaded)"""
    global _slot_storage
    if _slot_storage is None:
        _slot_storage = create_slot_storage()
    return _slot_storage


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_cart_session(
    authorization: Optional[str] = Header(None),
    x_visitor_id: Optional[str] = Header(None),
) -> CartSession:
    client = await get_supabase()
    try:
        mode = await resolve_mode(client, _bearer_token(authorization), x_visitor_id)
    except PermissionDenied as e:
        raise HTTPException(status_code=401, detail=e.message)

    bind_cart_scope(mode.log_label)
    return create_cart_session(IdentitySession(mode), client, slots=get_slot_storage())


async def get_checkout_service(cart: CartSession = Depends(get_cart_session)) -> CheckoutService:
    client = await get_supabase()
    return CheckoutService(cart, client)
