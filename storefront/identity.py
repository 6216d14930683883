"""
Identity session - which cart mode is active.

The session is injected into the cart facade instead of being read from
global state. Listeners are awaited in registration order whenever the
mode changes (sign-in / sign-out).
"""
import inspect
from typing import Awaitable, Callable, List, Optional, Union

from storefront.cart.models import Anonymous, Authenticated, Mode
from storefront.db import CART_LOCAL_NAMESPACE
from storefront.errors import PermissionDenied
from storefront.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)

ModeListener = Callable[[Mode], Union[None, Awaitable[None]]]


class IdentitySession:
    """Current mode plus change notification."""

    def __init__(self, mode: Optional[Mode] = None):
        self._mode: Mode = mode or Anonymous()
        self._listeners: List[ModeListener] = []

    @property
    def mode(self) -> Mode:
        return self._mode

    def subscribe(self, listener: ModeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def set_mode(self, mode: Mode) -> None:
        if mode == self._mode:
            return
        self._mode = mode
        logger.info(f"Cart mode changed to {type(mode).__name__}")
        for listener in list(self._listeners):
            result = listener(mode)
            if inspect.isawaitable(result):
                await result

    async def sign_in(self, user_id: str) -> None:
        await self.set_mode(Authenticated(user_id=user_id))

    async def sign_out(self, namespace: str = CART_LOCAL_NAMESPACE) -> None:
        await self.set_mode(Anonymous(namespace=namespace))


def anonymous_mode(visitor_id: Optional[str] = None) -> Anonymous:
    """Per-visitor slot when a visitor id is known, else the shared demo slot."""
    if visitor_id:
        return Anonymous(namespace=f"{CART_LOCAL_NAMESPACE}:{visitor_id}")
    return Anonymous()


async def resolve_mode(client, access_token: Optional[str], visitor_id: Optional[str] = None) -> Mode:
    """
    Derive the cart mode for a request.

    A bearer token is checked with Supabase auth; without one the visitor
    is anonymous. An invalid token is rejected rather than silently
    downgraded, so a signed-in user never sees the demo cart by accident.
    """
    if not access_token:
        return anonymous_mode(visitor_id)

    try:
        response = await client.auth.get_user(access_token)
    except Exception as e:
        logger.warning(f"Auth token rejected: {e}")
        raise PermissionDenied("Invalid or expired session") from e

    user = getattr(response, "user", None)
    if user is None:
        raise PermissionDenied("Invalid or expired session")

    logger.debug(f"Resolved session for user {sanitize_id_for_logging(user.id)}")
    return Authenticated(user_id=str(user.id))
