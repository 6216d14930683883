"""
Logging setup for the storefront.

Usage:
    from storefront.logging import get_logger
    logger = get_logger(__name__)

    logger.info("Cart refreshed")

Records carry a `cart_scope` field naming the cart being worked on
(`anon:<visitor>` or `user:<id>`), bound per request or task with
`bind_cart_scope`. Records logged outside any cart show "-".
"""

import logging
import os
import sys
from contextvars import ContextVar
from functools import cache
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(cart_scope)s] %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - [%(cart_scope)s] %(message)s"

_CART_SCOPE: ContextVar[Optional[str]] = ContextVar("_CART_SCOPE", default=None)

# Client libraries that log every HTTP round trip at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "postgrest", "supabase")


def bind_cart_scope(scope: Optional[str]) -> None:
    """Tag log records from the current context with a cart scope label."""
    _CART_SCOPE.set(_escape_log_injection(scope) if scope else None)


def get_cart_scope() -> Optional[str]:
    return _CART_SCOPE.get()


def clear_cart_scope() -> None:
    _CART_SCOPE.set(None)


class CartScopeFilter(logging.Filter):
    """Adds `record.cart_scope` so the formats above always resolve."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.cart_scope = get_cart_scope() or "-"
        return True


def _get_log_level() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _configure_root_logger() -> None:
    """Attach a stdout handler to the root logger unless one already exists."""
    root = logging.getLogger()
    if root.handlers:
        return

    level = _get_log_level()
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CartScopeFilter())
    # Hosted deployments add their own timestamps
    hosted = os.environ.get("VERCEL") == "1"
    handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if hosted else LOG_FORMAT))
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    """
    Get a logger by name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance sharing the root configuration
    """
    return logging.getLogger(name)


def _escape_log_injection(value: str) -> str:
    """Neutralize control characters that could forge log lines (CWE-117)."""
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    Shorten an identifier (user id, cart item id, product id) for log output.

    Keeps the first 8 characters after escaping control characters.
    Returns "N/A" for empty values.
    """
    if not id_value:
        return "N/A"
    safe_value = _escape_log_injection(str(id_value))
    return safe_value[:8]


__all__ = [
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "CartScopeFilter",
    "bind_cart_scope",
    "clear_cart_scope",
    "get_cart_scope",
    "get_logger",
    "sanitize_id_for_logging",
]
