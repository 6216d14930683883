"""Tests for logging helpers"""
import logging

import pytest

from storefront.cart import Anonymous, Authenticated
from storefront.logging import (
    LOG_FORMAT_SIMPLE,
    CartScopeFilter,
    bind_cart_scope,
    clear_cart_scope,
    get_cart_scope,
    sanitize_id_for_logging,
)


@pytest.fixture(autouse=True)
def unbound_scope():
    clear_cart_scope()
    yield
    clear_cart_scope()


def _record(message="Cart refreshed"):
    return logging.LogRecord("storefront.cart", logging.INFO, __file__, 1, message, None, None)


class TestCartScopeFilter:
    """Cart scope on log records."""

    def test_unbound_scope_shows_dash(self):
        record = _record()
        assert CartScopeFilter().filter(record) is True
        assert record.cart_scope == "-"

    def test_bound_scope_is_formatted(self):
        bind_cart_scope("user:1234abcd")
        record = _record()
        CartScopeFilter().filter(record)

        line = logging.Formatter(LOG_FORMAT_SIMPLE).format(record)

        assert line == "INFO - storefront.cart - [user:1234abcd] Cart refreshed"

    def test_scope_is_escaped(self):
        bind_cart_scope("anon:x\ny")
        assert get_cart_scope() == "anon:x\\ny"

    def test_empty_scope_unbinds(self):
        bind_cart_scope("user:1")
        bind_cart_scope("")
        assert get_cart_scope() is None


class TestModeLabels:
    """Scope labels derived from cart modes."""

    def test_anonymous_label_uses_visitor_part(self):
        assert Anonymous("demo-cart:visitor-42").log_label == "anon:visitor-"

    def test_default_anonymous_label(self):
        assert Anonymous().log_label == "anon:demo-car"

    def test_authenticated_label_is_shortened(self):
        assert Authenticated("0123456789abcdef").log_label == "user:01234567"


def test_sanitize_id_for_logging():
    assert sanitize_id_for_logging(None) == "N/A"
    assert sanitize_id_for_logging("abc\r\ndefghij") == "abc\\r\\nd"


@pytest.mark.asyncio
async def test_cart_operations_bind_scope(cart, identity):
    await cart.refresh_cart()
    assert get_cart_scope() == "anon:demo-car"

    await identity.sign_in("user-1")
    assert get_cart_scope() == "user:user-1"
