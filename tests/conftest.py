"""Pytest configuration and fixtures"""
import os
import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest

# Set test environment variables before storefront.db is imported
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")
os.environ.setdefault("CART_LOCAL_BACKEND", "memory")

from storefront.cart import (  # noqa: E402
    LineItemStore,
    LocalCartBackend,
    MemorySlotStorage,
    RemoteCartBackend,
)
from storefront.cart.service import CartSession  # noqa: E402
from storefront.identity import IdentitySession  # noqa: E402
from storefront.models import Product  # noqa: E402
from storefront.notifications import Notifier  # noqa: E402


class FakeCatalog:
    """In-memory stand-in for ProductRepository."""

    def __init__(self, products):
        self.products = {p["id"]: p for p in products}
        self.calls = []

    async def get_by_ids(self, product_ids):
        ids = list(dict.fromkeys(product_ids))
        self.calls.append(ids)
        return {pid: Product(**self.products[pid]) for pid in ids if pid in self.products}


class FakeCartItemRepository:
    """In-memory stand-in for CartItemRepository, joining products like PostgREST does."""

    def __init__(self, catalog: FakeCatalog):
        self.catalog = catalog
        self.rows = []
        self.fail_with = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def _joined(self, row):
        return {**row, "products": self.catalog.products.get(row["product_id"])}

    async def list_for_user(self, user_id):
        self._check()
        return [self._joined(r) for r in self.rows if r["user_id"] == user_id]

    async def create(self, user_id, product_id, quantity):
        self._check()
        row = {"id": str(uuid.uuid4()), "user_id": user_id, "product_id": product_id, "quantity": quantity}
        self.rows.append(row)
        return dict(row)

    async def update_quantity(self, user_id, item_id, quantity):
        self._check()
        for row in self.rows:
            if row["id"] == item_id and row["user_id"] == user_id:
                row["quantity"] = quantity

    async def delete(self, user_id, item_id):
        self._check()
        self.rows = [r for r in self.rows if not (r["id"] == item_id and r["user_id"] == user_id)]

    async def delete_for_user(self, user_id):
        self._check()
        self.rows = [r for r in self.rows if r["user_id"] != user_id]


@pytest.fixture
def sample_products():
    """Catalog rows as Supabase returns them"""
    return [
        {"id": "sku-1", "name": "Ceramic Mug", "price": 12.5, "image_url": "https://img/mug.png", "stock": 40},
        {"id": "sku-2", "name": "Tea Sampler", "price": 24.0, "image_url": "https://img/tea.png", "stock": 3},
        {"id": "sku-3", "name": "Kettle", "price": "59.99", "image_url": None, "stock": 0},
    ]


@pytest.fixture
def price_of(sample_products):
    prices = {p["id"]: Decimal(str(p["price"])) for p in sample_products}
    return lambda product_id: prices[product_id]


@pytest.fixture
def catalog(sample_products):
    return FakeCatalog(sample_products)


@pytest.fixture
def cart_repo(catalog):
    return FakeCartItemRepository(catalog)


@pytest.fixture
def slots():
    return MemorySlotStorage()


@pytest.fixture
def store(slots, cart_repo):
    return LineItemStore(local=LocalCartBackend(slots), remote=RemoteCartBackend(cart_repo))


@pytest.fixture
def identity():
    return IdentitySession()


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def cart(identity, store, catalog, notifier):
    session = CartSession(identity, store, catalog, notifier)
    yield session
    session.close()


@pytest.fixture
def mock_supabase_client():
    """Mock async Supabase client with chainable table queries"""
    client = Mock()

    table_mock = Mock()
    table_mock.select.return_value = table_mock
    table_mock.insert.return_value = table_mock
    table_mock.update.return_value = table_mock
    table_mock.delete.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.in_.return_value = table_mock
    table_mock.limit.return_value = table_mock
    table_mock.execute = AsyncMock(return_value=Mock(data=[]))

    client.table.return_value = table_mock
    client.auth.get_user = AsyncMock()
    client.functions.invoke = AsyncMock()

    return client
