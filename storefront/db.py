"""
Database Module - Supabase and Redis Clients

Provides singleton instances of:
- Async Supabase client (catalog, remote carts, auth, edge functions)
- Upstash Redis client (anonymous cart slots)
"""

import os
from typing import Optional

from supabase._async.client import AsyncClient, create_client as acreate_client
from upstash_redis.asyncio import Redis as AsyncRedis


SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Anonymous carts: "redis" (shared across app instances) or "memory" (single process)
CART_LOCAL_BACKEND = os.environ.get("CART_LOCAL_BACKEND", "redis")
CART_LOCAL_NAMESPACE = os.environ.get("CART_LOCAL_NAMESPACE", "demo-cart")


_async_supabase_client: Optional[AsyncClient] = None
_redis_client: Optional[AsyncRedis] = None


async def get_supabase() -> AsyncClient:
    """
    Get async Supabase client (singleton).
    """
    global _async_supabase_client

    if _async_supabase_client is None:
        if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _async_supabase_client = await acreate_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)

    return _async_supabase_client


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _redis_client

    if _redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _redis_client


class RedisKeys:
    """Redis key prefixes."""

    LOCAL_CART = "cart:local:"  # cart:local:{namespace}

    @staticmethod
    def local_cart_key(namespace: str) -> str:
        return f"{RedisKeys.LOCAL_CART}{namespace}"


class TTL:
    """Time-to-live constants for Redis keys (seconds)."""

    LOCAL_CART = 86400  # 24 hours, abandoned anonymous carts expire


class Tables:
    """Supabase table and function names used by the cart."""

    PRODUCTS = "products"
    CART_ITEMS = "cart_items"
    CREATE_CHECKOUT = "create-checkout"
